# risk_gateway/constants/remap_policy.py
#
# Split of the service's `not_dropout` mass across Graduate/Enrolled.
# These are a placeholder approximation, not a calibrated business rule.

# prediction == "dropout"
DROPOUT_GRADUATE_SHARE = 0.3
DROPOUT_ENROLLED_SHARE = 0.7

# prediction == "not_dropout"
NOT_DROPOUT_GRADUATE_SHARE = 0.7
NOT_DROPOUT_ENROLLED_SHARE = 0.3

# Unrecognized label
FALLBACK_PREDICTION = "Enrolled"
FALLBACK_PROBABILITIES = {
    "Dropout": 0.33,
    "Graduate": 0.33,
    "Enrolled": 0.34,
}

HIGH_RISK_CONFIDENCE = 0.7

HIGH_RISK = "High Risk"
MEDIUM_RISK = "Medium Risk"
LOW_RISK = "Low Risk"
