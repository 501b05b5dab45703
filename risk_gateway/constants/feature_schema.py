# risk_gateway/constants/feature_schema.py

# Structured-record fields that must be present before encoding
REQUIRED_FIELDS = [
    "age", "gender", "nationality", "highschool_score",
    "entrance_exam_score_normalized", "current_sem_cgpa",
    "aggregate_cgpa", "parent_education",
]

# Every field a StudentRecord understands
STUDENT_FIELDS = [
    "age", "gender", "nationality", "highschool_score",
    "entrance_exam_score_normalized", "department", "admission_type",
    "attendance_pct", "current_sem_cgpa", "aggregate_cgpa", "backlogs_count",
    "family_income_bracket", "parent_education", "scholarship_status",
    "fee_payment_status", "residence_type", "commute_distance_km",
]

# Value slots in vector order. Second item is the default used when the
# source field is absent; fields mapped to None pass through unchanged.
VALUE_SLOTS = [
    ("age", None),
    ("gender", None),
    ("nationality", 1),
    ("highschool_score", 0),
    ("entrance_exam_score_normalized", 0),
    ("department", None),
    ("admission_type", None),
    ("attendance_pct", None),
    ("current_sem_cgpa", 0),
    ("aggregate_cgpa", 0),
    ("backlogs_count", None),
    ("family_income_bracket", None),
    ("parent_education", 0),
    ("scholarship_status", "none"),
    ("fee_payment_status", "on_time"),
    ("residence_type", "day_scholar"),
    ("commute_distance_km", None),
]

# Missing-value flags appended after the value slots, in this order
MISSING_FLAG_FIELDS = [
    "department", "admission_type", "backlogs_count", "scholarship_status",
    "fee_payment_status", "residence_type", "family_income_bracket",
    "commute_distance_km",
]

FEATURE_COUNT = len(VALUE_SLOTS) + len(MISSING_FLAG_FIELDS)  # 25

# Legacy vectors: accepted lengths and positions that may hold strings
LEGACY_SINGLE_LENGTHS = (25, 35)
LEGACY_BATCH_LENGTHS = (25,)
CATEGORICAL_POSITIONS = frozenset({1, 2, 5, 6, 11, 12, 13, 14, 15})

MAX_BATCH_SIZE = 100

# Feature-level domains
FEATURE_GENDERS = ("M", "F", "O")
AGE_RANGE = (15, 100)
CGPA_RANGE = (0, 10)

# Identity-level domain, deliberately separate from FEATURE_GENDERS
IDENTITY_FIELDS = ["name", "email", "studentId", "age", "gender", "course"]
IDENTITY_GENDERS = ("Male", "Female", "Other")
IDENTITY_TEXT_FIELDS = ("name", "email", "course")
EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

MODEL_VERSION = "catboost-unified-v1"
MODEL_TYPE = "CatBoost Unified"
TARGET_CLASSES = ["Dropout", "Graduate", "Enrolled"]
SUPPORTED_FORMATS = ["structured_data", "features_array"]

FEATURE_GROUPS = {
    "core_demographics": ["age", "gender", "nationality", "parent_education"],
    "academic_scores": ["highschool_score", "entrance_exam_score_normalized", "current_sem_cgpa", "aggregate_cgpa"],
    "enrollment_info": ["department", "admission_type", "attendance_pct", "backlogs_count"],
    "financial_support": ["family_income_bracket", "scholarship_status", "fee_payment_status", "commute_distance_km"],
    "housing": ["residence_type"],
    "missing_flags": [f"{name}_missing" for name in MISSING_FLAG_FIELDS],
}

# Accepted values for the string-coded categoricals
CATEGORICAL_VALUES = {
    "gender": list(FEATURE_GENDERS),
    "scholarship_status": ["none", "scholarship"],
    "fee_payment_status": ["on_time", "delayed"],
    "residence_type": ["day_scholar", "hostel"],
}
