import pytest

from risk_gateway.logic.probability_remapper import map_to_three_classes, remap_result, risk_level_for


class TestThreeClassMapping:

    @pytest.mark.parametrize("p", [0.0, 0.1, 0.25, 0.5, 0.7, 0.71, 0.9, 1.0])
    def test_dropout_split_sums_to_one(self, p):
        result = map_to_three_classes("dropout", {"dropout": p, "not_dropout": 1 - p})
        assert result.prediction == "Dropout"
        assert result.probabilities["Dropout"] == p
        assert result.probabilities["Graduate"] == pytest.approx(0.3 * (1 - p))
        assert result.probabilities["Enrolled"] == pytest.approx(0.7 * (1 - p))
        assert sum(result.probabilities.values()) == pytest.approx(1.0)

    def test_not_dropout_prefers_graduate(self):
        result = map_to_three_classes("not_dropout", {"dropout": 0, "not_dropout": 1})
        assert result.prediction == "Graduate"
        assert result.probabilities == {"Dropout": 0, "Graduate": 0.7, "Enrolled": 0.3}

    def test_not_dropout_tie_goes_to_enrolled(self):
        result = map_to_three_classes("not_dropout", {"dropout": 1, "not_dropout": 0})
        assert result.prediction == "Enrolled"
        assert result.probabilities == {"Dropout": 1, "Graduate": 0, "Enrolled": 0}

    @pytest.mark.parametrize("label", ["Dropout", "graduate", "", None, 1])
    def test_unknown_label_falls_back(self, label):
        result = map_to_three_classes(label, {"dropout": 0.9, "not_dropout": 0.1})
        assert result.prediction == "Enrolled"
        assert result.probabilities == {"Dropout": 0.33, "Graduate": 0.33, "Enrolled": 0.34}
        assert result.confidence == 0.34
        assert result.risk_level == "Low Risk"

    @pytest.mark.parametrize("probabilities", [[0.5, 0.5], "0.5", 0.9])
    def test_unknown_label_ignores_malformed_probabilities(self, probabilities):
        result = map_to_three_classes("unknown", probabilities)
        assert result.prediction == "Enrolled"
        assert result.probabilities == {"Dropout": 0.33, "Graduate": 0.33, "Enrolled": 0.34}

    def test_missing_probabilities_default_to_zero(self):
        result = map_to_three_classes("dropout", {})
        assert result.probabilities == {"Dropout": 0, "Graduate": 0, "Enrolled": 0}
        result = map_to_three_classes("not_dropout", None)
        assert result.prediction == "Enrolled"

    def test_fallback_is_not_shared_between_calls(self):
        first = map_to_three_classes("???", {})
        first.probabilities["Dropout"] = 1.0
        assert map_to_three_classes("???", {}).probabilities["Dropout"] == 0.33

    def test_remap_result_reads_service_payload(self):
        result = remap_result({"prediction": "dropout", "probabilities": {"dropout": 0.8, "not_dropout": 0.2}})
        assert result.prediction == "Dropout"
        assert result.confidence == 0.8


class TestRiskLevel:

    def test_high_risk_needs_confidence_above_threshold(self):
        assert risk_level_for("Dropout", 0.71) == "High Risk"
        assert risk_level_for("Dropout", 0.7) == "Medium Risk"
        assert risk_level_for("Dropout", 0.2) == "Medium Risk"

    @pytest.mark.parametrize("prediction", ["Graduate", "Enrolled"])
    def test_non_dropout_is_low_risk(self, prediction):
        assert risk_level_for(prediction, 0.99) == "Low Risk"

    def test_confidence_from_dropout_mapping(self):
        # Enrolled share can beat the dropout probability itself
        result = map_to_three_classes("dropout", {"dropout": 0.2, "not_dropout": 0.8})
        assert result.confidence == pytest.approx(0.56)
        assert result.risk_level == "Medium Risk"
