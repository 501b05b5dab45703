# risk_gateway/logic/probability_remapper.py
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from risk_gateway.constants import remap_policy as policy


@dataclass(frozen=True)
class ThreeClassResult:
    prediction: str
    probabilities: Dict[str, float]

    @property
    def confidence(self) -> float:
        return max(self.probabilities.values())

    @property
    def risk_level(self) -> str:
        return risk_level_for(self.prediction, self.confidence)


def _prob(probabilities: Optional[Mapping[str, Any]], key: str) -> float:
    if not probabilities:
        return 0
    return probabilities.get(key) or 0


def map_to_three_classes(prediction: Any, probabilities: Optional[Mapping[str, Any]]) -> ThreeClassResult:
    """Spread the service's dropout/not_dropout output over Dropout/Graduate/Enrolled."""
    if prediction == "dropout":
        not_dropout = _prob(probabilities, "not_dropout")
        return ThreeClassResult(
            prediction="Dropout",
            probabilities={
                "Dropout": _prob(probabilities, "dropout"),
                "Graduate": not_dropout * policy.DROPOUT_GRADUATE_SHARE,
                "Enrolled": not_dropout * policy.DROPOUT_ENROLLED_SHARE,
            },
        )

    if prediction == "not_dropout":
        not_dropout = _prob(probabilities, "not_dropout")
        graduate = not_dropout * policy.NOT_DROPOUT_GRADUATE_SHARE
        enrolled = not_dropout * policy.NOT_DROPOUT_ENROLLED_SHARE
        return ThreeClassResult(
            # ties (not_dropout == 0) go to Enrolled
            prediction="Graduate" if graduate > enrolled else "Enrolled",
            probabilities={
                "Dropout": _prob(probabilities, "dropout"),
                "Graduate": graduate,
                "Enrolled": enrolled,
            },
        )

    # probabilities are not read for unknown labels
    return ThreeClassResult(
        prediction=policy.FALLBACK_PREDICTION,
        probabilities=dict(policy.FALLBACK_PROBABILITIES),
    )


def risk_level_for(prediction: str, confidence: float) -> str:
    if prediction == "Dropout" and confidence > policy.HIGH_RISK_CONFIDENCE:
        return policy.HIGH_RISK
    if prediction == "Dropout":
        return policy.MEDIUM_RISK
    return policy.LOW_RISK


def remap_result(raw: Mapping[str, Any]) -> ThreeClassResult:
    """Remap one TwoClassResult mapping as returned by the inference service."""
    return map_to_three_classes(raw.get("prediction"), raw.get("probabilities"))
