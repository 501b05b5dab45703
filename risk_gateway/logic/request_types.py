# request_types.py - Inbound request shapes and schema detection

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]
Code = Union[int, float, str]
FeatureValue = Optional[Union[int, float, str]]


@dataclass(frozen=True)
class StudentRecord:
    """Structured student input. None means the field was absent."""
    age: Optional[Number] = None
    gender: Optional[str] = None
    nationality: Optional[Code] = None
    highschool_score: Optional[Number] = None
    entrance_exam_score_normalized: Optional[Number] = None
    department: Optional[Code] = None
    admission_type: Optional[Code] = None
    attendance_pct: Optional[Number] = None
    current_sem_cgpa: Optional[Number] = None
    aggregate_cgpa: Optional[Number] = None
    backlogs_count: Optional[Number] = None
    family_income_bracket: Optional[Code] = None
    parent_education: Optional[Code] = None
    scholarship_status: Optional[str] = None
    fee_payment_status: Optional[str] = None
    residence_type: Optional[str] = None
    commute_distance_km: Optional[Number] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "StudentRecord":
        """Pick known fields out of a request body; unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def get(self, name: str) -> Any:
        return getattr(self, name)


@dataclass(frozen=True)
class LegacyVectorRequest:
    features: List[FeatureValue]
    identity: Any = None


@dataclass(frozen=True)
class StructuredRecordRequest:
    record: StudentRecord
    identity: Any = None


PredictionRequest = Union[LegacyVectorRequest, StructuredRecordRequest]


def is_legacy_vector(body: Dict[str, Any]) -> bool:
    return isinstance(body.get("features"), list)


def detect_request(body: Dict[str, Any]) -> PredictionRequest:
    """
    Legacy bodies carry a `features` list and identity under `userInfo`;
    anything else is a structured record with identity under `userData`.
    """
    if is_legacy_vector(body):
        return LegacyVectorRequest(features=list(body["features"]), identity=body.get("userInfo"))
    return StructuredRecordRequest(record=StudentRecord.from_mapping(body), identity=body.get("userData"))


@dataclass
class ValidationReport:
    """Non-fatal diagnostics collected while validating a request."""
    warnings: List[str] = field(default_factory=list)

    def warn(self, message: str):
        self.warnings.append(message)

    @property
    def ok(self) -> bool:
        return not self.warnings
