# risk_gateway/logic/validators.py
import re
from typing import Any, Dict, List, Sequence, Tuple

from risk_gateway.constants.feature_schema import (
    AGE_RANGE,
    CATEGORICAL_POSITIONS,
    CGPA_RANGE,
    EMAIL_PATTERN,
    FEATURE_GENDERS,
    IDENTITY_FIELDS,
    IDENTITY_GENDERS,
    IDENTITY_TEXT_FIELDS,
    REQUIRED_FIELDS,
)
from risk_gateway.logic.errors import ValidationError
from risk_gateway.logic.request_types import StudentRecord, ValidationReport
from risk_gateway.utils.value_checks import in_range, is_finite_number, is_missing, is_number

_EMAIL_RE = re.compile(EMAIL_PATTERN)


def validate_student_record(record: StudentRecord) -> bool:
    """
    Check a structured record before encoding. Checks run in a fixed order and
    stop at the first failure: required fields, age, gender, current CGPA.
    """
    missing = [name for name in REQUIRED_FIELDS if is_missing(record.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    if not in_range(record.age, *AGE_RANGE):
        raise ValidationError(f"Age must be a number between {AGE_RANGE[0]} and {AGE_RANGE[1]}")

    if record.gender not in FEATURE_GENDERS:
        raise ValidationError("Gender must be M, F, or O")

    if not in_range(record.current_sem_cgpa, *CGPA_RANGE):
        raise ValidationError(f"Current semester CGPA must be between {CGPA_RANGE[0]} and {CGPA_RANGE[1]}")

    return True


def invalid_feature_positions(features: Sequence[Any]) -> List[int]:
    """Categorical slots accept any present value; the rest must be finite numbers."""
    invalid = []
    for idx, value in enumerate(features):
        if idx in CATEGORICAL_POSITIONS:
            if is_missing(value):
                invalid.append(idx)
        elif not is_finite_number(value):
            invalid.append(idx)
    return invalid


def validate_legacy_vector(features: Sequence[Any], allowed_lengths: Tuple[int, ...]) -> bool:
    if len(features) not in allowed_lengths:
        expected = " or ".join(str(n) for n in allowed_lengths)
        raise ValidationError(
            f"Invalid number of features: expected {expected}, received {len(features)}"
        )

    invalid = invalid_feature_positions(features)
    if invalid:
        raise ValidationError(
            "Invalid feature values: features must be valid numbers or strings for "
            f"categorical features ({len(invalid)} invalid at positions {invalid})"
        )
    return True


def structure_identity(identity: Any) -> Tuple[Dict[str, Any], ValidationReport]:
    """
    Keep only the known identity fields and collect warnings for anything odd.
    Identity problems never block a prediction: an invalid gender or email and
    any non-text name/email/course are dropped, a bad age is only flagged.
    """
    report = ValidationReport()
    if identity is None:
        return {}, report
    if not isinstance(identity, dict):
        report.warn(f"Ignoring user identity of type {type(identity).__name__}; expected an object")
        return {}, report

    structured: Dict[str, Any] = {}
    for name in IDENTITY_FIELDS:
        if name not in identity:
            continue
        value = identity[name]
        if name in IDENTITY_TEXT_FIELDS and value is not None and not isinstance(value, str):
            report.warn(f"Invalid {name}: {value!r}. Must be a string.")
            continue
        if name == "studentId" and value is not None and not (isinstance(value, str) or is_number(value)):
            report.warn(f"Invalid studentId: {value!r}. Must be a string or number.")
            continue
        if name == "gender" and value not in IDENTITY_GENDERS:
            report.warn(
                f"Invalid gender: {value}. Must be one of: {', '.join(IDENTITY_GENDERS)}"
            )
            continue
        if name == "email" and value and not _EMAIL_RE.fullmatch(value):
            report.warn(f"Invalid email format: {value!r}")
            continue
        structured[name] = value

    age = identity.get("age")
    if "age" in identity and not (is_number(age) and age >= 0):
        report.warn(f"Invalid age: {age}. Must be a non-negative number.")

    return structured, report
