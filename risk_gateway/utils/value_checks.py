# risk_gateway/utils/value_checks.py
import math
from typing import Any


def is_missing(value: Any) -> bool:
    """Absent values arrive as None once JSON is decoded."""
    return value is None


def is_number(value: Any) -> bool:
    """int/float but not bool (JSON true/false must not pass as 1/0)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_finite_number(value: Any) -> bool:
    return is_number(value) and math.isfinite(value)


def in_range(value: Any, low: float, high: float) -> bool:
    return is_number(value) and low <= value <= high
