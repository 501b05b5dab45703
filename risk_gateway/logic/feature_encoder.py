# risk_gateway/logic/feature_encoder.py
from typing import List

from risk_gateway.constants.feature_schema import MISSING_FLAG_FIELDS, VALUE_SLOTS
from risk_gateway.logic.request_types import FeatureValue, StudentRecord
from risk_gateway.utils.value_checks import is_missing


def encode_features(record: StudentRecord) -> List[FeatureValue]:
    """
    Turn a validated StudentRecord into the 25-slot vector the model expects:
    17 value slots with defaults filled in, then 8 missing-value flags.

    Slots without a default keep None when their source is absent.
    """
    values: List[FeatureValue] = []
    for name, default in VALUE_SLOTS:
        value = record.get(name)
        values.append(default if is_missing(value) else value)

    flags = [1 if is_missing(record.get(name)) else 0 for name in MISSING_FLAG_FIELDS]
    return values + flags
