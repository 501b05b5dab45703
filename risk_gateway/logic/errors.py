# risk_gateway/logic/errors.py
from typing import Optional


class PredictionError(Exception):
    """Base for every failure the gateway reports to its caller."""

    status_code = 500
    error = "Prediction failed"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.error, "details": self.detail}


class ValidationError(PredictionError):
    """Malformed, missing or out-of-range input. Always caller-caused."""

    status_code = 400
    error = "Validation error"

    def __init__(self, detail: str, index: Optional[int] = None):
        super().__init__(detail)
        self.index = index

    def to_dict(self) -> dict:
        body = super().to_dict()
        if self.index is not None:
            body["index"] = self.index
        return body


class ServiceUnavailableError(PredictionError):
    status_code = 503
    error = "Prediction service unavailable"


class NoResponseError(PredictionError):
    status_code = 503
    error = "Prediction service unavailable"


class ServiceError(PredictionError):
    """The inference service answered with an error payload."""

    status_code = 502
    error = "Prediction service error"


class InternalError(PredictionError):
    status_code = 500
    error = "Prediction failed"
