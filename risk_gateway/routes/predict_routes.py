# risk_gateway/routes/predict_routes.py
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from risk_gateway.constants.feature_schema import (
    CATEGORICAL_VALUES,
    FEATURE_COUNT,
    FEATURE_GROUPS,
    MODEL_TYPE,
    REQUIRED_FIELDS,
    SUPPORTED_FORMATS,
    TARGET_CLASSES,
)
from risk_gateway.logic.errors import PredictionError
from risk_gateway.logic.feature_encoder import encode_features
from risk_gateway.logic.prediction_processor import PredictionProcessor
from risk_gateway.logic.request_types import StudentRecord

logger = logging.getLogger(__name__)
router = APIRouter()


class PredictionOut(BaseModel):
    success: bool
    prediction: str
    probabilities: Dict[str, float]
    confidence: float
    risk_level: str
    recordId: str
    timestamp: str
    modelVersion: str
    features_used: int
    warnings: List[str] = []


class BatchItemOut(BaseModel):
    # extra keys returned by the model service are passed through
    model_config = ConfigDict(extra="allow")

    prediction: str
    probabilities: Dict[str, float]
    confidence: float
    risk_level: str


class BatchPredictionOut(BaseModel):
    success: bool
    predictions: List[BatchItemOut]
    count: int
    timestamp: str
    modelVersion: str


def get_processor(request: Request) -> PredictionProcessor:
    processor = getattr(request.app.state, "processor", None)
    if processor is None:
        raise HTTPException(status_code=503, detail={"error": "Prediction service unavailable",
                                                     "details": "Gateway is still starting up"})
    return processor


def _raise_http(e: PredictionError):
    if e.status_code >= 500:
        logger.error(f"{e.error}: {e.detail}")
    else:
        logger.warning(f"{e.error}: {e.detail}")
    raise HTTPException(status_code=e.status_code, detail=e.to_dict())


@router.post("/", response_model=PredictionOut)
async def predict(payload: Any = Body(...), processor: PredictionProcessor = Depends(get_processor)):
    """Single prediction; accepts a features array or a structured student record."""
    try:
        return await processor.predict(payload)
    except PredictionError as e:
        _raise_http(e)
    except Exception as e:
        logger.exception("Unhandled error in predict endpoint")
        raise HTTPException(status_code=500, detail={"error": "Prediction failed", "details": str(e)})


@router.post("/batch", response_model=BatchPredictionOut)
async def batch_predict(payload: Any = Body(...), processor: PredictionProcessor = Depends(get_processor)):
    try:
        return await processor.batch_predict(payload)
    except PredictionError as e:
        _raise_http(e)
    except Exception as e:
        logger.exception("Unhandled error in batch endpoint")
        raise HTTPException(status_code=500, detail={"error": "Batch prediction failed", "details": str(e)})


@router.get("/model-info")
async def model_info(processor: PredictionProcessor = Depends(get_processor)):
    health = await processor.client.health_check()
    return {
        "model_type": MODEL_TYPE,
        "input_features": FEATURE_COUNT,
        "target_classes": TARGET_CLASSES,
        "service_status": health.get("status", "unknown"),
        "model_loaded": bool(health.get("model_loaded", False)),
        "supported_formats": SUPPORTED_FORMATS,
        "feature_description": FEATURE_GROUPS,
    }


@router.get("/health")
async def health(processor: PredictionProcessor = Depends(get_processor)):
    """Gateway status plus whatever the model service reports about itself."""
    service_health = await processor.client.health_check()
    body = {
        "service": "Prediction API",
        "status": "OK",
        "python_service": service_health,
        "supported_input_formats": SUPPORTED_FORMATS,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if str(service_health.get("status", "")).upper() == "ERROR":
        body["status"] = "ERROR"
        return JSONResponse(status_code=503, content=body)
    return body


EXAMPLE_RECORD = {
    "age": 20,
    "gender": "M",
    "nationality": 1,
    "highschool_score": 75.5,
    "entrance_exam_score_normalized": 82.3,
    "department": 171,
    "admission_type": 17,
    "attendance_pct": 85.5,
    "current_sem_cgpa": 7.2,
    "aggregate_cgpa": 7.1,
    "backlogs_count": 0,
    "family_income_bracket": 2,
    "parent_education": 19,
    "scholarship_status": "none",
    "fee_payment_status": "on_time",
    "residence_type": "day_scholar",
    "commute_distance_km": 4.5,
}

EXAMPLE_USER = {
    "name": "Student Name",
    "email": "student@university.edu",
    "studentId": "STU001",
}


@router.get("/feature-template")
def feature_template():
    return {
        "structured_format": {**EXAMPLE_RECORD, "userData": EXAMPLE_USER},
        "features_array_format": {
            "features": encode_features(StudentRecord.from_mapping(EXAMPLE_RECORD)),
            "userInfo": EXAMPLE_USER,
        },
        "required_fields": REQUIRED_FIELDS,
        "categorical_values": CATEGORICAL_VALUES,
    }
