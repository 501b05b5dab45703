# risk_gateway/logic/prediction_processor.py
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from risk_gateway.constants.feature_schema import (
    LEGACY_BATCH_LENGTHS,
    LEGACY_SINGLE_LENGTHS,
    MAX_BATCH_SIZE,
    MODEL_VERSION,
)
from risk_gateway.database.prediction_store import PredictionRecord, get_store_config
from risk_gateway.inference.prediction_client import (
    InferenceClientError,
    InferenceConnectionRefused,
    InferenceNoResponse,
    InferenceServiceError,
)
from risk_gateway.logic.errors import (
    InternalError,
    NoResponseError,
    PredictionError,
    ServiceError,
    ServiceUnavailableError,
    ValidationError,
)
from risk_gateway.logic.feature_encoder import encode_features
from risk_gateway.logic.probability_remapper import remap_result
from risk_gateway.logic.request_types import (
    FeatureValue,
    LegacyVectorRequest,
    ValidationReport,
    detect_request,
)
from risk_gateway.logic.validators import (
    structure_identity,
    validate_legacy_vector,
    validate_student_record,
)

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def prepare_request(body: Any, legacy_lengths: Tuple[int, ...]) -> Tuple[List[FeatureValue], Dict[str, Any], ValidationReport]:
    """
    Detect the request schema, validate it, and return the feature vector
    alongside the structured identity and its warnings.
    """
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    request = detect_request(body)
    if isinstance(request, LegacyVectorRequest):
        validate_legacy_vector(request.features, legacy_lengths)
        features = request.features
    else:
        validate_student_record(request.record)
        features = encode_features(request.record)

    identity, report = structure_identity(request.identity)
    return features, identity, report


def classify_client_error(error: InferenceClientError) -> PredictionError:
    """Map a collaborator failure onto the gateway's error taxonomy."""
    if isinstance(error, InferenceConnectionRefused):
        return ServiceUnavailableError(
            "The machine learning service is currently down. Please try again later."
        )
    if isinstance(error, InferenceNoResponse):
        return NoResponseError("No response from prediction service. Please try again later.")
    if isinstance(error, InferenceServiceError):
        return ServiceError(error.detail)
    return InternalError(str(error))


class PredictionProcessor:
    def __init__(self, client, store, store_timeout: Optional[float] = None):
        self.client = client
        self.store = store
        self.store_timeout = store_timeout if store_timeout is not None else get_store_config()["timeout"]

    async def _call(self, coro):
        try:
            return await coro
        except InferenceClientError as e:
            logger.error(f"❌ Prediction service call failed: {e}")
            raise classify_client_error(e) from e

    async def _persist(self, record: PredictionRecord) -> str:
        try:
            return await asyncio.wait_for(self.store.save(record), timeout=self.store_timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"❌ Storing prediction timed out after {self.store_timeout}s")
            raise InternalError("Timed out while saving prediction record") from e
        except PredictionError:
            raise
        except Exception as e:
            logger.error(f"❌ Storing prediction failed: {e}")
            raise InternalError(f"Could not save prediction record: {e}") from e

    async def predict(self, body: Any) -> Dict[str, Any]:
        features, identity, report = prepare_request(body, LEGACY_SINGLE_LENGTHS)
        for warning in report.warnings:
            logger.warning(f"⚠️ User data validation warning: {warning}")

        raw = await self._call(self.client.predict(features, identity or None))
        if not isinstance(raw, dict):
            raise ServiceError(f"Unexpected response from prediction service: {raw!r}")

        try:
            mapped = remap_result(raw)
            confidence = mapped.confidence
            risk_level = mapped.risk_level
        except (TypeError, ValueError, AttributeError) as e:
            raise InternalError(f"Could not interpret prediction result: {e}") from e

        record = PredictionRecord.from_identity(
            identity,
            features=features,
            prediction=mapped.prediction,
            probabilities=mapped.probabilities,
            confidence=confidence,
            risk_level=risk_level,
        )
        record_id = await self._persist(record)
        logger.info(f"✅ Prediction {record_id}: {mapped.prediction} ({risk_level}, confidence {confidence:.3f})")

        return {
            "success": True,
            "prediction": mapped.prediction,
            "probabilities": mapped.probabilities,
            "confidence": confidence,
            "risk_level": risk_level,
            "recordId": record_id,
            "timestamp": _timestamp(),
            "modelVersion": MODEL_VERSION,
            "features_used": len(features),
            "warnings": report.warnings,
        }

    async def batch_predict(self, body: Any) -> Dict[str, Any]:
        items = body.get("predictions") if isinstance(body, dict) else None
        if not isinstance(items, list):
            raise ValidationError("Predictions array is required")
        if len(items) > MAX_BATCH_SIZE:
            raise ValidationError(
                f"Too many predictions: maximum {MAX_BATCH_SIZE} predictions per batch request"
            )

        features_list: List[List[FeatureValue]] = []
        identities: List[Optional[Dict[str, Any]]] = []
        for idx, item in enumerate(items):
            try:
                features, identity, report = prepare_request(item, LEGACY_BATCH_LENGTHS)
            except ValidationError as e:
                logger.warning(f"Batch item {idx} rejected: {e.detail}")
                raise ValidationError(f"Invalid data at index {idx}: {e.detail}", index=idx) from e
            for warning in report.warnings:
                logger.warning(f"⚠️ User data validation warning at index {idx}: {warning}")
            features_list.append(features)
            identities.append(identity or None)

        raw = await self._call(self.client.batch_predict(features_list, identities))
        results = raw.get("predictions") if isinstance(raw, dict) else None
        if not isinstance(results, list):
            raise ServiceError("Prediction service returned no predictions list")

        mapped_results = []
        for result in results:
            if not isinstance(result, dict):
                raise ServiceError(f"Unexpected batch item from prediction service: {result!r}")
            try:
                mapped = remap_result(result)
                confidence = mapped.confidence
                risk_level = mapped.risk_level
            except (TypeError, ValueError, AttributeError) as e:
                raise InternalError(f"Could not interpret prediction result: {e}") from e
            mapped_results.append({
                **result,
                "prediction": mapped.prediction,
                "probabilities": mapped.probabilities,
                "confidence": confidence,
                "risk_level": risk_level,
            })

        logger.info(f"✅ Batch prediction complete: {len(mapped_results)} results")
        return {
            "success": True,
            "predictions": mapped_results,
            "count": len(mapped_results),
            "timestamp": _timestamp(),
            "modelVersion": MODEL_VERSION,
        }
