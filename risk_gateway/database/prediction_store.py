import asyncio
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from risk_gateway.constants.feature_schema import MODEL_VERSION

logger = logging.getLogger(__name__)


def get_store_config() -> Dict[str, Any]:
    return {
        "backend": os.getenv("PREDICTION_STORE", "cassandra").lower(),
        "timeout": float(os.getenv("STORE_TIMEOUT", 10)),
    }


@dataclass(frozen=True)
class PredictionRecord:
    features: List[Any]
    prediction: str
    probabilities: Dict[str, float]
    confidence: float
    risk_level: str
    name: Optional[str] = None
    email: Optional[str] = None
    student_id: Optional[str] = None
    age: Optional[float] = None
    gender: Optional[str] = None
    course: Optional[str] = None
    model_version: str = MODEL_VERSION
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_identity(cls, identity: Dict[str, Any], **kwargs) -> "PredictionRecord":
        return cls(
            name=identity.get("name"),
            email=identity.get("email"),
            student_id=identity.get("studentId"),
            age=identity.get("age"),
            gender=identity.get("gender"),
            course=identity.get("course"),
            **kwargs,
        )


class InMemoryPredictionStore:
    """Keeps records in process memory. Handy for local runs without Cassandra."""

    def __init__(self):
        self.records: Dict[str, PredictionRecord] = {}

    async def save(self, record: PredictionRecord) -> str:
        record_id = str(uuid.uuid4())
        self.records[record_id] = record
        return record_id

    def check_health(self) -> bool:
        return True


class CassandraPredictionStore:
    INSERT_CQL = """
        INSERT INTO predictions (
            id, name, email, student_id, age, gender, course, features,
            prediction, probabilities, confidence, risk_level, model_version, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """

    def __init__(self, session, timeout: Optional[float] = None):
        self.session = session
        self.timeout = timeout if timeout is not None else get_store_config()["timeout"]
        self._insert = None

    def _prepared_insert(self):
        if self._insert is None:
            self._insert = self.session.prepare(self.INSERT_CQL)
        return self._insert

    def _write(self, record_id: uuid.UUID, record: PredictionRecord):
        params = [
            record_id,
            record.name,
            record.email,
            None if record.student_id is None else str(record.student_id),
            _as_float(record.age),
            record.gender,
            record.course,
            json.dumps(record.features),
            record.prediction,
            json.dumps(record.probabilities),
            float(record.confidence),
            record.risk_level,
            record.model_version,
            record.created_at,
        ]
        self.session.execute(self._prepared_insert(), params, timeout=self.timeout)

    async def save(self, record: PredictionRecord) -> str:
        record_id = uuid.uuid4()
        loop = asyncio.get_running_loop()
        # driver call is blocking; keep it off the event loop
        await loop.run_in_executor(None, self._write, record_id, record)
        logger.info(f"✅ Stored prediction {record_id} ({record.prediction}, {record.risk_level})")
        return str(record_id)

    def check_health(self) -> bool:
        try:
            self.session.execute("SELECT release_version FROM system.local")
            return True
        except Exception as e:
            logger.error(f"Store health check failed: {e}")
            return False


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return None if value is None else float(value)
    except (TypeError, ValueError):
        return None
