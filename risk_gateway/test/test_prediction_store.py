import asyncio
import json
import uuid

from cassandra.cqltypes import DoubleType, UTF8Type

from risk_gateway.database.prediction_store import (
    CassandraPredictionStore,
    InMemoryPredictionStore,
    PredictionRecord,
)
from risk_gateway.logic.prediction_processor import PredictionProcessor
from risk_gateway.test.fakes import STUDENT, FakeClient

TEXT_COLUMNS = (1, 2, 3, 5, 6, 7, 8, 9, 11, 12)
DOUBLE_COLUMNS = (4, 10)


class RecordingSession:
    def __init__(self):
        self.prepared = []
        self.executed = []

    def prepare(self, cql):
        self.prepared.append(cql)
        return "prepared-insert"

    def execute(self, statement, params=None, timeout=None):
        self.executed.append((statement, params, timeout))


class BindingSession(RecordingSession):
    """Serializes bound values with the driver's column types, as a real prepared statement would."""

    def execute(self, statement, params=None, timeout=None):
        for idx in TEXT_COLUMNS:
            if params[idx] is not None:
                UTF8Type.serialize(params[idx], 4)
        for idx in DOUBLE_COLUMNS:
            if params[idx] is not None:
                DoubleType.serialize(params[idx], 4)
        super().execute(statement, params, timeout)


def make_record(**identity):
    return PredictionRecord.from_identity(
        identity,
        features=[20, "M", None, 1],
        prediction="Dropout",
        probabilities={"Dropout": 0.8, "Graduate": 0.06, "Enrolled": 0.14},
        confidence=0.8,
        risk_level="High Risk",
    )


class TestCassandraPredictionStore:

    def test_save_writes_one_row(self):
        session = RecordingSession()
        store = CassandraPredictionStore(session, timeout=3)

        record_id = asyncio.run(store.save(make_record(name="Ana", studentId=42, age=21, gender="Female")))

        assert uuid.UUID(record_id)
        assert len(session.prepared) == 1
        statement, params, timeout = session.executed[0]
        assert statement == "prepared-insert"
        assert timeout == 3
        assert str(params[0]) == record_id
        assert params[1:7] == ["Ana", None, "42", 21.0, "Female", None]
        assert json.loads(params[7]) == [20, "M", None, 1]
        assert params[8] == "Dropout"
        assert json.loads(params[9])["Dropout"] == 0.8
        assert params[11] == "High Risk"
        assert params[12] == "catboost-unified-v1"

    def test_statement_prepared_once(self):
        session = RecordingSession()
        store = CassandraPredictionStore(session, timeout=3)

        async def save_twice():
            await store.save(make_record())
            await store.save(make_record())

        asyncio.run(save_twice())
        assert len(session.prepared) == 1
        assert len(session.executed) == 2

    def test_non_numeric_identity_age_stored_as_null(self):
        session = RecordingSession()
        asyncio.run(CassandraPredictionStore(session, timeout=3).save(make_record(age="twenty")))
        assert session.executed[0][1][4] is None

    def test_saved_row_binds_to_column_types(self):
        session = BindingSession()
        asyncio.run(CassandraPredictionStore(session, timeout=3).save(
            make_record(name="Ana", email="ana@uni.edu", studentId=42, age=21, gender="Female", course="CS")
        ))
        assert len(session.executed) == 1

    def test_non_text_identity_does_not_fail_the_prediction(self):
        session = BindingSession()
        processor = PredictionProcessor(FakeClient(), CassandraPredictionStore(session, timeout=3))

        response = asyncio.run(processor.predict({
            **STUDENT,
            "userData": {"name": 123, "email": 123, "course": 7, "studentId": 9},
        }))

        assert response["prediction"] == "Dropout"
        assert len(response["warnings"]) == 3
        params = session.executed[0][1]
        assert params[1:4] == [None, None, "9"]
        assert params[6] is None


class TestInMemoryPredictionStore:

    def test_ids_are_unique(self):
        store = InMemoryPredictionStore()

        async def save_many():
            return [await store.save(make_record()) for _ in range(3)]

        ids = asyncio.run(save_many())
        assert len(set(ids)) == 3
        assert set(store.records) == set(ids)
