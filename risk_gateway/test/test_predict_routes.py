# risk_gateway/test/test_predict_routes.py
import pytest
from fastapi import testclient

from main import app
from risk_gateway.database.prediction_store import InMemoryPredictionStore
from risk_gateway.inference.prediction_client import InferenceConnectionRefused, InferenceServiceError
from risk_gateway.logic.prediction_processor import PredictionProcessor
from risk_gateway.test.fakes import LEGACY_VECTOR, STUDENT, FakeClient


class DownClient(FakeClient):
    async def health_check(self):
        return {"status": "ERROR", "error": "Cannot connect"}


@pytest.fixture
def api():
    def install(client=None):
        app.state.store = InMemoryPredictionStore()
        app.state.processor = PredictionProcessor(client or FakeClient(), app.state.store)
        # no `with`: lifespan (Cassandra, model service health check) is not started
        return testclient.TestClient(app)

    yield install
    app.state.processor = None
    app.state.store = None


class TestPredictEndpoint:

    def test_structured_prediction(self, api):
        resp = api().post("/api/predict/", json={**STUDENT, "userData": {"name": "Ana"}})
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["prediction"] == "Dropout"
        assert body["risk_level"] == "High Risk"
        assert body["features_used"] == 25
        assert body["recordId"] in app.state.store.records

    def test_validation_error_is_400(self, api):
        resp = api().post("/api/predict/", json={"features": LEGACY_VECTOR[:20]})
        assert resp.status_code == 400
        detail = resp.json()["detail"]
        assert detail["error"] == "Validation error"
        assert "expected 25 or 35, received 20" in detail["details"]

    def test_non_object_body_is_400(self, api):
        resp = api().post("/api/predict/", json=[1, 2, 3])
        assert resp.status_code == 400

    def test_service_down_is_503(self, api):
        resp = api(FakeClient(error=InferenceConnectionRefused())).post("/api/predict/", json=dict(STUDENT))
        assert resp.status_code == 503
        assert resp.json()["detail"]["error"] == "Prediction service unavailable"

    def test_service_error_keeps_detail(self, api):
        client = FakeClient(error=InferenceServiceError("feature 3 out of range", 400))
        resp = api(client).post("/api/predict/", json=dict(STUDENT))
        assert resp.status_code == 502
        assert resp.json()["detail"]["details"] == "feature 3 out of range"

    def test_not_started(self):
        app.state.processor = None
        resp = testclient.TestClient(app).post("/api/predict/", json=dict(STUDENT))
        assert resp.status_code == 503


class TestBatchEndpoint:

    def test_batch(self, api):
        resp = api().post("/api/predict/batch", json={"predictions": [dict(STUDENT), {"features": LEGACY_VECTOR}]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["count"] == 2
        assert body["predictions"][1]["index"] == 1
        assert body["predictions"][0]["confidence"] == 0.8

    def test_bad_item_index_reported(self, api):
        items = [dict(STUDENT)] * 5
        items[3] = {"features": LEGACY_VECTOR[:24]}
        resp = api().post("/api/predict/batch", json={"predictions": items})
        assert resp.status_code == 400
        assert resp.json()["detail"]["index"] == 3

    def test_too_many(self, api):
        resp = api().post("/api/predict/batch", json={"predictions": [dict(STUDENT)] * 101})
        assert resp.status_code == 400


class TestInfoEndpoints:

    def test_model_info(self, api):
        body = api().get("/api/predict/model-info").json()
        assert body["input_features"] == 25
        assert body["target_classes"] == ["Dropout", "Graduate", "Enrolled"]
        assert body["model_loaded"] is True
        assert len(body["feature_description"]["missing_flags"]) == 8

    def test_health_ok(self, api):
        resp = api().get("/api/predict/health")
        assert resp.status_code == 200
        assert resp.json()["python_service"]["status"] == "healthy"

    def test_health_reports_service_error(self, api):
        resp = api(DownClient()).get("/api/predict/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "ERROR"

    def test_feature_template_examples_are_valid(self, api):
        client = api()
        template = client.get("/api/predict/feature-template").json()
        assert len(template["features_array_format"]["features"]) == 25

        structured = client.post("/api/predict/", json=template["structured_format"])
        legacy = client.post("/api/predict/", json=template["features_array_format"])
        assert structured.status_code == 200
        assert legacy.status_code == 200

    def test_app_health_aggregates(self, api):
        body = api(DownClient()).get("/health").json()
        assert body["store"] == "healthy"
        assert body["overall"] == "degraded"
