from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import os
import uvicorn
from contextlib import asynccontextmanager

from risk_gateway.routes.predict_routes import router as predict_router
from risk_gateway.inference.prediction_client import PredictionClient
from risk_gateway.database.connect_cassandra import initialize_database, close_connection
from risk_gateway.database.prediction_store import (
    CassandraPredictionStore,
    InMemoryPredictionStore,
    get_store_config,
)
from risk_gateway.logic.prediction_processor import PredictionProcessor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def build_store():
    config = get_store_config()
    if config["backend"] == "memory":
        logger.warning("⚠️ Using in-memory prediction store; records are lost on restart")
        return InMemoryPredictionStore()
    session = await initialize_database()
    return CassandraPredictionStore(session, timeout=config["timeout"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown tasks"""
    logger.info("🚀 Starting Student Risk Prediction Gateway...")

    try:
        store = await build_store()
        logger.info("✅ Prediction store ready")
    except Exception as e:
        logger.error(f"❌ Prediction store initialization failed: {e}")
        raise

    client = PredictionClient()
    if client.check_health():
        logger.info(f"✅ Prediction service is ready at {client.base_url}")
    else:
        # Requests fail with 503 until the model service comes up
        logger.warning(f"⚠️ Prediction service not ready at {client.base_url}, will retry on first use")

    app.state.store = store
    app.state.processor = PredictionProcessor(client, store)
    logger.info("🎉 Application startup complete!")

    yield

    logger.info("🛑 Shutting down Student Risk Prediction Gateway...")
    close_connection()
    logger.info("✅ Shutdown complete")


app = FastAPI(
    title="Student Risk Prediction Gateway",
    description="Validates and encodes student data, forwards it to the model service and returns a three-class risk prediction",
    version="2.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(predict_router, prefix="/api/predict", tags=["Prediction"])


@app.get("/")
async def root():
    return {
        "message": "Student Risk Prediction Gateway",
        "status": "running",
        "version": "2.0.0"
    }


@app.get("/health")
async def health_check():
    """Detailed health check for all services"""

    health_status = {
        "api": "healthy",
        "store": "unknown",
        "prediction_service": "unknown",
        "overall": "healthy"
    }

    store = getattr(app.state, "store", None)
    if store is not None and store.check_health():
        health_status["store"] = "healthy"
    else:
        health_status["store"] = "unhealthy: store not available"
        health_status["overall"] = "degraded"

    processor = getattr(app.state, "processor", None)
    service = await processor.client.health_check() if processor else {"status": "ERROR", "error": "not started"}
    if str(service.get("status", "")).upper() == "ERROR":
        health_status["prediction_service"] = f"unhealthy: {service.get('error', 'unknown error')}"
        health_status["overall"] = "degraded"
    else:
        health_status["prediction_service"] = "healthy"

    return health_status


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler"""
    logger.exception(f"❌ Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "An unexpected error occurred",
            "debug": str(exc) if os.getenv("API_DEBUG", "false").lower() == "true" else None
        }
    )


if __name__ == "__main__":
    port = int(os.getenv("API_PORT", 8000))
    host = os.getenv("API_HOST", "0.0.0.0")
    debug = os.getenv("API_DEBUG", "true").lower() == "true"

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
