import asyncio
import logging
import os
from typing import Any, Dict, List, Optional

import aiohttp
import requests

logger = logging.getLogger(__name__)


def get_inference_config() -> Dict[str, Any]:
    """Load inference service settings from environment"""
    return {
        "base_url": os.getenv("PYTHON_SERVICE_URL", "http://localhost:5001"),
        "timeout": float(os.getenv("PREDICTION_TIMEOUT", 10)),
        "health_timeout": float(os.getenv("HEALTH_TIMEOUT", 5)),
    }


class InferenceClientError(Exception):
    pass


class InferenceConnectionRefused(InferenceClientError):
    def __init__(self, message: str = "Prediction service is not running"):
        super().__init__(message)


class InferenceServiceError(InferenceClientError):
    def __init__(self, detail: str, status: Optional[int] = None):
        super().__init__(f"Prediction service error: {detail}")
        self.detail = detail
        self.status = status


class InferenceNoResponse(InferenceClientError):
    def __init__(self, message: str = "No response from prediction service"):
        super().__init__(message)


class InferenceRequestConfigError(InferenceClientError):
    pass


class PredictionClient:
    """Talks to the Python model service that does the actual inference."""

    def __init__(self,
                 base_url: Optional[str] = None,
                 timeout: Optional[float] = None,
                 health_timeout: Optional[float] = None):
        config = get_inference_config()
        self.base_url = (base_url or config["base_url"]).rstrip("/")
        self.timeout = timeout if timeout is not None else config["timeout"]
        self.health_timeout = health_timeout if health_timeout is not None else config["health_timeout"]

    @property
    def batch_timeout(self) -> float:
        # one round trip covers up to 100 items
        return self.timeout * 2

    async def predict(self, features: List[Any], user_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"features": features}
        if user_data:
            payload["userData"] = user_data
            logger.info(f"Sending user data to prediction service: {user_data}")
        return await self._post("/predict", payload, self.timeout)

    async def batch_predict(self,
                            features_list: List[List[Any]],
                            user_data_list: List[Optional[Dict[str, Any]]]) -> Dict[str, Any]:
        payload = {
            "predictions": [
                {
                    "features": features,
                    "userData": user_data_list[idx] if idx < len(user_data_list) and user_data_list[idx] else None,
                }
                for idx, features in enumerate(features_list)
            ]
        }
        return await self._post("/batch-predict", payload, self.batch_timeout)

    async def _post(self, path: str, payload: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=timeout)) as session:
                async with session.post(url, json=payload) as resp:
                    if resp.status >= 400:
                        raise InferenceServiceError(await self._error_detail(resp), resp.status)
                    try:
                        return await resp.json(content_type=None)
                    except ValueError:
                        raise InferenceServiceError("invalid JSON in response", resp.status)
        except InferenceClientError:
            raise
        except asyncio.TimeoutError:
            logger.error(f"❌ Prediction service timed out after {timeout}s: {url}")
            raise InferenceNoResponse()
        except aiohttp.ClientConnectorError as e:
            logger.error(f"❌ Prediction service unreachable at {url}: {e}")
            raise InferenceConnectionRefused()
        except (aiohttp.ServerDisconnectedError, aiohttp.ServerTimeoutError) as e:
            logger.error(f"❌ No response from prediction service: {e}")
            raise InferenceNoResponse()
        except (aiohttp.InvalidURL, ValueError, TypeError) as e:
            logger.error(f"❌ Could not build prediction request for {url}: {e}")
            raise InferenceRequestConfigError(f"Error configuring prediction request: {e}")
        except aiohttp.ClientError as e:
            logger.error(f"❌ Prediction request failed: {e}")
            raise InferenceNoResponse(f"No response from prediction service: {e}")

    @staticmethod
    async def _error_detail(resp: aiohttp.ClientResponse) -> str:
        text = await resp.text()
        try:
            data = await resp.json(content_type=None)
        except ValueError:
            return text or f"HTTP {resp.status}"
        if isinstance(data, dict):
            detail = data.get("detail") or data.get("error")
            if detail:
                return str(detail)
        return text or f"HTTP {resp.status}"

    async def health_check(self) -> Dict[str, Any]:
        """Never raises; failures come back as a status payload."""
        try:
            async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.health_timeout)) as session:
                async with session.get(f"{self.base_url}/health") as resp:
                    if resp.status != 200:
                        return {"status": "ERROR", "error": f"HTTP {resp.status}: {await resp.text()}"}
                    return await resp.json(content_type=None)
        except asyncio.TimeoutError:
            return {"status": "ERROR", "error": "Health check timed out"}
        except Exception as e:
            return {"status": "ERROR", "error": str(e) or type(e).__name__}

    def check_health(self) -> bool:
        try:
            r = requests.get(f"{self.base_url}/health", timeout=self.health_timeout)
            if r.status_code == 200:
                return r.json().get("model_loaded", True) is not False
            return False
        except Exception:
            return False
