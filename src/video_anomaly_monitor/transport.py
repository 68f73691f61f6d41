"""Async HTTP client for the surveillance server endpoints."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError

from .errors import TransportFailure
from .models import AnomalySnapshot, CustomAnomaly, SystemStatus

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://192.168.1.15:3000"
DEFAULT_TIMEOUT_S = 10.0

STATUS_PATH = "/api/status"
LATEST_ANOMALY_PATH = "/api/anomalies/latest"
CUSTOM_ANOMALIES_PATH = "/api/get-custom-anomalies"
CLEAR_ANOMALY_PATH = "/api/anomalies/clear"


class SurveillanceClient:
    """Thin wrapper around ``httpx.AsyncClient`` for the four API calls.

    Every failure mode (connection error, timeout, non-2xx status, body that
    is not the expected JSON shape) surfaces as :class:`TransportFailure`.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.timeout_s = float(timeout_s)
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout_s, transport=transport)

    async def __aenter__(self) -> "SurveillanceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch_status(self) -> SystemStatus:
        data = await self._request("GET", STATUS_PATH)
        return self._parse(SystemStatus, data, STATUS_PATH)

    async def fetch_latest_anomaly(self) -> AnomalySnapshot:
        data = await self._request("GET", LATEST_ANOMALY_PATH)
        return self._parse(AnomalySnapshot, data, LATEST_ANOMALY_PATH)

    async def fetch_custom_anomalies(self) -> List[CustomAnomaly]:
        data = await self._request("GET", CUSTOM_ANOMALIES_PATH)
        if not isinstance(data, list):
            raise TransportFailure(CUSTOM_ANOMALIES_PATH, f"expected a list, got {type(data).__name__}")
        return [self._parse(CustomAnomaly, item, CUSTOM_ANOMALIES_PATH) for item in data]

    async def clear_anomaly(self) -> None:
        await self._request("POST", CLEAR_ANOMALY_PATH, expect_json=False)

    async def _request(self, method: str, path: str, *, expect_json: bool = True) -> Any:
        try:
            response = await self._client.request(method, path)
        except httpx.HTTPError as exc:
            raise TransportFailure(path, f"{exc.__class__.__name__}: {exc}") from exc
        if not response.is_success:
            raise TransportFailure(path, response.reason_phrase or "request failed", status_code=response.status_code)
        if not expect_json:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise TransportFailure(path, "response body is not valid JSON", status_code=response.status_code) from exc

    @staticmethod
    def _parse(model: type, data: Any, path: str) -> Any:
        if not isinstance(data, dict):
            raise TransportFailure(path, f"expected an object, got {type(data).__name__}")
        try:
            return model.model_validate(data)
        except ValidationError as exc:
            raise TransportFailure(path, f"unexpected payload: {exc.error_count()} validation errors") from exc
