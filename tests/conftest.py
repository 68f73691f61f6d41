from __future__ import annotations

from typing import Any, Dict, List

import httpx
import pytest

from video_anomaly_monitor import (
    Alert,
    AlertDispatcher,
    AnomalyMonitor,
    CallbackChannel,
    NotificationFeed,
    SurveillanceClient,
)


class FakeSurveillanceServer:
    """In-memory stand-in for the surveillance API, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.status: Dict[str, Any] = {
            "live_tracking_active": True,
            "last_analysis_time": "2024-05-01T10:14:00",
            "frames_captured": 42,
            "timestamp": "2024-05-01T10:15:00",
        }
        self.latest: Dict[str, Any] = {"success": True, "has_anomaly": False, "report": "", "timestamp": None}
        self.custom: List[Dict[str, Any]] = []
        self.failing: set[str] = set()
        self.requests: List[str] = []
        self.clear_calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(f"{request.method} {path}")
        if path in self.failing:
            return httpx.Response(503, json={"error": "unavailable"})
        if request.method == "GET" and path == "/api/status":
            return httpx.Response(200, json=self.status)
        if request.method == "GET" and path == "/api/anomalies/latest":
            return httpx.Response(200, json=self.latest)
        if request.method == "GET" and path == "/api/get-custom-anomalies":
            return httpx.Response(200, json=self.custom)
        if request.method == "POST" and path == "/api/anomalies/clear":
            self.clear_calls += 1
            return httpx.Response(200, json={"success": True})
        return httpx.Response(404)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def server() -> FakeSurveillanceServer:
    return FakeSurveillanceServer()


@pytest.fixture
def alerts() -> List[Alert]:
    return []


@pytest.fixture
def feed(alerts: List[Alert]) -> NotificationFeed:
    return NotificationFeed(AlertDispatcher([CallbackChannel(alerts.append)]))


@pytest.fixture
def monitor(server: FakeSurveillanceServer, feed: NotificationFeed) -> AnomalyMonitor:
    client = SurveillanceClient("http://surveillance.test", transport=server.transport)
    return AnomalyMonitor(client, feed)
