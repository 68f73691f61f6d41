"""Monitor owning the status/anomaly snapshots and the notification feed."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Dict, Iterable, List, Optional

import httpx

from .alerting import AlertChannel, dispatcher_from_config
from .config import MonitorConfig
from .errors import TransportFailure
from .feed import NotificationFeed
from .models import AnomalySnapshot, CustomAnomaly, MonitorState, SystemStatus
from .transport import (
    CLEAR_ANOMALY_PATH,
    CUSTOM_ANOMALIES_PATH,
    LATEST_ANOMALY_PATH,
    STATUS_PATH,
    SurveillanceClient,
)

logger = logging.getLogger(__name__)


class AnomalyMonitor:
    """Single mutation surface for everything the dashboard displays.

    Fetch failures are logged and swallowed: the affected snapshot keeps its
    previous value and the feed is left untouched for that cycle.
    """

    def __init__(self, client: SurveillanceClient, feed: NotificationFeed | None = None) -> None:
        self.client = client
        self.feed = feed or NotificationFeed()
        self._status: Optional[SystemStatus] = None
        self._anomaly: Optional[AnomalySnapshot] = None
        self._failures: Dict[str, int] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        cfg: MonitorConfig,
        *,
        channels: Iterable[AlertChannel] = (),
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "AnomalyMonitor":
        dispatcher = dispatcher_from_config(cfg.alerts)
        for channel in channels:
            dispatcher.add_channel(channel)
        feed = NotificationFeed(
            dispatcher,
            max_items=cfg.max_items,
            max_message_length=cfg.max_message_length,
        )
        client = SurveillanceClient(cfg.base_url, timeout_s=cfg.timeout_s, transport=transport)
        return cls(client, feed)

    async def aclose(self) -> None:
        await self.feed.dispatcher.drain()
        await self.client.aclose()

    @property
    def status(self) -> Optional[SystemStatus]:
        return self._status

    @property
    def anomaly(self) -> Optional[AnomalySnapshot]:
        return self._anomaly

    async def refresh_system_status(self) -> Optional[SystemStatus]:
        try:
            status = await self.client.fetch_status()
        except TransportFailure as exc:
            self._record_failure(STATUS_PATH, exc)
            return self._status
        with self._lock:
            self._status = status
        self._record_success(STATUS_PATH)
        return status

    async def refresh_anomaly_snapshot(self) -> Optional[AnomalySnapshot]:
        try:
            snapshot = await self.client.fetch_latest_anomaly()
        except TransportFailure as exc:
            self._record_failure(LATEST_ANOMALY_PATH, exc)
            return self._anomaly
        with self._lock:
            self._anomaly = snapshot
        self._record_success(LATEST_ANOMALY_PATH)
        if snapshot.is_reportable:
            self.feed.ingest_anomaly(snapshot.report, snapshot.timestamp)  # type: ignore[arg-type]
        return snapshot

    async def refresh_custom_anomalies(self) -> List[CustomAnomaly]:
        try:
            pending = await self.client.fetch_custom_anomalies()
        except TransportFailure as exc:
            self._record_failure(CUSTOM_ANOMALIES_PATH, exc)
            return []
        self._record_success(CUSTOM_ANOMALIES_PATH)
        for item in pending:
            if not item.anomaly:
                logger.debug("Skipping custom anomaly without text")
                continue
            self.feed.ingest_custom_anomaly(item.anomaly, item.timestamp)
        return pending

    async def acknowledge_active_anomaly(self) -> None:
        """Clear the active anomaly locally, then tell the server best-effort."""
        with self._lock:
            if self._anomaly is not None:
                self._anomaly = self._anomaly.model_copy(update={"has_anomaly": False})
        try:
            await self.client.clear_anomaly()
        except TransportFailure as exc:
            self._record_failure(CLEAR_ANOMALY_PATH, exc)
        else:
            self._record_success(CLEAR_ANOMALY_PATH)

    async def refresh_all(self) -> MonitorState:
        """Pull-to-refresh: fetch status, latest anomaly and custom anomalies together."""
        await asyncio.gather(
            self.refresh_system_status(),
            self.refresh_anomaly_snapshot(),
            self.refresh_custom_anomalies(),
        )
        return self.state()

    def state(self) -> MonitorState:
        with self._lock:
            return MonitorState(
                status=self._status,
                anomaly=self._anomaly,
                notifications=self.feed.notifications,
                failures=dict(self._failures),
            )

    def _record_failure(self, endpoint: str, exc: TransportFailure) -> None:
        with self._lock:
            count = self._failures.get(endpoint, 0) + 1
            self._failures[endpoint] = count
        logger.warning("Request to %s failed (%d consecutive): %s", endpoint, count, exc.reason)

    def _record_success(self, endpoint: str) -> None:
        with self._lock:
            self._failures.pop(endpoint, None)
