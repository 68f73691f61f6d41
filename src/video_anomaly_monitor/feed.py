"""Bounded, deduplicated notification feed with at-most-once alerting."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Deque, Iterator, List, Optional

from .alerting import ANOMALY_TITLE, CUSTOM_ANOMALY_TITLE, Alert, AlertDispatcher
from .logging_utils import log_event
from .models import Notification, NotificationKind

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 10
MAX_MESSAGE_LENGTH = 100
TRUNCATION_MARKER = "..."


def _local_now() -> datetime:
    return datetime.now().astimezone()


def truncate_message(report: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Keep the first ``limit`` characters, marking the cut when there was one."""
    if len(report) > limit:
        return report[:limit] + TRUNCATION_MARKER
    return report


def parse_timestamp(value: str | None) -> Optional[datetime]:
    """Parse an ISO-8601 server timestamp; naive values are taken as local time."""
    if not value:
        return None
    text = value.strip().replace("Z", "+00:00")
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.astimezone()
    return parsed


def format_display_time(timestamp: str | None, now: datetime) -> str:
    """Hour and minute in local time, from the event timestamp or from ``now``."""
    moment = parse_timestamp(timestamp)
    if moment is None:
        if timestamp:
            logger.debug("Unparseable timestamp %r, using ingestion time", timestamp)
        moment = now
    return moment.astimezone().strftime("%H:%M")


class NotificationFeed:
    """Owns the notification list and raises one alert per retained item.

    The list is ordered most-recent-first by insertion and capped at
    ``max_items``; an item whose stored message equals one already retained is
    dropped without touching the list or alerting. The dedup check and the
    insert run under one lock.
    """

    def __init__(
        self,
        dispatcher: AlertDispatcher | None = None,
        *,
        max_items: int = MAX_NOTIFICATIONS,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        if max_message_length <= 0:
            raise ValueError("max_message_length must be positive")
        self.dispatcher = dispatcher or AlertDispatcher()
        self.max_items = int(max_items)
        self.max_message_length = int(max_message_length)
        self._clock = clock
        self._items: Deque[Notification] = deque(maxlen=self.max_items)
        self._lock = threading.Lock()
        self._last_id = 0

    def ingest_anomaly(self, report: str, timestamp: str | None = None) -> Optional[Notification]:
        """Add a live-feed anomaly; returns the new notification or None if suppressed."""
        return self._ingest(report, timestamp, NotificationKind.ANOMALY, ANOMALY_TITLE)

    def ingest_custom_anomaly(self, report: str, timestamp: str | None = None) -> Optional[Notification]:
        """Add a custom anomaly; shares the dedup space with live anomalies."""
        return self._ingest(report, timestamp, NotificationKind.INFO, CUSTOM_ANOMALY_TITLE)

    @property
    def notifications(self) -> List[Notification]:
        with self._lock:
            return list(self._items)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __iter__(self) -> Iterator[Notification]:
        return iter(self.notifications)

    def _next_id(self) -> str:
        now_ns = time.time_ns()
        self._last_id = max(now_ns, self._last_id + 1)
        return str(self._last_id)

    def _ingest(
        self,
        report: str,
        timestamp: str | None,
        kind: NotificationKind,
        title: str,
    ) -> Optional[Notification]:
        if not report:
            raise ValueError("report must be a non-empty string")

        now = self._clock()
        message = truncate_message(report, self.max_message_length)

        with self._lock:
            if any(item.message == message for item in self._items):
                logger.debug("Suppressed duplicate %s notification: %.40s", kind.value, message)
                return None
            notification = Notification(
                id=self._next_id(),
                display_time=format_display_time(timestamp, now),
                message=message,
                kind=kind,
                created_at=now.astimezone(timezone.utc),
            )
            self._items.appendleft(notification)

        log_event(logger, "notification_added", id=notification.id, kind=kind.value, display_time=notification.display_time)
        self.dispatcher.dispatch(
            Alert(title=title, message=report, kind=kind.value, notification_id=notification.id)
        )
        return notification
