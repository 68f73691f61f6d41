"""User-facing alert channels for newly ingested notifications."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, List, Mapping, Optional, Set, TextIO
from urllib import request

from .errors import ConfigError

logger = logging.getLogger(__name__)

ANOMALY_TITLE = "Anomaly Detected!"
CUSTOM_ANOMALY_TITLE = "Custom Anomaly Detected!"

WEBHOOK_CHANNEL_TYPES = {"webhook", "http"}
CHANNEL_TYPES = {"log", "logging", "console", *WEBHOOK_CHANNEL_TYPES}


@dataclass
class Alert:
    """A blocking-style alert: a title, the full report and an acknowledgement."""

    title: str
    message: str
    kind: str
    notification_id: str
    raised_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    acknowledge_label: str = "OK"

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["raised_at"] = self.raised_at.isoformat()
        return payload


# --- Alert channels ----------------------------------------------------------


class AlertChannel:
    """Base alert destination."""

    blocking = False

    def send(self, alert: Alert) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class LoggingChannel(AlertChannel):
    """Default alert channel emitting to the logger."""

    def __init__(self, level: int = logging.WARNING) -> None:
        self.level = level

    def send(self, alert: Alert) -> None:
        logger.log(self.level, "[alert] %s", json.dumps(alert.as_dict(), default=str))


class ConsoleChannel(AlertChannel):
    """Prints alerts as a framed block, the terminal stand-in for a modal."""

    def __init__(self, stream: Optional[TextIO] = None, width: int = 60) -> None:
        self.stream = stream
        self.width = width

    def send(self, alert: Alert) -> None:
        out = self.stream or sys.stdout
        border = "=" * self.width
        out.write(f"{border}\n{alert.title}\n{alert.message}\n[{alert.acknowledge_label}]\n{border}\n")
        out.flush()


class CallbackChannel(AlertChannel):
    """Hands alerts to a user supplied callable (GUI modal, sound, ...)."""

    def __init__(self, callback: Callable[[Alert], None]) -> None:
        self.callback = callback

    def send(self, alert: Alert) -> None:
        self.callback(alert)


class WebhookChannel(AlertChannel):
    """Sends alerts to an HTTP webhook."""

    blocking = True

    def __init__(self, url: str, headers: Optional[Mapping[str, str]] = None, timeout: int = 5) -> None:
        self.url = url
        self.headers = {**({"Content-Type": "application/json"} if headers is None else headers)}
        self.timeout = timeout

    def send(self, alert: Alert) -> None:  # pragma: no cover - network
        data = json.dumps(alert.as_dict(), default=str).encode("utf-8")
        req = request.Request(self.url, data=data, headers=self.headers)
        with request.urlopen(req, timeout=self.timeout) as resp:  # noqa: S310
            if resp.status >= 300:
                raise RuntimeError(f"Webhook returned {resp.status}")


# --- Dispatcher --------------------------------------------------------------


class AlertDispatcher:
    """Fans an alert out to every configured channel.

    Channels marked ``blocking`` are sent from a worker thread when an event
    loop is running in the calling thread, so a slow webhook never stalls the
    poller. ``drain`` waits for those sends to finish.
    """

    def __init__(self, channels: Iterable[AlertChannel] = ()) -> None:
        self.channels: List[AlertChannel] = list(channels) or [LoggingChannel()]
        self._pending: Set[asyncio.Future[None]] = set()

    def add_channel(self, channel: AlertChannel) -> None:
        self.channels.append(channel)

    def dispatch(self, alert: Alert) -> None:
        loop = _running_loop()
        for channel in self.channels:
            if channel.blocking and loop is not None:
                future = loop.run_in_executor(None, self._send, channel, alert)
                self._pending.add(future)
                future.add_done_callback(self._pending.discard)
            else:
                self._send(channel, alert)

    async def drain(self) -> None:
        if self._pending:
            await asyncio.gather(*list(self._pending))

    @staticmethod
    def _send(channel: AlertChannel, alert: Alert) -> None:
        try:
            channel.send(alert)
        except Exception:
            logger.exception("Alert channel %s failed", channel.__class__.__name__)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def dispatcher_from_config(cfg: Mapping[str, Any] | None) -> AlertDispatcher:
    """Construct an AlertDispatcher from the ``alerts`` config mapping."""

    channels_cfg = cfg.get("channels", []) if cfg else []

    channels: list[AlertChannel] = []
    for ch in channels_cfg:
        if not isinstance(ch, Mapping):
            raise ConfigError(f"Alert channel entry should be a mapping (got {ch!r})")
        ctype = str(ch.get("type", "log")).lower()
        if ctype in {"log", "logging"}:
            channels.append(LoggingChannel())
        elif ctype == "console":
            channels.append(ConsoleChannel())
        elif ctype in WEBHOOK_CHANNEL_TYPES:
            url = ch.get("url")
            if not url:
                raise ConfigError("Webhook channel requires 'url'")
            channels.append(WebhookChannel(url=str(url), headers=ch.get("headers")))
        else:
            raise ConfigError(f"Unknown alert channel type '{ctype}'")

    return AlertDispatcher(channels)
