from __future__ import annotations

import asyncio
import io
import logging
import threading
from typing import List

import pytest

from video_anomaly_monitor import (
    Alert,
    AlertChannel,
    AlertDispatcher,
    CallbackChannel,
    ConfigError,
    ConsoleChannel,
    LoggingChannel,
    WebhookChannel,
    dispatcher_from_config,
)


def make_alert() -> Alert:
    return Alert(title="Anomaly Detected!", message="Person at gate", kind="anomaly", notification_id="1")


def test_console_channel_prints_modal_block() -> None:
    stream = io.StringIO()

    ConsoleChannel(stream=stream, width=10).send(make_alert())

    assert stream.getvalue().splitlines() == [
        "=" * 10,
        "Anomaly Detected!",
        "Person at gate",
        "[OK]",
        "=" * 10,
    ]


def test_logging_channel_emits_payload(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="video_anomaly_monitor.alerting"):
        LoggingChannel().send(make_alert())

    assert "Person at gate" in caplog.text


def test_failing_channel_does_not_block_others(caplog) -> None:
    received = []

    def broken(alert: Alert) -> None:
        raise RuntimeError("display unavailable")

    dispatcher = AlertDispatcher([CallbackChannel(broken), CallbackChannel(received.append)])
    with caplog.at_level(logging.ERROR):
        dispatcher.dispatch(make_alert())

    assert len(received) == 1
    assert "CallbackChannel failed" in caplog.text


def test_dispatcher_defaults_to_logging() -> None:
    assert isinstance(AlertDispatcher().channels[0], LoggingChannel)


def test_dispatcher_from_config() -> None:
    dispatcher = dispatcher_from_config(
        {"channels": [{"type": "console"}, {"type": "webhook", "url": "http://hooks.test/alert"}]}
    )

    assert [type(ch) for ch in dispatcher.channels] == [ConsoleChannel, WebhookChannel]


def test_dispatcher_from_config_rejects_bad_channels() -> None:
    with pytest.raises(ConfigError):
        dispatcher_from_config({"channels": [{"type": "pager"}]})
    with pytest.raises(ConfigError):
        dispatcher_from_config({"channels": [{"type": "webhook"}]})


def test_alert_as_dict_is_json_ready() -> None:
    payload = make_alert().as_dict()

    assert payload["title"] == "Anomaly Detected!"
    assert isinstance(payload["raised_at"], str)


class GatedChannel(AlertChannel):
    blocking = True

    def __init__(self) -> None:
        self.release = threading.Event()
        self.sent: List[Alert] = []

    def send(self, alert: Alert) -> None:
        self.release.wait(timeout=5)
        self.sent.append(alert)


def test_blocking_channel_is_sent_off_the_event_loop() -> None:
    channel = GatedChannel()
    received: List[Alert] = []
    dispatcher = AlertDispatcher([channel, CallbackChannel(received.append)])

    async def scenario() -> None:
        dispatcher.dispatch(make_alert())
        assert len(received) == 1
        assert channel.sent == []
        channel.release.set()
        await dispatcher.drain()

    asyncio.run(scenario())

    assert len(channel.sent) == 1


def test_blocking_channel_is_sent_inline_without_a_loop() -> None:
    channel = GatedChannel()
    channel.release.set()

    AlertDispatcher([channel]).dispatch(make_alert())

    assert len(channel.sent) == 1


def test_webhook_channel_is_blocking() -> None:
    assert WebhookChannel("http://hooks.test/alert").blocking
    assert not ConsoleChannel().blocking


def test_dispatcher_from_config_rejects_non_mapping_entry() -> None:
    with pytest.raises(ConfigError):
        dispatcher_from_config({"channels": ["console"]})
