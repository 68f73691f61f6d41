from __future__ import annotations

import asyncio

import pytest

from video_anomaly_monitor import AnomalyMonitor, Poller


def test_first_cycle_refreshes_status_then_only_anomalies(server, monitor: AnomalyMonitor) -> None:
    poller = Poller(monitor, interval_s=0.001)

    asyncio.run(poller.run(max_cycles=3))

    assert poller.cycles == 3
    assert server.requests.count("GET /api/status") == 1
    assert server.requests.count("GET /api/anomalies/latest") == 3
    assert server.requests.count("GET /api/get-custom-anomalies") == 3


def test_new_anomaly_between_polls_is_alerted_once(server, monitor: AnomalyMonitor, alerts) -> None:
    server.latest = {"success": True, "has_anomaly": True, "report": "Person at back door"}
    poller = Poller(monitor, interval_s=0.001)

    asyncio.run(poller.run(max_cycles=4))

    assert [n.message for n in monitor.feed.notifications] == ["Person at back door"]
    assert len(alerts) == 1


def test_stop_cancels_background_task(server, monitor: AnomalyMonitor) -> None:
    async def scenario() -> Poller:
        poller = Poller(monitor, interval_s=0.01)
        poller.start()
        assert poller.running
        await asyncio.sleep(0.05)
        await poller.stop()
        return poller

    poller = asyncio.run(scenario())

    assert not poller.running
    assert poller.cycles >= 1


def test_context_manager_stops_poller_on_exit(server, monitor: AnomalyMonitor) -> None:
    async def scenario() -> Poller:
        async with Poller(monitor, interval_s=0.01) as poller:
            await asyncio.sleep(0.03)
        return poller

    poller = asyncio.run(scenario())

    assert not poller.running
    calls = len(server.requests)
    assert calls >= 3


def test_stop_is_idempotent(monitor: AnomalyMonitor) -> None:
    async def scenario() -> None:
        poller = Poller(monitor, interval_s=1.0)
        await poller.stop()
        poller.start()
        await poller.stop()
        await poller.stop()

    asyncio.run(scenario())


def test_failing_cycle_does_not_stop_polling(server, monitor: AnomalyMonitor, monkeypatch) -> None:
    calls = []

    async def broken() -> None:
        calls.append(1)
        raise RuntimeError("boom")

    monkeypatch.setattr(monitor, "refresh_all", broken)
    poller = Poller(monitor, interval_s=0.001)

    asyncio.run(poller.run(max_cycles=2))

    assert calls == [1]
    assert poller.cycles == 2


def test_interval_must_be_positive(monitor: AnomalyMonitor) -> None:
    with pytest.raises(ValueError):
        Poller(monitor, interval_s=0)


def test_manual_refresh_during_poll_cycle_alerts_once(server, monitor: AnomalyMonitor, alerts) -> None:
    server.latest = {"success": True, "has_anomaly": True, "report": "Person at back door"}
    server.custom = [{"anomaly": "Gate open"}, {"anomaly": "Person at back door"}]
    poller = Poller(monitor, interval_s=0.001)

    async def scenario() -> None:
        await asyncio.gather(poller.run(max_cycles=2), monitor.refresh_all(), monitor.refresh_all())

    asyncio.run(scenario())

    retained = [n.message for n in monitor.feed.notifications]
    assert sorted(retained) == ["Gate open", "Person at back door"]
    assert sorted(a.message for a in alerts) == sorted(retained)
