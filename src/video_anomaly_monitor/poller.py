"""Fixed-interval polling loop bound to an explicit lifecycle."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:
    from .monitor import AnomalyMonitor

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_S = 5.0


class Poller:
    """Refreshes the monitor on a timer until stopped.

    The first cycle runs a full refresh (status included); later cycles only
    poll the latest anomaly and the custom anomaly list.
    """

    def __init__(self, monitor: AnomalyMonitor, interval_s: float = DEFAULT_INTERVAL_S) -> None:
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.monitor = monitor
        self.interval_s = float(interval_s)
        self.cycles = 0
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self.run(), name="vam-poller")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Poller stopped after %d cycles", self.cycles)

    async def __aenter__(self) -> "Poller":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def run(self, *, max_cycles: int | None = None) -> None:
        """Run the polling loop in the current task."""

        while max_cycles is None or self.cycles < max_cycles:
            try:
                await self.poll_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Polling cycle %d failed", self.cycles)
            self.cycles += 1
            if max_cycles is not None and self.cycles >= max_cycles:
                break
            await asyncio.sleep(self.interval_s)

    async def poll_once(self) -> None:
        if self.cycles == 0:
            await self.monitor.refresh_all()
            return
        await asyncio.gather(
            self.monitor.refresh_anomaly_snapshot(),
            self.monitor.refresh_custom_anomalies(),
        )
