"""FastAPI service exposing the monitor state to browsers and scripts."""

from __future__ import annotations

import html
from contextlib import asynccontextmanager
from datetime import datetime
from importlib import metadata
from typing import Any, AsyncIterator, Dict

from fastapi import FastAPI, Query, Response

from .models import MonitorState, NotificationKind
from .monitor import AnomalyMonitor
from .poller import DEFAULT_INTERVAL_S, Poller
from .reporting import greeting

try:
    __version__ = metadata.version("video-anomaly-monitor")
except metadata.PackageNotFoundError:  # pragma: no cover
    __version__ = "0.1.0"

DOT_COLORS = {NotificationKind.ANOMALY: "#FF1744", NotificationKind.INFO: "#00BCD4"}


def _render_html(state: MonitorState, user_name: str | None) -> str:
    now = datetime.now()
    if state.status is not None:
        status_html = (
            f"<span>Status: {'Active' if state.status.live_tracking_active else 'Inactive'}</span>"
            f"<span>Frames: {state.status.frames_captured}</span>"
        )
    else:
        status_html = "<span>(status unavailable)</span>"

    items = "".join(
        f'<div class="item"><span class="dot" style="background:{DOT_COLORS[n.kind]}"></span>'
        f"<div><b>{html.escape(n.display_time)}</b><br>{html.escape(n.message)}</div></div>"
        for n in state.notifications
    ) or "<div class=\"item\">(no notifications)</div>"

    banner = ""
    if state.active_anomaly is not None:
        banner = (
            '<div class="card alert"><h3>Active Anomaly Detected</h3>'
            f"<p>{html.escape(state.active_anomaly)}</p>"
            '<form method="post" action="/acknowledge"><button>Acknowledge</button></form></div>'
        )

    return f"""
    <html>
    <head>
        <title>Video Anomaly Monitor</title>
        <meta http-equiv="refresh" content="5">
        <style>
            body {{ font-family: system-ui, sans-serif; background: #F5F5F5; color: #333; margin: 0; padding: 24px; }}
            .card {{ background: white; border-radius: 15px; padding: 20px; margin-bottom: 20px; box-shadow: 0 2px 8px rgba(0,0,0,0.1); }}
            .status span {{ margin-right: 24px; color: #666; }}
            .item {{ display: flex; align-items: center; padding: 12px 0; border-bottom: 1px solid #F0F0F0; }}
            .dot {{ width: 12px; height: 12px; border-radius: 6px; margin-right: 15px; }}
            .alert {{ background: linear-gradient(120deg, #FF5252, #FF1744); color: white; }}
        </style>
    </head>
    <body>
    <h1>{html.escape(greeting(now, user_name))}</h1>
    <div class="card status">{status_html}</div>
    {banner}
    <div class="card">
        <h3>Live Feed Anomaly Notifications</h3>
        <p>Today, {now.strftime('%A')}</p>
        {items}
    </div>
    </body>
    </html>
    """


def create_app(
    monitor: AnomalyMonitor,
    *,
    poll: bool = True,
    interval_s: float = DEFAULT_INTERVAL_S,
    user_name: str | None = None,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if poll:
            async with Poller(monitor, interval_s=interval_s) as poller:
                app.state.poller = poller
                yield
        else:
            yield
        await monitor.aclose()

    app = FastAPI(title="Video Anomaly Monitor", version=__version__, lifespan=lifespan)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        failures = monitor.state().failures
        return {"status": "degraded" if failures else "ok", "failures": failures}

    @app.get("/version")
    def version() -> Dict[str, str]:
        return {"version": __version__}

    @app.get("/status")
    def status() -> Dict[str, Any]:
        current = monitor.status
        return {"status": current.model_dump(mode="json") if current else None}

    @app.get("/anomaly")
    def anomaly() -> Dict[str, Any]:
        current = monitor.anomaly
        return {"anomaly": current.model_dump(mode="json") if current else None}

    @app.get("/notifications")
    def notifications(limit: int = Query(default=10, ge=1)) -> Dict[str, Any]:
        items = monitor.feed.notifications[:limit]
        return {"notifications": [n.model_dump(mode="json") for n in items]}

    @app.get("/snapshot")
    def snapshot() -> Dict[str, Any]:
        return monitor.state().model_dump(mode="json")

    @app.post("/refresh")
    async def refresh() -> Dict[str, Any]:
        state = await monitor.refresh_all()
        return state.model_dump(mode="json")

    @app.post("/acknowledge")
    async def acknowledge() -> Dict[str, Any]:
        await monitor.acknowledge_active_anomaly()
        current = monitor.anomaly
        return {"anomaly": current.model_dump(mode="json") if current else None}

    @app.get("/")
    def index() -> Response:
        return Response(content=_render_html(monitor.state(), user_name), media_type="text/html")

    app.state.monitor = monitor
    return app
