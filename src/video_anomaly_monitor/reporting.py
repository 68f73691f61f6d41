"""Text and Markdown renderings of the monitor dashboard."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List

from .feed import parse_timestamp
from .models import MonitorState, NotificationKind

KIND_MARKERS = {
    NotificationKind.ANOMALY: "[ANOMALY]",
    NotificationKind.INFO: "[INFO]",
}


def greeting(now: datetime, user_name: str | None = None) -> str:
    if now.hour < 12:
        text = "Good Morning"
    elif now.hour < 18:
        text = "Good Afternoon"
    else:
        text = "Good Evening"
    return f"{text}, {user_name}" if user_name else text


def _status_lines(state: MonitorState) -> List[str]:
    status = state.status
    if status is None:
        return ["(status unavailable)"]
    lines = [
        f"Status: {'Active' if status.live_tracking_active else 'Inactive'}",
        f"Frames: {status.frames_captured}",
    ]
    if status.last_analysis_time:
        analysed = parse_timestamp(status.last_analysis_time)
        shown = analysed.astimezone().strftime("%Y-%m-%d %H:%M") if analysed else status.last_analysis_time
        lines.append(f"Last analysis: {shown}")
    return lines


def dashboard_lines(state: MonitorState, *, now: datetime | None = None, user_name: str | None = None) -> List[str]:
    now = now or datetime.now()
    lines = [greeting(now, user_name), ""]

    lines.append("## Live Analysis")
    lines.extend(_status_lines(state))
    failing = sorted(endpoint for endpoint, count in state.failures.items() if count)
    if failing:
        lines.append(f"Unreachable: {', '.join(failing)}")

    if state.active_anomaly is not None:
        lines.extend(["", "## Active Anomaly Detected", state.active_anomaly or "(no report)"])

    lines.extend(["", "## Live Feed Anomaly Notifications", f"Today, {now.strftime('%A')}"])
    if state.notifications:
        lines.extend(
            f"- {KIND_MARKERS[item.kind]} {item.display_time} {item.message}" for item in state.notifications
        )
    else:
        lines.append("(no notifications)")
    return lines


def render_dashboard(state: MonitorState, *, now: datetime | None = None, user_name: str | None = None) -> str:
    """Render the status card, active anomaly banner and notification feed."""
    return "\n".join(dashboard_lines(state, now=now, user_name=user_name)) + "\n"


def write_dashboard(
    state: MonitorState,
    output_path: str | Path,
    *,
    now: datetime | None = None,
    user_name: str | None = None,
) -> Path:
    """Write the dashboard as a Markdown file and return its path."""

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    body = render_dashboard(state, now=now, user_name=user_name)
    output_path.write_text(f"# Video Anomaly Monitor\n\n{body}", encoding="utf-8")
    return output_path
