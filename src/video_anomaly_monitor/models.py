"""Pydantic models for the surveillance API payloads and the notification feed."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SystemStatus(BaseModel):
    """Server-side tracking status shown on the status card."""

    model_config = ConfigDict(extra="allow")

    live_tracking_active: bool = False
    last_analysis_time: Optional[str] = None
    frames_captured: int = Field(default=0, ge=0)
    timestamp: Optional[str] = None


class AnomalySnapshot(BaseModel):
    """Latest live-detection anomaly as reported by ``/api/anomalies/latest``."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    has_anomaly: bool = False
    report: Optional[str] = None
    timestamp: Optional[str] = None

    @property
    def is_reportable(self) -> bool:
        return bool(self.success and self.has_anomaly and self.report)


class CustomAnomaly(BaseModel):
    """One pending entry of ``/api/get-custom-anomalies``."""

    model_config = ConfigDict(extra="allow")

    anomaly: Optional[str] = None
    timestamp: Optional[str] = None


class NotificationKind(str, Enum):
    ANOMALY = "anomaly"
    INFO = "info"


class Notification(BaseModel):
    """Entry of the notification feed. Never mutated once created."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_time: str
    message: str
    kind: NotificationKind
    created_at: datetime

    def short_label(self) -> str:
        return f"{self.kind.value}@{self.display_time}"


class MonitorState(BaseModel):
    """Read-only copy of everything the presentation layer renders."""

    status: Optional[SystemStatus] = None
    anomaly: Optional[AnomalySnapshot] = None
    notifications: List[Notification] = Field(default_factory=list)
    failures: dict[str, int] = Field(default_factory=dict)

    @property
    def active_anomaly(self) -> Optional[str]:
        if self.anomaly is not None and self.anomaly.has_anomaly:
            return self.anomaly.report or ""
        return None
