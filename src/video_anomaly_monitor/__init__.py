"""Polling client that turns surveillance-server anomalies into a deduplicated alert feed."""

from .alerting import (
    Alert,
    AlertChannel,
    AlertDispatcher,
    CallbackChannel,
    ConsoleChannel,
    LoggingChannel,
    WebhookChannel,
    dispatcher_from_config,
)
from .config import MonitorConfig, build_config, load_monitor_config, validate_config, validate_config_file
from .errors import ConfigError, MonitorError, TransportFailure
from .feed import NotificationFeed, truncate_message
from .models import AnomalySnapshot, CustomAnomaly, MonitorState, Notification, NotificationKind, SystemStatus
from .monitor import AnomalyMonitor
from .poller import Poller
from .reporting import render_dashboard, write_dashboard
from .service import __version__, create_app
from .transport import SurveillanceClient

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertDispatcher",
    "CallbackChannel",
    "ConsoleChannel",
    "LoggingChannel",
    "WebhookChannel",
    "dispatcher_from_config",
    "MonitorConfig",
    "build_config",
    "load_monitor_config",
    "validate_config",
    "validate_config_file",
    "ConfigError",
    "MonitorError",
    "TransportFailure",
    "NotificationFeed",
    "truncate_message",
    "AnomalySnapshot",
    "CustomAnomaly",
    "MonitorState",
    "Notification",
    "NotificationKind",
    "SystemStatus",
    "AnomalyMonitor",
    "Poller",
    "render_dashboard",
    "write_dashboard",
    "create_app",
    "SurveillanceClient",
    "__version__",
]
