"""Configuration loading and validation for the monitor client."""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping
from urllib.parse import urlparse

import yaml

from .alerting import CHANNEL_TYPES, WEBHOOK_CHANNEL_TYPES
from .errors import ConfigError
from .feed import MAX_MESSAGE_LENGTH, MAX_NOTIFICATIONS
from .poller import DEFAULT_INTERVAL_S
from .transport import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_S

BASE_URL_ENV = "VAM_BASE_URL"

KNOWN_SECTIONS = {"server", "polling", "feed", "display", "alerts"}


@dataclass
class MonitorConfig:
    base_url: str = DEFAULT_BASE_URL
    timeout_s: float = DEFAULT_TIMEOUT_S
    interval_s: float = DEFAULT_INTERVAL_S
    max_items: int = MAX_NOTIFICATIONS
    max_message_length: int = MAX_MESSAGE_LENGTH
    user_name: str | None = None
    alerts: Dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationResult:
    errors: List[str]
    warnings: List[str]
    normalized: Dict[str, Any]

    @property
    def ok(self) -> bool:
        return not self.errors

    def as_dict(self) -> Dict[str, Any]:
        return {
            "errors": self.errors,
            "warnings": self.warnings,
            "normalized": self.normalized,
        }


def _section(config: Mapping[str, Any], name: str, errors: list[str]) -> Mapping[str, Any]:
    value = config.get(name) or {}
    if not isinstance(value, Mapping):
        errors.append(f"Section '{name}' should be a mapping (got {type(value).__name__})")
        return {}
    return value


def _positive(value: Any, name: str, errors: list[str], *, integer: bool = False) -> Any:
    if isinstance(value, bool):
        errors.append(f"Field '{name}' should be a number (got {value!r})")
        return value
    try:
        if integer and isinstance(value, float) and not value.is_integer():
            raise ValueError(value)
        number = int(value) if integer else float(value)
    except (TypeError, ValueError):
        kind = "an integer" if integer else "a number"
        errors.append(f"Field '{name}' should be {kind} (got {value!r})")
        return value
    if number <= 0:
        errors.append(f"Field '{name}' must be > 0 (got {number})")
    return number


def _check_channels(channels: Any, errors: list[str]) -> None:
    if not isinstance(channels, list):
        errors.append("Field 'alerts.channels' should be a list")
        return
    for idx, channel in enumerate(channels):
        where = f"alerts.channels[{idx}]"
        if not isinstance(channel, Mapping):
            errors.append(f"Field '{where}' should be a mapping (got {channel!r})")
            continue
        ctype = str(channel.get("type", "log")).lower()
        if ctype not in CHANNEL_TYPES:
            errors.append(f"Field '{where}.type' is not a known channel type (got {ctype!r})")
        elif ctype in WEBHOOK_CHANNEL_TYPES and not channel.get("url"):
            errors.append(f"Field '{where}.url' is required for webhook channels")


def validate_config(config: Mapping[str, Any]) -> ValidationResult:
    """Validate a configuration mapping and fill in defaults.

    The input is not mutated. Unknown top-level sections only produce
    warnings; bad values in known fields are errors.
    """

    errors: list[str] = []
    warnings: list[str] = []

    for key in config:
        if key not in KNOWN_SECTIONS:
            warnings.append(f"Unknown section '{key}' ignored")

    server = _section(config, "server", errors)
    polling = _section(config, "polling", errors)
    feed = _section(config, "feed", errors)
    display = _section(config, "display", errors)
    alerts = _section(config, "alerts", errors)

    base_url = str(server.get("base_url", DEFAULT_BASE_URL))
    parsed = urlparse(base_url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        errors.append(f"Field 'server.base_url' must be an http(s) URL (got {base_url!r})")

    normalized = {
        "base_url": base_url.rstrip("/"),
        "timeout_s": _positive(server.get("timeout_s", DEFAULT_TIMEOUT_S), "server.timeout_s", errors),
        "interval_s": _positive(polling.get("interval_s", DEFAULT_INTERVAL_S), "polling.interval_s", errors),
        "max_items": _positive(feed.get("max_items", MAX_NOTIFICATIONS), "feed.max_items", errors, integer=True),
        "max_message_length": _positive(
            feed.get("max_message_length", MAX_MESSAGE_LENGTH), "feed.max_message_length", errors, integer=True
        ),
        "user_name": display.get("user_name"),
        "alerts": dict(alerts),
    }

    if isinstance(normalized["interval_s"], float) and normalized["interval_s"] < 1.0:
        warnings.append(f"Polling interval {normalized['interval_s']}s is unusually short")

    _check_channels(alerts.get("channels", []), errors)

    return ValidationResult(errors=errors, warnings=warnings, normalized=normalized)


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Load a monitor configuration from YAML or JSON."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        loaded = json.loads(text)
    else:
        loaded = yaml.safe_load(text)
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Configuration in {path} must be a mapping")
    return loaded


def validate_config_file(path: str | Path) -> ValidationResult:
    return validate_config(load_config_file(path))


def build_config(raw: Mapping[str, Any] | None = None, *, base_url: str | None = None) -> MonitorConfig:
    """Build a MonitorConfig, applying the env and explicit base URL overrides.

    Raises ConfigError listing every validation error.
    """

    merged: Dict[str, Any] = {k: (dict(v) if isinstance(v, Mapping) else v) for k, v in (raw or {}).items()}
    override = base_url or os.getenv(BASE_URL_ENV)
    if override:
        server = merged.get("server") if isinstance(merged.get("server"), dict) else {}
        merged["server"] = {**server, "base_url": override}

    result = validate_config(merged)
    if result.errors:
        raise ConfigError("; ".join(result.errors))
    return MonitorConfig(**result.normalized)


def load_monitor_config(path: str | Path | None = None, *, base_url: str | None = None) -> MonitorConfig:
    raw = load_config_file(path) if path else {}
    return build_config(raw, base_url=base_url)
