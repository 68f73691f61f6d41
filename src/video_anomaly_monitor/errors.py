"""Exception hierarchy shared by the monitor components."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for errors raised by the monitor package."""


class TransportFailure(MonitorError):
    """A request to the surveillance API failed.

    Network errors, non-success HTTP statuses and malformed bodies are all
    reported through this single type so callers can skip the cycle uniformly.
    """

    def __init__(self, endpoint: str, reason: str, *, status_code: int | None = None) -> None:
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code
        detail = f"{endpoint}: {reason}"
        if status_code is not None:
            detail = f"{detail} (status {status_code})"
        super().__init__(detail)


class ConfigError(MonitorError, ValueError):
    """Raised when a monitor configuration cannot be used."""
