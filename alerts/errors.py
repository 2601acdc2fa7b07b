"""
❌ Errors - Everything the poll loop can report through on_error

AlertsError
├── ConfigError              startup only, never raised by the loop
├── ProbeError
│   ├── TransientProbeError      network/timeout/5xx, retried next cycle
│   ├── RateLimitedProbeError    upstream 429, the loop backs off
│   └── PermanentProbeError      unknown login, auth failure
├── HandlerError             a handler callback raised
└── RegistryInconsistency    update against an unknown streamer id
"""
from typing import Optional


class AlertsError(Exception):
    """Base error. str(error) is the human readable message."""

    def __init__(self, message: str, streamer_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.streamer_id = streamer_id

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, streamer_id={self.streamer_id!r})"


class ConfigError(AlertsError):
    """Invalid or incomplete configuration."""


class ProbeError(AlertsError):
    """A status probe failed. The streamer's cached state is kept."""


class TransientProbeError(ProbeError):
    """Network error, timeout or upstream 5xx."""


class RateLimitedProbeError(ProbeError):
    """Upstream refused the request because of its rate limit."""

    def __init__(
        self,
        message: str,
        streamer_id: Optional[str] = None,
        retry_after: Optional[float] = None
    ):
        super().__init__(message, streamer_id)
        self.retry_after = retry_after


class PermanentProbeError(ProbeError):
    """Unknown streamer or rejected credentials. Needs an operator."""


class HandlerError(AlertsError):
    """An event handler callback raised."""

    def __init__(self, message: str, streamer_id: Optional[str] = None, original: Optional[BaseException] = None):
        super().__init__(message, streamer_id)
        self.original = original


class RegistryInconsistency(AlertsError):
    """The registry was asked to update a streamer it does not track."""
