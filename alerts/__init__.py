"""
alerts/
=======

Go-live alert engine: polls stream status, diffs it against the last known
state and fires one event per live period.

- models.py : Streamer, StreamData, StreamState, PollCycleResult
- errors.py : error taxonomy reported through on_error
- rate_limiter.py : global minimum interval between probes
- registry.py : monitored streamers (optional durable store)
- storage.py : SQLite store for the registry
- probe.py : StatusProbe contract
- dispatcher.py : EventHandler capability and EventDispatcher
- scheduler.py : PollCycleScheduler (the poll loop)
- config.py : YAML configuration
- client.py : AlertsClient facade
"""

from alerts.client import AlertsClient
from alerts.config import AlertsConfig, load_config, write_config
from alerts.dispatcher import EventDispatcher, EventHandler, LoggingEventHandler
from alerts.errors import (
    AlertsError,
    ConfigError,
    HandlerError,
    PermanentProbeError,
    ProbeError,
    RateLimitedProbeError,
    RegistryInconsistency,
    TransientProbeError,
)
from alerts.models import PollCycleResult, Streamer, StreamData, StreamState
from alerts.probe import StatusProbe
from alerts.rate_limiter import MIN_REQUEST_INTERVAL, RateLimiter
from alerts.registry import StreamerRegistry, StreamerStore
from alerts.scheduler import PollCycleScheduler

__all__ = [
    "AlertsClient",
    "AlertsConfig",
    "load_config",
    "write_config",
    "EventDispatcher",
    "EventHandler",
    "LoggingEventHandler",
    "AlertsError",
    "ConfigError",
    "HandlerError",
    "PermanentProbeError",
    "ProbeError",
    "RateLimitedProbeError",
    "RegistryInconsistency",
    "TransientProbeError",
    "PollCycleResult",
    "Streamer",
    "StreamData",
    "StreamState",
    "StatusProbe",
    "MIN_REQUEST_INTERVAL",
    "RateLimiter",
    "StreamerRegistry",
    "StreamerStore",
    "PollCycleScheduler",
]
