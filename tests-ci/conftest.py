"""
Pytest configuration for CI tests
Provides test doubles (probe, handler, clock) and common fixtures
"""
import asyncio
import time
from datetime import datetime, timezone

import pytest

from alerts.dispatcher import EventDispatcher
from alerts.models import StreamData
from alerts.rate_limiter import RateLimiter
from alerts.registry import StreamerRegistry
from alerts.scheduler import PollCycleScheduler


def build_stream(login, live=True, **overrides):
    """StreamData as a probe would return it"""
    if not live:
        return StreamData.offline(login, datetime.now(timezone.utc))
    fields = {
        "user_login": login,
        "live": True,
        "observed_at": datetime.now(timezone.utc),
        "id": f"stream-{login}",
        "user_id": f"id-{login}",
        "user_name": login.capitalize(),
        "game_name": "Science & Technology",
        "title": f"{login} live test",
        "viewer_count": 42,
    }
    fields.update(overrides)
    return StreamData(**fields)


class FakeProbe:
    """
    Scripted StatusProbe.

    Each login has a queue of outcomes: True/False (live/offline), a
    StreamData, or an exception instance to raise. When the queue is empty
    the default outcome is used.
    """

    def __init__(self, default=False, delay=0.0):
        self.script = {}
        self.default = default
        self.delay = delay
        self.calls = []
        self.completed = []

    def set(self, login, *outcomes):
        self.script.setdefault(login, []).extend(outcomes)
        return self

    async def check(self, streamer_id):
        self.calls.append(streamer_id)
        if self.delay:
            await asyncio.sleep(self.delay)
        queue = self.script.get(streamer_id)
        outcome = queue.pop(0) if queue else self.default
        self.completed.append(streamer_id)
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, StreamData):
            return outcome
        return build_stream(streamer_id, live=bool(outcome))


class RecordingHandler:
    """EventHandler recording every callback"""

    def __init__(self, fail_stream_for=()):
        self.streams = []
        self.errors = []
        self.fail_stream_for = set(fail_stream_for)

    async def on_stream(self, streamer, stream):
        self.streams.append((streamer, stream))
        if streamer.id in self.fail_stream_for:
            raise RuntimeError(f"handler exploded for {streamer.id}")

    async def on_error(self, error):
        self.errors.append(error)

    @property
    def live_ids(self):
        return [streamer.id for streamer, _ in self.streams]


class FakeClock:
    """Manually advanced monotonic clock"""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def stream_factory():
    return build_stream


@pytest.fixture
def probe():
    return FakeProbe()


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return StreamerRegistry(["alice", "bob"])


@pytest.fixture
def make_scheduler(probe, handler, clock):
    """Factory: scheduler with fake probe/clock and no rate-limit wait by default"""

    def _make(registry, min_interval=0.0, recheck_interval=30.0, cycle_delay=1.0, use_clock=True, **kwargs):
        return PollCycleScheduler(
            registry=registry,
            probe=kwargs.pop("probe", probe),
            dispatcher=EventDispatcher(kwargs.pop("handler", handler)),
            rate_limiter=RateLimiter(min_interval),
            cycle_delay=cycle_delay,
            recheck_interval=recheck_interval,
            clock=clock if use_clock else time.monotonic,
        )

    return _make


@pytest.fixture
def config_dict():
    """Config file content (no real credentials needed)"""
    return {
        "twitch": {
            "client_id": "test_client_id_mock",
            "client_secret": "test_client_secret_mock",
        },
        "alerts": {
            "streamers": ["Alice", "bob"],
            "cycle_delay": 2.5,
            "recheck_interval": 45,
            "helix_timeout": 5,
        },
        "storage": {
            "db_path": None,
        },
    }


@pytest.fixture
def failing_handler():
    """Factory: handler whose on_stream raises for the given logins"""

    def _make(*logins):
        return RecordingHandler(fail_stream_for=logins)

    return _make


@pytest.fixture
def slow_probe():
    """Probe that is always live and takes 200ms to answer"""
    return FakeProbe(default=True, delay=0.2)
