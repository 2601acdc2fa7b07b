"""
📦 Models - Data contracts between the probe, the registry and the handlers

Streamer entries live in the registry; StreamData snapshots come out of the
probe and travel by reference to the event handler.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from alerts.errors import AlertsError


class StreamState(Enum):
    """Per-streamer state machine."""
    UNKNOWN = "unknown"   # No successful probe yet
    OFFLINE = "offline"
    LIVE = "live"


@dataclass(frozen=True)
class StreamData:
    """Result of one successful status probe (immutable)."""
    user_login: str                          # Login that was probed
    live: bool                               # Is the stream currently live
    observed_at: datetime                    # When the probe answered (UTC)
    id: Optional[str] = None                 # Helix stream id
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    game_id: Optional[str] = None
    game_name: Optional[str] = None
    stream_type: Optional[str] = None        # "live" or "" on Helix
    title: Optional[str] = None
    viewer_count: Optional[int] = None
    started_at: Optional[datetime] = None
    language: Optional[str] = None
    thumbnail_url: Optional[str] = None
    tags: Tuple[str, ...] = ()
    is_mature: Optional[bool] = None

    @classmethod
    def offline(cls, user_login: str, observed_at: datetime) -> "StreamData":
        return cls(user_login=user_login, live=False, observed_at=observed_at)


@dataclass
class Streamer:
    """A monitored streamer and its last known status."""
    id: str                                  # Stable identifier (Twitch login)
    alerts_enabled: bool = True              # Probed and announced only when True
    last_streamed: Optional[datetime] = None # Last probe that saw it live
    state: StreamState = StreamState.UNKNOWN
    last_checked: Optional[float] = None     # Monotonic time of the last probe attempt
    stream: Optional[StreamData] = None      # Latest successful probe

    @property
    def currently_live(self) -> bool:
        return self.state is StreamState.LIVE


@dataclass
class PollCycleResult:
    """What one poll cycle probed, detected and failed on."""
    transitions: List[Tuple[Streamer, StreamData]] = field(default_factory=list)
    errors: List[AlertsError] = field(default_factory=list)
    probed: List[str] = field(default_factory=list)

    @property
    def went_live(self) -> List[str]:
        return [streamer.id for streamer, _ in self.transitions]
