"""
📋 StreamerRegistry - The monitored streamers and their last known status

The registry is the only shared mutable state of the poll engine. Every
access goes through one lock, callers only ever see copies, and iteration
order is insertion order so cycles walk streamers deterministically.

Persistence is optional: give the registry a StreamerStore and every
mutation is written through to it.
"""
import copy
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Tuple, Union

from alerts.models import Streamer, StreamData, StreamState

LOGGER = logging.getLogger(__name__)


class StreamerStore(ABC):
    """Durable backing store for the registry."""

    @abstractmethod
    def load(self) -> List[Streamer]:
        """Return the stored streamers in registry order."""

    @abstractmethod
    def save(self, streamer: Streamer):
        """Insert or replace one streamer."""

    @abstractmethod
    def delete(self, streamer_id: str):
        """Forget one streamer."""


class StreamerRegistry:
    """Ordered, lock-guarded map of streamer id -> Streamer."""

    def __init__(
        self,
        streamers: Iterable[Union[str, Streamer]] = (),
        store: Optional[StreamerStore] = None
    ):
        """
        Args:
            streamers: Initial ids (or Streamer entries) in monitoring order
            store: Optional durable store, loaded first then written through
        """
        self._lock = threading.RLock()
        self._entries: Dict[str, Streamer] = {}
        self._store = store

        if store is not None:
            for streamer in store.load():
                streamer.id = self._normalize(streamer.id)
                self._entries.setdefault(streamer.id, streamer)
            LOGGER.info(f"📋 Registry loaded {len(self._entries)} streamers from store")

        for entry in streamers:
            entry = self._as_streamer(entry)
            if entry.id in self._entries:
                # Already restored from the store, or listed twice
                continue
            self._insert(entry)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, streamer_id: str) -> bool:
        with self._lock:
            return self._key(streamer_id) in self._entries

    def list(self) -> List[Streamer]:
        """Snapshot of all streamers, in insertion order."""
        with self._lock:
            return [copy.copy(s) for s in self._entries.values()]

    def ids(self) -> List[str]:
        with self._lock:
            return list(self._entries)

    def get(self, streamer_id: str) -> Optional[Streamer]:
        """Snapshot of one streamer, or None if it is not tracked."""
        with self._lock:
            streamer = self._entries.get(self._key(streamer_id))
            return copy.copy(streamer) if streamer else None

    def add(self, streamer_id: str, alerts_enabled: bool = True) -> bool:
        """
        Start tracking a streamer (state UNKNOWN).

        Returns:
            False if the id is already tracked
        """
        return self._insert(Streamer(id=self._normalize(streamer_id), alerts_enabled=alerts_enabled))

    def sync(self, streamers: Iterable[Union[str, Streamer]]) -> Tuple[List[str], List[str]]:
        """
        Reconfigure the registry to exactly the given streamers.

        Tracked streamers keep their state, missing ones are added in the
        given order, the others are removed (and deleted from the store).

        Returns:
            (added ids, removed ids)
        """
        wanted = [self._as_streamer(entry) for entry in streamers]
        wanted_ids = {entry.id for entry in wanted}

        removed = [streamer_id for streamer_id in self.ids() if streamer_id not in wanted_ids]
        for streamer_id in removed:
            self.remove(streamer_id)

        added = []
        for entry in wanted:
            if entry.id not in self and self._insert(entry):
                added.append(entry.id)

        if added or removed:
            LOGGER.info(f"📋 Registry synced: +{len(added)} -{len(removed)} ({len(self)} tracked)")
        return added, removed

    @staticmethod
    def _normalize(streamer_id: str) -> str:
        # Twitch logins are case-insensitive
        if not isinstance(streamer_id, str) or not streamer_id.strip():
            raise ValueError(f"streamer id must be a non-empty string, got {streamer_id!r}")
        return streamer_id.strip().lower()

    @staticmethod
    def _key(streamer_id: str) -> str:
        return streamer_id.strip().lower() if isinstance(streamer_id, str) else streamer_id

    def _as_streamer(self, entry: Union[str, Streamer]) -> Streamer:
        if isinstance(entry, Streamer):
            return replace(entry, id=self._normalize(entry.id))
        return Streamer(id=self._normalize(entry))

    def _insert(self, streamer: Streamer) -> bool:
        with self._lock:
            if streamer.id in self._entries:
                LOGGER.warning(f"⚠️ Streamer {streamer.id} already tracked, ignoring add")
                return False
            self._entries[streamer.id] = streamer
            self._persist(streamer)
        LOGGER.info(f"➕ Tracking streamer {streamer.id}")
        return True

    def remove(self, streamer_id: str) -> bool:
        streamer_id = self._key(streamer_id)
        with self._lock:
            if self._entries.pop(streamer_id, None) is None:
                return False
            if self._store is not None:
                try:
                    self._store.delete(streamer_id)
                except Exception as e:
                    LOGGER.error(f"❌ Store delete failed for {streamer_id}: {e}")
        LOGGER.info(f"➖ Stopped tracking streamer {streamer_id}")
        return True

    def set_alerts(self, streamer_id: str, enabled: bool) -> bool:
        """Operator switch: disabled streamers are no longer probed."""
        streamer_id = self._key(streamer_id)
        with self._lock:
            streamer = self._entries.get(streamer_id)
            if streamer is None:
                LOGGER.warning(f"⚠️ set_alerts: unknown streamer {streamer_id}")
                return False
            streamer.alerts_enabled = enabled
            self._persist(streamer)
        LOGGER.info(f"🔔 Alerts for {streamer_id}: {'ON' if enabled else 'OFF'}")
        return True

    def mark_checked(self, streamer_id: str, checked_at: float) -> bool:
        """Record a probe attempt (successful or not)."""
        streamer_id = self._key(streamer_id)
        with self._lock:
            streamer = self._entries.get(streamer_id)
            if streamer is None:
                LOGGER.warning(f"⚠️ mark_checked: unknown streamer {streamer_id}")
                return False
            streamer.last_checked = checked_at
            return True

    def update(self, streamer_id: str, stream: StreamData) -> Optional[StreamState]:
        """
        Apply an observed status to a streamer.

        Metadata is refreshed on every call, live or not. `last_streamed`
        only moves forward when the observation is live.

        Args:
            streamer_id: Streamer to update
            stream: Result of a successful probe

        Returns:
            The state before the update, or None if the id is unknown
        """
        streamer_id = self._key(streamer_id)
        with self._lock:
            streamer = self._entries.get(streamer_id)
            if streamer is None:
                LOGGER.warning(f"⚠️ Registry update for unknown streamer {streamer_id}, dropped")
                return None

            previous = streamer.state
            streamer.state = StreamState.LIVE if stream.live else StreamState.OFFLINE
            streamer.stream = stream
            if stream.live:
                streamer.last_streamed = stream.observed_at
            self._persist(streamer)
            return previous

    def _persist(self, streamer: Streamer):
        if self._store is None:
            return
        try:
            self._store.save(streamer)
        except Exception as e:
            LOGGER.error(f"❌ Store save failed for {streamer.id}: {e}")
