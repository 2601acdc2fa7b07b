#!/usr/bin/env python3
"""
StreamAlerts - SQLite streamer store

Durable backing for StreamerRegistry: keeps the tracked streamers, their
alert switch, last known live/offline state and when they last streamed,
so a restart in the middle of a stream does not announce it twice.
"""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import List

from alerts.models import Streamer, StreamState
from alerts.registry import StreamerStore

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS streamers (
    position        INTEGER PRIMARY KEY AUTOINCREMENT,
    id              TEXT NOT NULL UNIQUE,
    alerts_enabled  INTEGER NOT NULL DEFAULT 1,
    state           TEXT NOT NULL DEFAULT 'unknown',
    last_streamed   TEXT
)
"""


class SQLiteStreamerStore(StreamerStore):
    """
    Streamer store on a single SQLite file.

    Row order (position) is insertion order, which is the registry order.
    Monotonic probe times and stream metadata are process-local and
    are not stored.
    """

    def __init__(self, db_path: str = "streamalerts.db"):
        """
        Args:
            db_path: Path to the SQLite file (created if missing)
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._memory_conn = sqlite3.connect(db_path) if db_path == ":memory:" else None

        with self._get_connection() as conn:
            if self._memory_conn is None:
                conn.execute("PRAGMA journal_mode = WAL")
                conn.execute("PRAGMA busy_timeout = 5000")
            conn.execute(SCHEMA)
        logger.info(f"SQLiteStreamerStore initialized: {db_path}")

    @contextmanager
    def _get_connection(self):
        """
        Context manager for SQLite connections.

        Usage:
            with store._get_connection() as conn:
                cursor = conn.execute(...)
        """
        conn = self._memory_conn or sqlite3.connect(self.db_path, timeout=5.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}", exc_info=True)
            raise
        finally:
            if conn is not self._memory_conn:
                conn.close()

    def load(self) -> List[Streamer]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT id, alerts_enabled, state, last_streamed FROM streamers ORDER BY position"
            ).fetchall()

        streamers = []
        for row in rows:
            try:
                state = StreamState(row["state"])
            except ValueError:
                logger.warning(f"Unknown state {row['state']!r} for {row['id']}, reset to unknown")
                state = StreamState.UNKNOWN
            last_streamed = row["last_streamed"]
            streamers.append(Streamer(
                id=row["id"],
                alerts_enabled=bool(row["alerts_enabled"]),
                state=state,
                last_streamed=datetime.fromisoformat(last_streamed) if last_streamed else None,
            ))
        return streamers

    def save(self, streamer: Streamer):
        last_streamed = streamer.last_streamed.isoformat() if streamer.last_streamed else None
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO streamers (id, alerts_enabled, state, last_streamed)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    alerts_enabled = excluded.alerts_enabled,
                    state = excluded.state,
                    last_streamed = excluded.last_streamed
                """,
                (streamer.id, int(streamer.alerts_enabled), streamer.state.value, last_streamed),
            )

    def delete(self, streamer_id: str):
        with self._get_connection() as conn:
            conn.execute("DELETE FROM streamers WHERE id = ?", (streamer_id,))

    def close(self):
        if self._memory_conn is not None:
            self._memory_conn.close()
            self._memory_conn = None
