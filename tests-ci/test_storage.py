"""
Tests pour alerts/storage.py (SQLiteStreamerStore)
Le registre survit à un redémarrage
"""
import sqlite3
from datetime import datetime, timezone

import pytest

from alerts.models import StreamState
from alerts.registry import StreamerRegistry
from alerts.storage import SQLiteStreamerStore


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "data" / "streamalerts.db")


@pytest.mark.integration
class TestSQLiteStreamerStore:
    """Persistance write-through du registre"""

    def test_creates_database_file(self, db_path):
        """Crée le fichier et la table streamers"""
        SQLiteStreamerStore(db_path)
        conn = sqlite3.connect(db_path)
        tables = [r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")]
        conn.close()
        assert "streamers" in tables

    def test_registry_restored_after_restart(self, db_path, stream_factory):
        """État, alertes et last_streamed restaurés après redémarrage"""
        observed = datetime(2025, 11, 1, 20, 0, tzinfo=timezone.utc)
        registry = StreamerRegistry(["carol", "alice", "bob"], store=SQLiteStreamerStore(db_path))
        registry.update("alice", stream_factory("alice", observed_at=observed))
        registry.update("bob", stream_factory("bob", live=False))
        registry.set_alerts("carol", False)

        restored = StreamerRegistry(["alice"], store=SQLiteStreamerStore(db_path))

        assert [s.id for s in restored.list()] == ["carol", "alice", "bob"]
        alice = restored.get("alice")
        assert alice.state is StreamState.LIVE
        assert alice.last_streamed == observed
        assert alice.last_checked is None
        assert restored.get("bob").state is StreamState.OFFLINE
        assert restored.get("carol").alerts_enabled is False

    def test_config_streamers_added_to_stored_ones(self, db_path):
        """Les streamers de la config s'ajoutent aux streamers stockés"""
        StreamerRegistry(["alice"], store=SQLiteStreamerStore(db_path))
        restored = StreamerRegistry(["alice", "dave"], store=SQLiteStreamerStore(db_path))
        assert [s.id for s in restored.list()] == ["alice", "dave"]

    def test_remove_deletes_row(self, db_path):
        """remove() supprime la ligne"""
        store = SQLiteStreamerStore(db_path)
        registry = StreamerRegistry(["alice", "bob"], store=store)
        registry.remove("alice")
        assert [s.id for s in store.load()] == ["bob"]

    def test_in_memory_database(self):
        """Base :memory: utilisable"""
        store = SQLiteStreamerStore(":memory:")
        registry = StreamerRegistry(["alice"], store=store)
        registry.set_alerts("alice", False)
        assert store.load()[0].alerts_enabled is False
        store.close()

    def test_store_failure_does_not_break_registry(self, stream_factory, caplog):
        """Une erreur SQLite est loggée, le registre continue"""
        class BrokenStore(SQLiteStreamerStore):
            def save(self, streamer):
                raise sqlite3.OperationalError("disk I/O error")

        registry = StreamerRegistry(["alice"], store=BrokenStore(":memory:"))
        assert registry.update("alice", stream_factory("alice")) is StreamState.UNKNOWN
        assert registry.get("alice").currently_live is True
        assert "Store save failed" in caplog.text
