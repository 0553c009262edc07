"""Unit tests for the apply journal."""

import json
import sqlite3

import pytest

from packsync.persistence import ApplyJournal


class TestApplyJournal:
    """Test ApplyJournal class."""

    @pytest.fixture(autouse=True)
    def setup_method(self, tmp_path):
        """Set up test fixtures."""
        self.db_path = tmp_path / "state" / "journal.db"
        self.journal = ApplyJournal(self.db_path)

        yield

        self.journal.close()

    def _record(self, session_id="s1", success=True, **kwargs):
        defaults = {
            "modpack_id": "pack",
            "instance_path": "/instances/pack",
            "action": "fetch",
            "bucket": "mod",
            "target": "mods/jei.jar",
        }
        defaults.update(kwargs)
        return self.journal.record_action(session_id=session_id, success=success, **defaults)

    def test_init_creates_table(self):
        """Database file and parent directory are created."""
        assert self.db_path.exists()

        conn = sqlite3.connect(str(self.db_path))
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='journal'"
        )
        assert cursor.fetchone() is not None
        conn.close()

    def test_record_and_read_back(self):
        entry_id = self._record(mod_id="cf-1-10", details={"bytes": 42})

        assert entry_id > 0
        [entry] = self.journal.get_session_entries("s1")
        assert entry.mod_id == "cf-1-10"
        assert entry.success is True
        assert json.loads(entry.details) == {"bytes": 42}

    def test_failure_recorded(self):
        self._record(success=False, error_message="HTTP 404")

        [entry] = self.journal.get_session_entries("s1")
        assert entry.success is False
        assert entry.error_message == "HTTP 404"
        assert entry.details is None

    def test_entries_ordered(self):
        for name in ("a.jar", "b.jar", "c.jar"):
            self._record(target=f"mods/{name}")

        targets = [e.target for e in self.journal.get_session_entries("s1")]
        assert targets == ["mods/a.jar", "mods/b.jar", "mods/c.jar"]

    def test_sessions_summary(self):
        self._record("s1")
        self._record("s1", success=False)
        self._record("s2", modpack_id="other", action="toggle")

        sessions = {s["session_id"]: s for s in self.journal.get_sessions()}

        assert sessions["s1"]["total_actions"] == 2
        assert sessions["s1"]["successful"] == 1
        assert sessions["s1"]["failed"] == 1
        assert sessions["s2"]["modpack_id"] == "other"

    def test_sessions_filtered_and_limited(self):
        for i in range(5):
            self._record(f"s{i}")
        self._record("x", modpack_id="other")

        assert len(self.journal.get_sessions(limit=3)) == 3
        assert [s["session_id"] for s in self.journal.get_sessions(modpack_id="other")] == ["x"]


def test_in_memory_journal():
    with ApplyJournal(":memory:") as journal:
        journal.record_action("s", "p", "/i", "remove", "mod", "mods/x.jar", True)
        assert len(journal.get_session_entries("s")) == 1
