"""
Storage boundary tests — run against the in-memory FakeClient from
conftest.py; a MagicMock client covers the failure paths.
"""
from unittest.mock import MagicMock

import pytest

from habits import db as habits_db
from habits.collection import HabitCollection
from habits.db import delete_habit, get_client, habit_to_row, load_habits, ping, save_habit
from habits.errors import StorageError
from habits.models import HabitRecord

TODAY = "2026-02-27"


def make_habit(habit_id: str, name: str = "Read") -> HabitRecord:
    return HabitRecord(id=habit_id, name=name, created_at="2026-02-01T10:00:00+00:00")


class TestGetClient:
    def test_missing_settings_raise_storage_error(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)
        get_client.cache_clear()
        with pytest.raises(StorageError):
            get_client()

    def test_creates_client_from_env(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")
        fake = MagicMock()
        monkeypatch.setattr(habits_db, "create_client", fake)
        get_client.cache_clear()
        try:
            assert get_client() is fake.return_value
            fake.assert_called_once_with("https://example.supabase.co", "service-key")
        finally:
            get_client.cache_clear()


class TestHabitToRow:
    def test_position_only_when_given(self):
        assert "position" not in habit_to_row(make_habit("a"))
        assert habit_to_row(make_habit("a"), 3)["position"] == 3

    def test_camel_case_keys(self):
        row = habit_to_row(make_habit("a"))
        assert row["completedDates"] == []
        assert row["lastCompleted"] is None


class TestLoadHabits:
    def test_loads_rows_in_position_order(self, fake_db):
        save_habit(fake_db, make_habit("b"), position=1)
        save_habit(fake_db, make_habit("a"), position=0)
        assert [h.id for h in load_habits(fake_db)] == ["a", "b"]

    def test_empty_table(self, fake_db):
        assert load_habits(fake_db) == []

    def test_client_failure_wrapped(self):
        client = MagicMock()
        client.table.return_value.select.return_value.order.return_value.order.return_value \
            .execute.side_effect = RuntimeError("connection reset")
        with pytest.raises(StorageError):
            load_habits(client)

    def test_invalid_row_wrapped(self, fake_db):
        fake_db.rows["a"] = {**habit_to_row(make_habit("a"), 0), "lastCompleted": TODAY}
        with pytest.raises(StorageError):
            load_habits(fake_db)


class TestSaveHabit:
    def test_update_keeps_stored_position(self, fake_db):
        save_habit(fake_db, make_habit("a"), position=0)
        save_habit(fake_db, make_habit("b"), position=1)
        save_habit(fake_db, make_habit("a", name="Read more"))
        assert fake_db.rows["a"]["position"] == 0
        assert [(h.id, h.name) for h in load_habits(fake_db)] == [("a", "Read more"), ("b", "Read")]

    def test_only_the_saved_row_changes(self, fake_db):
        save_habit(fake_db, make_habit("a"), position=0)
        before = dict(fake_db.rows["a"])
        save_habit(fake_db, make_habit("b"), position=1)
        assert fake_db.rows["a"] == before

    def test_writers_with_stale_snapshots_keep_each_others_changes(self, fake_db):
        seed = HabitCollection(today=lambda: TODAY)
        a = seed.create("A")
        save_habit(fake_db, a, position=0)

        worker1 = HabitCollection(load_habits(fake_db), today=lambda: TODAY)
        worker2 = HabitCollection(load_habits(fake_db), today=lambda: TODAY)

        b = worker1.create("B")
        save_habit(fake_db, b, position=len(worker1) - 1)
        save_habit(fake_db, worker2.toggle_today(a.id))

        stored = {h.id: h for h in load_habits(fake_db)}
        assert list(stored) == [a.id, b.id]
        assert stored[a.id].completed_dates == [TODAY]
        assert stored[a.id].streak == 1
        assert stored[b.id].streak == 0

    def test_client_failure_wrapped(self):
        client = MagicMock()
        client.table.return_value.upsert.return_value.execute.side_effect = RuntimeError("timeout")
        with pytest.raises(StorageError):
            save_habit(client, make_habit("a"))


class TestDeleteHabit:
    def test_removes_only_that_row(self, fake_db):
        save_habit(fake_db, make_habit("a"), position=0)
        save_habit(fake_db, make_habit("b"), position=1)
        delete_habit(fake_db, "a")
        assert [h.id for h in load_habits(fake_db)] == ["b"]

    def test_client_failure_wrapped(self):
        client = MagicMock()
        client.table.return_value.delete.return_value.eq.return_value.execute.side_effect = RuntimeError("down")
        with pytest.raises(StorageError):
            delete_habit(client, "a")


class TestPing:
    def test_ping_ok(self, fake_db):
        ping(fake_db)

    def test_ping_failure(self):
        client = MagicMock()
        client.table.return_value.select.return_value.limit.return_value.execute.side_effect = RuntimeError("down")
        with pytest.raises(StorageError):
            ping(client)
