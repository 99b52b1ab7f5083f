"""Tests for the shared workflow layer."""

from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from finire import workflows
from finire.adapters.file_store import FileRecordStore
from finire.config import Config
from finire.core.days import derive_day_slots
from finire.errors import StoreError


@pytest.fixture
def now():
    return datetime(2025, 1, 15, 21, 0, tzinfo=timezone.utc)


class TestGetStore:
    def test_file_backend(self, tmp_path):
        store = workflows.get_store(Config(store_backend="file", data_dir=str(tmp_path)))
        assert isinstance(store, FileRecordStore)
        assert store.data_dir == tmp_path

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            workflows.get_store(Config(store_backend="sqlite"))


class TestSaveDay:
    def test_creates_unsealed_record(self, store, now):
        record = workflows.save_day(store, "u1", 1, "first words here", now=now)

        assert record.word_count == 3
        assert record.sealed is False
        rows = store.select("days")
        assert len(rows) == 1
        assert rows[0]["updated_at"] == now.isoformat()

    def test_updates_existing_record(self, store, now):
        workflows.save_day(store, "u1", 1, "one", now=now)
        record = workflows.save_day(store, "u1", 1, "one two", now=now)

        assert record.content == "one two"
        assert record.word_count == 2
        assert len(store.select("days")) == 1

    def test_given_word_count_is_not_recounted(self, store, now):
        with patch("finire.workflows.count_words") as mock_count:
            record = workflows.save_day(store, "u1", 1, "one two three", now=now, word_count=3)

        mock_count.assert_not_called()

        assert record.word_count == 3
        assert store.select("days")[0]["word_count"] == 3

    def test_sealed_duplicate_not_overwritten(self, now, text_of):
        store = MagicMock()
        store.select.return_value = [
            {"id": "a", "user_id": "u1", "day_number": 1, "content": text_of(300), "word_count": 300,
             "sealed": True, "updated_at": "2025-01-15T10:00:00+00:00"},
            {"id": "b", "user_id": "u1", "day_number": 1, "content": "stray", "word_count": 1,
             "sealed": False, "updated_at": "2025-01-15T11:00:00+00:00"},
        ]

        record = workflows.save_day(store, "u1", 1, "rewrite", now=now)

        assert record.id == "a"
        assert record.sealed is True
        store.update.assert_not_called()
        store.insert.assert_not_called()

    def test_sealed_record_is_immutable(self, store, now, text_of):
        workflows.save_day(store, "u1", 1, text_of(300), now=now)
        workflows.seal_day(store, "u1", workflows.load_days(store, "u1"), 1, now=now)

        record = workflows.save_day(store, "u1", 1, "overwrite", now=now)

        assert record.sealed is True
        assert record.word_count == 300
        assert store.select("days")[0]["content"] == text_of(300)

    def test_users_are_isolated(self, store, now):
        workflows.save_day(store, "u1", 1, "mine", now=now)
        workflows.save_day(store, "u2", 1, "theirs", now=now)

        assert workflows.load_days(store, "u1")[0].content == "mine"
        assert workflows.load_days(store, "u2")[0].content == "theirs"


class TestSealDay:
    def test_seal_advances_and_persists(self, store, now, text_of):
        workflows.save_day(store, "u1", 1, text_of(310), now=now)
        slots = workflows.load_days(store, "u1")

        sealed = workflows.seal_day(store, "u1", slots, 1, now=now)

        assert sealed[0].sealed is True
        assert sealed[1].is_today is True
        assert sealed[1].locked is False
        assert store.select("days")[0]["sealed"] is True
        # Local transition matches a fresh derivation
        assert sealed == workflows.load_days(store, "u1")

    def test_under_threshold_no_write(self, now):
        store = MagicMock()
        slots = derive_day_slots([])

        result = workflows.seal_day(store, "u1", slots, 1, now=now)

        assert result is slots
        store.update.assert_not_called()
        store.insert.assert_not_called()

    def test_second_seal_is_noop(self, store, now, text_of):
        workflows.save_day(store, "u1", 1, text_of(300), now=now)
        slots = workflows.seal_day(store, "u1", workflows.load_days(store, "u1"), 1, now=now)

        assert workflows.seal_day(store, "u1", slots, 1, now=now) is slots

    def test_creates_record_when_missing(self, store, now, text_of):
        slots = workflows.load_days(store, "u1")
        slots[0] = replace(slots[0], content=text_of(300), word_count=300)

        workflows.seal_day(store, "u1", slots, 1, now=now)

        rows = store.select("days")
        assert rows[0]["sealed"] is True
        assert rows[0]["word_count"] == 300

    def test_reload_rederives_from_store(self, store, now, text_of):
        workflows.save_day(store, "u1", 1, text_of(300), now=now)
        slots = workflows.load_days(store, "u1")

        reloaded = workflows.seal_day(store, "u1", slots, 1, reload=True, now=now)

        assert reloaded[1].is_today is True

    def test_store_error_propagates(self):
        store = MagicMock()
        store.select.return_value = [{"id": "r1", "user_id": "u1", "day_number": 1, "sealed": False}]
        store.update.side_effect = StoreError("down")
        slots = derive_day_slots([])
        slots[0] = replace(slots[0], word_count=300)

        with pytest.raises(StoreError):
            workflows.seal_day(store, "u1", slots, 1)


class TestReminders:
    def test_set_and_get(self, store, now):
        pref = workflows.set_reminder(store, "u1", 8, "05", "PM", "Europe/Paris", now=now)

        assert pref.time_local == "20:05"
        assert pref.timezone == "Europe/Paris"
        assert pref.enabled is True
        assert workflows.get_reminder(store, "u1") == pref

    def test_set_overwrites_single_row(self, store, now):
        workflows.set_reminder(store, "u1", 8, "00", "AM", "UTC", now=now)
        workflows.set_reminder(store, "u1", 9, "30", "AM", "UTC", now=now)

        rows = store.select("reminders")
        assert len(rows) == 1
        assert rows[0]["time_local"] == "09:30"

    def test_toggle_keeps_row(self, store, now):
        workflows.set_reminder(store, "u1", 8, "00", "AM", "UTC", now=now)

        pref = workflows.set_reminder_enabled(store, "u1", False, now=now)

        assert pref.enabled is False
        assert pref.time_local == "08:00"
        assert workflows.fetch_enabled_reminders(store) == []

    def test_toggle_without_reminder(self, store):
        with pytest.raises(ValueError):
            workflows.set_reminder_enabled(store, "u1", True)

    def test_get_missing(self, store):
        assert workflows.get_reminder(store, "nobody") is None

    def test_fetch_enabled(self, store, now):
        workflows.set_reminder(store, "u1", 8, "00", "AM", "UTC", now=now)
        workflows.set_reminder(store, "u2", 9, "00", "AM", "UTC", now=now)
        workflows.set_reminder_enabled(store, "u2", False, now=now)

        assert [p.user_id for p in workflows.fetch_enabled_reminders(store)] == ["u1"]
