"""Tests for core reminder logic."""

from datetime import datetime, timezone

import pytest

from finire.core.reminders import (
    ReminderPreference,
    ReminderTime,
    format_time_12h,
    from_storage,
    local_time_in,
    minute_key,
    parse_time_12h,
    select_due,
    to_storage,
)


class TestToStorage:
    @pytest.mark.parametrize(
        "hour, minute, meridiem, expected",
        [
            (12, "00", "AM", "00:00"),
            (12, "30", "PM", "12:30"),
            (1, "05", "PM", "13:05"),
            (8, "00", "AM", "08:00"),
            (11, "55", "PM", "23:55"),
            (7, 5, "am", "07:05"),
        ],
    )
    def test_conversion(self, hour, minute, meridiem, expected):
        assert to_storage(hour, minute, meridiem) == expected

    @pytest.mark.parametrize(
        "hour, minute, meridiem",
        [
            (0, "00", "AM"),
            (13, "00", "PM"),
            (8, "07", "AM"),
            (8, "60", "AM"),
            (8, "xx", "AM"),
            (8, "00", "XM"),
        ],
    )
    def test_rejects_invalid(self, hour, minute, meridiem):
        with pytest.raises(ValueError):
            to_storage(hour, minute, meridiem)


class TestFromStorage:
    def test_midnight(self):
        assert from_storage("00:00") == ReminderTime(12, "00", "AM")

    def test_noon(self):
        assert from_storage("12:15") == ReminderTime(12, "15", "PM")

    def test_afternoon(self):
        assert from_storage("13:05") == ReminderTime(1, "05", "PM")

    def test_morning(self):
        assert from_storage("08:00") == (8, "00", "AM")

    @pytest.mark.parametrize("stored", ["8:00", "24:00", "12:60", "noon", ""])
    def test_rejects_malformed(self, stored):
        with pytest.raises(ValueError):
            from_storage(stored)

    def test_round_trip_every_pick(self):
        for meridiem in ("AM", "PM"):
            for hour in range(1, 13):
                for minute in range(0, 60, 5):
                    pick = (hour, f"{minute:02d}", meridiem)
                    assert from_storage(to_storage(*pick)) == pick


class TestHumanTimes:
    def test_parse(self):
        assert parse_time_12h("8:05 PM") == ReminderTime(8, "05", "PM")
        assert parse_time_12h(" 12:00am ") == ReminderTime(12, "00", "AM")

    @pytest.mark.parametrize("text", ["20:05", "8 PM", "8:03 PM", "13:00 PM"])
    def test_parse_rejects(self, text):
        with pytest.raises(ValueError):
            parse_time_12h(text)

    def test_format(self):
        assert format_time_12h("20:05") == "8:05 PM"
        assert format_time_12h("00:30") == "12:30 AM"


class TestLocalTime:
    def test_renders_in_zone(self):
        now = datetime(2025, 1, 15, 13, 5, 59, tzinfo=timezone.utc)
        assert local_time_in("UTC", now) == "13:05"
        assert local_time_in("America/Toronto", now) == "08:05"
        assert local_time_in("Asia/Kolkata", now) == "18:35"

    def test_naive_is_utc(self):
        assert local_time_in("UTC", datetime(2025, 1, 15, 9, 30)) == "09:30"

    def test_empty_zone_is_utc(self):
        assert local_time_in("", datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)) == "09:30"

    def test_minute_key_is_utc(self):
        now = datetime(2025, 1, 15, 8, 0, 42, tzinfo=timezone.utc)
        assert minute_key(now) == "2025-01-15T08:00"


class TestSelectDue:
    @pytest.fixture
    def eight_utc(self):
        return datetime(2025, 1, 15, 8, 0, 30, tzinfo=timezone.utc)

    def test_only_enabled_matches(self, eight_utc):
        prefs = [
            ReminderPreference(user_id="u1", time_local="08:00", timezone="UTC", enabled=True),
            ReminderPreference(user_id="u2", time_local="08:00", timezone="UTC", enabled=False),
        ]
        assert select_due(prefs, eight_utc) == ["u1"]

    def test_matches_in_users_zone(self, eight_utc):
        prefs = [
            ReminderPreference(user_id="toronto", time_local="03:00", timezone="America/Toronto"),
            ReminderPreference(user_id="tokyo", time_local="17:00", timezone="Asia/Tokyo"),
            ReminderPreference(user_id="utc", time_local="03:00", timezone="UTC"),
        ]
        assert select_due(prefs, eight_utc) == ["toronto", "tokyo"]

    def test_no_grace_window(self, eight_utc):
        prefs = [ReminderPreference(user_id="u1", time_local="07:59", timezone="UTC")]
        assert select_due(prefs, eight_utc) == []

    def test_deduplicates_users(self, eight_utc):
        prefs = [
            ReminderPreference(user_id="u1", time_local="08:00", timezone="UTC"),
            ReminderPreference(user_id="u1", time_local="08:00", timezone="UTC"),
        ]
        assert select_due(prefs, eight_utc) == ["u1"]

    def test_unknown_zone_skipped(self, eight_utc):
        prefs = [
            ReminderPreference(user_id="bad", time_local="08:00", timezone="Mars/Olympus"),
            ReminderPreference(user_id="u1", time_local="08:00", timezone="UTC"),
        ]
        assert select_due(prefs, eight_utc) == ["u1"]

    def test_empty(self, eight_utc):
        assert select_due([], eight_utc) == []


class TestReminderPreferenceRows:
    def test_round_trip(self):
        pref = ReminderPreference(user_id="u1", time_local="20:05", timezone="Europe/Paris", enabled=False)
        parsed = ReminderPreference.from_row({"id": "x", **pref.to_row()})

        assert parsed == pref
        assert parsed.display_time == "8:05 PM"

    def test_trimmed_fraction_timestamp(self):
        parsed = ReminderPreference.from_row(
            {"user_id": "u1", "time_local": "08:00", "updated_at": "2025-01-15T10:00:00.12+00:00"}
        )

        assert parsed.updated_at == datetime(2025, 1, 15, 10, 0, 0, 120000, tzinfo=timezone.utc)
