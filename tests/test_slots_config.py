"""Tests for provider settings parsing and validation."""

import json

import pytest

from artistbook.services.slots.config import (
    DEFAULT_PROVIDER_SETTINGS,
    DaySchedule,
    ProviderSettings,
    build_provider_settings,
    minutes_to_time_str,
    parse_time_of_day,
    parse_working_hours,
    time_str_to_minutes,
)

STORED_HOURS = {
    "0": {"start": "00:00", "end": "00:00", "enabled": False},
    "1": {"start": "09:00", "end": "18:00", "enabled": True},
    "2": {"start": "09:00", "end": "18:00", "enabled": True},
    "3": {"start": "09:00", "end": "18:00", "enabled": True},
    "4": {"start": "09:00", "end": "18:00", "enabled": True},
    "5": {"start": "09:00", "end": "18:00", "enabled": True},
    "6": {"start": "10:00", "end": "15:00", "enabled": True},
}


class TestDefaults:
    def test_default_week(self):
        days = DEFAULT_PROVIDER_SETTINGS.working_hours
        assert days[0].enabled is False
        assert all(d == DaySchedule("09:00", "18:00") for d in days[1:6])
        assert days[6] == DaySchedule("10:00", "15:00")

    def test_default_values(self):
        s = DEFAULT_PROVIDER_SETTINGS
        assert s.slot_interval == 30
        assert s.buffer_minutes == 0
        assert s.min_advance_hours == 2
        assert s.max_advance_days == 60
        assert s.timezone == "America/Santiago"

    def test_default_round_trips_through_storage_format(self):
        stored = DEFAULT_PROVIDER_SETTINGS.working_hours_dict()
        assert stored == STORED_HOURS
        assert parse_working_hours(json.dumps(stored)) == DEFAULT_PROVIDER_SETTINGS.working_hours


class TestParseWorkingHours:
    def test_json_string(self):
        days = parse_working_hours(json.dumps(STORED_HOURS))
        assert len(days) == 7
        assert days[1] == DaySchedule("09:00", "18:00", True)

    def test_int_keys(self):
        days = parse_working_hours({1: {"start": "08:00", "end": "12:00", "enabled": True}})
        assert days[1] == DaySchedule("08:00", "12:00", True)
        assert days[2] is None

    def test_invalid_json_closes_all_days(self):
        assert parse_working_hours("{not json") == (None,) * 7

    @pytest.mark.parametrize("raw", [None, "", "[]", 42])
    def test_empty_or_wrong_type(self, raw):
        assert parse_working_hours(raw) == (None,) * 7

    def test_malformed_entry_becomes_none(self):
        days = parse_working_hours({"1": {"start": 9, "end": "18:00"}, "2": "open"})
        assert days[1] is None
        assert days[2] is None

    def test_missing_enabled_means_closed(self):
        days = parse_working_hours({"1": {"start": "09:00", "end": "18:00"}})
        assert days[1].enabled is False


class TestProviderSettingsValidation:
    def test_requires_seven_days(self):
        with pytest.raises(ValueError, match="7 entries"):
            ProviderSettings(working_hours=(None,) * 6)

    @pytest.mark.parametrize("interval", [0, -15])
    def test_interval_must_be_positive(self, interval):
        with pytest.raises(ValueError, match="slot_interval"):
            ProviderSettings(working_hours=(None,) * 7, slot_interval=interval)

    def test_negative_buffer(self):
        with pytest.raises(ValueError, match="buffer_minutes"):
            ProviderSettings(working_hours=(None,) * 7, buffer_minutes=-1)

    def test_negative_advance_hours(self):
        with pytest.raises(ValueError, match="min_advance_hours"):
            ProviderSettings(working_hours=(None,) * 7, min_advance_hours=-1)

    def test_negative_advance_days(self):
        with pytest.raises(ValueError, match="max_advance_days"):
            ProviderSettings(working_hours=(None,) * 7, max_advance_days=-1)

    def test_build_from_row_values(self):
        settings = build_provider_settings(
            working_hours=json.dumps(STORED_HOURS),
            slot_interval=15,
            buffer_minutes=10,
            timezone="Europe/Madrid",
            min_advance_hours=1,
            max_advance_days=30,
        )
        assert settings.slot_interval == 15
        assert settings.day(6) == DaySchedule("10:00", "15:00", True)


class TestTimeHelpers:
    def test_parse_time_of_day(self):
        assert parse_time_of_day("9:05") == (9, 5)
        assert parse_time_of_day("23:59") == (23, 59)
        assert parse_time_of_day("24:00") is None
        assert parse_time_of_day("12:60") is None
        assert parse_time_of_day(None) is None

    def test_time_str_to_minutes(self):
        assert time_str_to_minutes("10:30") == 630
        assert time_str_to_minutes("0:00") == 0

    def test_minutes_to_time_str(self):
        assert minutes_to_time_str(630) == "10:30"
        assert minutes_to_time_str(5) == "00:05"

    def test_time_str_to_minutes_rejects_garbage(self):
        with pytest.raises(ValueError):
            time_str_to_minutes("noon")
