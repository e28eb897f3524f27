"""Tests für Wochenplan-Modelle und die Expansion in Kalendertage."""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from models.class_definition import ClassDefinition
from resolver.recurrence import (
    RecurrenceExpander,
    adjacent_months,
    base_class_id,
    is_in_relevant_range,
    month_bounds,
    sunday_based_weekday,
    variant_id,
)


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _single(day=1, start="14:00", end="15:00", tz="UTC", **kwargs) -> ClassDefinition:
    return ClassDefinition.model_validate({
        "id": kwargs.pop("id", "c1"),
        "schedule_type": "single",
        "day_of_week": day,
        "start_time": start,
        "end_time": end,
        "timezone": tz,
        "start_date": kwargs.pop("start_date", "2023-09-01"),
        **kwargs,
    })


def _multiple(days=(1, 3), **kwargs) -> ClassDefinition:
    return ClassDefinition.model_validate({
        "id": kwargs.pop("id", "m1"),
        "schedule_type": "multiple",
        "schedules": [
            {"day_of_week": d, "start_time": "10:00", "end_time": "11:00", "timezone": "UTC"}
            for d in days
        ],
        "start_date": kwargs.pop("start_date", "2023-09-01"),
        **kwargs,
    })


# ─── HILFSFUNKTIONEN ──────────────────────────────────────────────────────────

class TestHelpers:
    def test_sunday_based_weekday(self):
        """0=Sonntag … 6=Samstag."""
        assert sunday_based_weekday(date(2024, 1, 7)) == 0   # Sonntag
        assert sunday_based_weekday(date(2024, 1, 1)) == 1   # Montag
        assert sunday_based_weekday(date(2024, 1, 6)) == 6   # Samstag

    def test_variant_roundtrip(self):
        assert variant_id("abc", 3) == "abc::3"
        assert base_class_id("abc::3") == "abc"
        assert base_class_id("abc") == "abc"

    def test_base_id_keeps_non_numeric_suffix(self):
        assert base_class_id("a::b") == "a::b"

    def test_month_bounds_leap_year(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(2023, 2) == (date(2023, 2, 1), date(2023, 2, 28))

    def test_adjacent_months_year_wrap(self):
        assert adjacent_months(2024, 1) == [(2023, 12), (2024, 1), (2024, 2)]
        assert adjacent_months(2024, 12) == [(2024, 11), (2024, 12), (2025, 1)]

    def test_relevant_range(self):
        assert is_in_relevant_range(date(2023, 12, 31), 2024, 1)
        assert is_in_relevant_range(date(2024, 2, 2), 2024, 1)
        assert not is_in_relevant_range(date(2024, 3, 1), 2024, 1)


# ─── MODELLE ──────────────────────────────────────────────────────────────────

class TestScheduleModel:
    def test_flat_single_becomes_tagged(self):
        c = _single()
        assert c.schedule_type == "single"
        assert len(c.schedules) == 1
        assert c.schedules[0].day_name == "Mo"

    def test_flat_multiple_inherits_timezone(self):
        c = ClassDefinition.model_validate({
            "id": "x",
            "schedule_type": "multiple",
            "timezone": "Europe/Berlin",
            "schedules": [{"day_of_week": 2, "start_time": "9:00", "end_time": "10:00"}],
            "start_date": "2024-01-01",
        })
        assert c.schedules[0].timezone == "Europe/Berlin"

    def test_multiple_duplicate_days_rejected(self):
        """Höchstens ein Termin pro Wochentag."""
        with pytest.raises(ValidationError):
            _multiple(days=(1, 1))

    def test_invalid_day_of_week_rejected(self):
        with pytest.raises(ValidationError):
            _single(day=7)

    def test_timestamp_start_date_truncated(self):
        c = _single(start_date="2024-01-01T05:00:00Z")
        assert c.start_date == date(2024, 1, 1)

    def test_entry_for_weekday(self):
        c = _multiple(days=(1, 3))
        assert c.entry_for_weekday(3).day_of_week == 3
        assert c.entry_for_weekday(5) is None


# ─── EXPANSION ────────────────────────────────────────────────────────────────

class TestRecurrenceExpander:
    def setup_method(self):
        self.expander = RecurrenceExpander()

    def test_mondays_january_2024(self):
        """Montag-Klasse → 1., 8., 15., 22., 29. Januar."""
        occ = self.expander.expand(_single(day=1), 1, 2024)
        assert [o.date.day for o in occ] == [1, 8, 15, 22, 29]
        assert all(o.class_id == "c1" for o in occ)
        assert occ[0].start_time == "14:00"

    @pytest.mark.parametrize("year, month", [(2024, 1), (2024, 2), (2023, 2), (2024, 9), (2024, 12)])
    @pytest.mark.parametrize("day", range(7))
    def test_count_matches_weekdays_in_month(self, year, month, day):
        """Anzahl Stunden = Anzahl dieses Wochentags im Monat."""
        first, last = month_bounds(year, month)
        expected = sum(
            1 for n in range((last - first).days + 1)
            if sunday_based_weekday(first + timedelta(days=n)) == day
        )
        occ = self.expander.expand(_single(day=day), month, year)
        assert len(occ) == expected
        assert all(sunday_based_weekday(o.date) == day for o in occ)

    def test_start_date_inclusive(self):
        occ = self.expander.expand(_single(day=1, start_date="2024-01-15"), 1, 2024)
        assert [o.date.day for o in occ] == [15, 22, 29]

    def test_end_date_inclusive(self):
        """Das Enddatum selbst zählt noch."""
        occ = self.expander.expand(_single(day=1, end_date="2024-01-22"), 1, 2024)
        assert [o.date.day for o in occ] == [1, 8, 15, 22]

    def test_class_not_yet_started(self):
        assert self.expander.expand(_single(start_date="2024-02-01"), 1, 2024) == []

    def test_class_already_ended(self):
        assert self.expander.expand(_single(end_date="2023-12-31"), 1, 2024) == []

    def test_multiple_uses_variant_ids(self):
        """Mehrfach-Stundenplan → eine Varianten-ID pro Wochentag."""
        occ = self.expander.expand(_multiple(days=(1, 3)), 1, 2024)
        ids = {o.class_id for o in occ}
        assert ids == {"m1::1", "m1::3"}
        wednesdays = [o.date.day for o in occ if o.class_id == "m1::3"]
        assert wednesdays == [3, 10, 17, 24, 31]

    def test_leap_day_included(self):
        """Donnerstag, 29.02.2024."""
        occ = self.expander.expand(_single(day=4), 2, 2024)
        assert occ[-1].date == date(2024, 2, 29)

    def test_entries_filter(self):
        c = _multiple(days=(1, 3))
        occ = self.expander.expand(c, 1, 2024, entries=[c.schedules[0]])
        assert {o.class_id for o in occ} == {"m1::1"}

    def test_timezone_copied_from_entry(self):
        occ = self.expander.expand(_single(tz="America/New_York"), 1, 2024)
        assert all(o.timezone == "America/New_York" for o in occ)
