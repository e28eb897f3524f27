"""Tests für den Monatsaufbau (Expansion, Overlay, Umrechnung, Zahlungen)."""

from datetime import date

import pytest

from models.class_definition import ClassDefinition
from models.class_exception import ClassException
from resolver.assembler import MonthlyCalendarAssembler


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _monday_class(class_id="c1", start="14:00", end="15:00", tz="UTC", **kwargs) -> ClassDefinition:
    return ClassDefinition.model_validate({
        "id": class_id,
        "day_of_week": 1,
        "start_time": start,
        "end_time": end,
        "timezone": tz,
        "start_date": "2024-01-01",
        **kwargs,
    })


def _move_jan8_to_feb2() -> ClassException:
    return ClassException(
        id="r1", class_id="c1", type="rescheduled",
        original_date="2024-01-08", original_start_time="14:00", original_end_time="15:00",
        new_date="2024-02-02", new_start_time="11:00", new_end_time="12:00", timezone="UTC",
    )


def _assemble(classes, exceptions=None, month=1, year=2024, tz="UTC"):
    return MonthlyCalendarAssembler().assemble(classes, exceptions or {}, month, year, tz)


# ─── GRUNDFALL ────────────────────────────────────────────────────────────────

class TestBasicMonth:
    def test_mondays_january_utc(self):
        cal = _assemble([_monday_class()])
        assert [o.date.day for o in cal.occurrences] == [1, 8, 15, 22, 29]
        first = cal.occurrences[0]
        assert first.start_time == "14:00"
        assert first.end_time == "15:00"
        assert first.display_time == "2:00 PM - 3:00 PM UTC"
        assert first.timezone == "UTC"
        assert first.is_rescheduled_from is None
        assert cal.warnings == []

    def test_invalid_month_raises(self):
        with pytest.raises(ValueError):
            _assemble([_monday_class()], month=13)

    def test_idempotent(self):
        """Gleiche Eingaben → gleicher Monat."""
        classes = [_monday_class()]
        exceptions = {"c1": [_move_jan8_to_feb2()]}
        assert _assemble(classes, exceptions) == _assemble(classes, exceptions)

    def test_sorted_by_local_date_and_time(self):
        classes = [_monday_class("b", start="09:00", end="10:00"), _monday_class("a")]
        cal = _assemble(classes)
        jan1 = [o.class_id for o in cal.occurrences_on(date(2024, 1, 1))]
        assert jan1 == ["b", "a"]

    def test_empty_class_list(self):
        cal = _assemble([])
        assert cal.occurrences == []
        assert cal.payment_due_dates == []


# ─── VERLEGUNG ÜBER DIE MONATSGRENZE ──────────────────────────────────────────

class TestCrossMonthReschedule:
    def test_source_month_loses_lesson(self):
        cal = _assemble([_monday_class()], {"c1": [_move_jan8_to_feb2()]})
        assert [o.date.day for o in cal.occurrences] == [1, 15, 22, 29]

    def test_target_month_gains_lesson(self):
        cal = _assemble([_monday_class()], {"c1": [_move_jan8_to_feb2()]}, month=2)
        moved = [o for o in cal.occurrences if o.is_rescheduled_from is not None]
        assert len(moved) == 1
        assert moved[0].date == date(2024, 2, 2)
        assert moved[0].start_time == "11:00"
        assert moved[0].end_time == "12:00"
        assert moved[0].is_rescheduled_from == date(2024, 1, 8)
        assert [o.date.day for o in cal.occurrences] == [2, 5, 12, 19, 26]


# ─── AUSFÄLLE ─────────────────────────────────────────────────────────────────

class TestCancelled:
    def test_cancelled_listed_separately(self):
        exc = ClassException(id="e1", class_id="c1", type="cancelled", original_date="2024-01-15")
        cal = _assemble([_monday_class()], {"c1": [exc]})
        assert date(2024, 1, 15) not in cal.class_dates("c1")
        assert [o.date for o in cal.cancelled] == [date(2024, 1, 15)]
        assert cal.cancelled[0].is_cancelled


# ─── ZEITZONEN ────────────────────────────────────────────────────────────────

class TestViewerTimezone:
    def test_new_york_viewer(self):
        """14:00 UTC im Januar → 9:00 AM EST."""
        cal = _assemble([_monday_class()], tz="America/New_York")
        first = cal.occurrences[0]
        assert first.start_time == "09:00"
        assert first.display_time == "9:00 AM - 10:00 AM EST"
        assert first.timezone_abbreviation == "EST"
        assert first.source_timezone == "UTC"

    def test_local_date_shifts_join_key_stays(self):
        """20:00 UTC → 05:00 JST am Folgetag; der Join-Key bleibt beim Klassen-Datum."""
        cal = _assemble([_monday_class(start="20:00", end="21:00")], tz="Asia/Tokyo")
        first = cal.occurrences[0]
        assert first.date == date(2024, 1, 1)
        assert first.local_date == date(2024, 1, 2)
        assert first.join_key == "c1_2024-01-01"
        assert cal.occurrences_on(date(2024, 1, 2)) == [first]

    def test_dst_change_within_month(self):
        """New-York-Klasse, UTC-Betrachter: März 2024 springt um eine Stunde."""
        c = _monday_class(start="09:00", end="10:00", tz="America/New_York")
        cal = _assemble([c], month=3)
        by_day = {o.date.day: o.start_time for o in cal.occurrences}
        assert by_day[4] == "14:00"    # EST
        assert by_day[11] == "13:00"   # EDT


# ─── MEHRFACH-STUNDENPLÄNE ────────────────────────────────────────────────────

class TestMultipleSchedule:
    def test_variants_collapsed_to_base_id(self):
        c = ClassDefinition.model_validate({
            "id": "m1",
            "schedule_type": "multiple",
            "schedules": [
                {"day_of_week": 1, "start_time": "10:00", "end_time": "11:00", "timezone": "UTC"},
                {"day_of_week": 3, "start_time": "10:00", "end_time": "11:00", "timezone": "UTC"},
            ],
            "start_date": "2024-01-01",
        })
        cal = _assemble([c])
        assert {o.class_id for o in cal.occurrences} == {"m1"}
        assert len(cal.occurrences) == 10

    def test_exceptions_under_variant_key_applied(self):
        """Ausnahmen unter "m1::1" gelten für Klasse m1."""
        c = ClassDefinition.model_validate({
            "id": "m1",
            "schedule_type": "multiple",
            "schedules": [
                {"day_of_week": 1, "start_time": "10:00", "end_time": "11:00", "timezone": "UTC"},
                {"day_of_week": 3, "start_time": "10:00", "end_time": "11:00", "timezone": "UTC"},
            ],
            "start_date": "2024-01-01",
        })
        exc = ClassException(id="e1", class_id="m1::1", type="cancelled", original_date="2024-01-08")
        cal = _assemble([c], {"m1::1": [exc]})
        assert date(2024, 1, 8) not in [o.date for o in cal.occurrences]
        assert [o.date for o in cal.cancelled] == [date(2024, 1, 8)]
        assert cal.warnings == []


# ─── ZAHLUNGEN ────────────────────────────────────────────────────────────────

class TestPayments:
    def test_monthly_last_leap_year(self):
        c = _monday_class(payment_config={"type": "monthly", "monthly_option": "last",
                                          "amount": 120, "currency": "USD",
                                          "payment_link": "https://pay.example.com/x"})
        cal = _assemble([c], month=2)
        assert len(cal.payment_due_dates) == 1
        due = cal.payment_due_dates[0]
        assert due.date == date(2024, 2, 29)
        assert due.class_id == "c1"
        assert due.amount == 120
        assert due.payment_link == "https://pay.example.com/x"
        assert cal.payments_on(date(2024, 2, 29)) == [due]

    def test_no_payment_config_no_dues(self):
        assert _assemble([_monday_class()]).payment_due_dates == []


# ─── WARNUNGEN ────────────────────────────────────────────────────────────────

class TestWarnings:
    def test_unparseable_time_skips_class_only(self):
        cal = _assemble([_monday_class("bad", start="25 Uhr"), _monday_class("good")])
        assert {o.class_id for o in cal.occurrences} == {"good"}
        assert [w.kind for w in cal.warnings] == ["ParseError"]
        assert cal.warnings[0].class_id == "bad"

    def test_unknown_timezone_falls_back(self):
        """Unbekannte Zone: Zeiten bleiben, eine einzige Warnung."""
        cal = _assemble([_monday_class(tz="Nowhere/Zone")])
        assert len(cal.occurrences) == 5
        assert cal.occurrences[0].start_time == "14:00"
        assert cal.occurrences[0].timezone_abbreviation == "Nowhere/Zone"
        assert [w.kind for w in cal.warnings] == ["TimezoneConversionError"]

    @pytest.mark.parametrize("zone", ["America", "Europe"])
    def test_zone_directory_name_only_warns(self, zone):
        """Ein Zonen-Verzeichnis als Zeitzone bricht den Monat nicht ab."""
        cal = _assemble([_monday_class("odd", tz=zone), _monday_class("ok")])
        assert len([o for o in cal.occurrences if o.class_id == "ok"]) == 5
        assert len([o for o in cal.occurrences if o.class_id == "odd"]) == 5
        assert [w.kind for w in cal.warnings] == ["TimezoneConversionError"]
        assert cal.warnings[0].class_id == "odd"

    def test_exception_for_unknown_class(self):
        exc = ClassException(id="e9", class_id="ghost", type="cancelled", original_date="2024-01-08")
        cal = _assemble([_monday_class()], {"ghost": [exc]})
        assert len(cal.occurrences) == 5
        assert cal.warnings[0].kind == "InvalidExceptionError"
        assert cal.warnings[0].class_id == "ghost"

    def test_invalid_payment_config_keeps_lessons(self):
        c = _monday_class(payment_config={"type": "weekly"})
        cal = _assemble([c])
        assert len(cal.occurrences) == 5
        assert cal.payment_due_dates == []
        assert [w.kind for w in cal.warnings] == ["InvalidPaymentConfigError"]
        assert cal.has_warnings
