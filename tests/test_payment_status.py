"""Tests für Zahlungsstatus und zeitliche Einordnung von Stunden."""

from datetime import date, datetime, timezone

from analysis.payment_status import (
    OccurrenceTiming,
    PaymentStatus,
    PaymentStatusAnalyzer,
    classify_occurrence,
)
from models.calendar_month import CalendarMonth, PaymentDue, ResolvedOccurrence
from models.class_data import CompletedPayment
from resolver.clock import FixedClock


def _clock(day=10, hour=12) -> FixedClock:
    return FixedClock(datetime(2024, 1, day, hour, 0, tzinfo=timezone.utc))


def _month(*dues: PaymentDue) -> CalendarMonth:
    return CalendarMonth(month=1, year=2024, viewer_timezone="UTC", payment_due_dates=list(dues))


def _occ(day: int, start: str, tz: str = "UTC") -> ResolvedOccurrence:
    d = date(2024, 1, day)
    return ResolvedOccurrence(
        class_id="c1", date=d, local_date=d, start_time=start, end_time="23:59",
        display_time="", timezone=tz, timezone_abbreviation=tz, source_timezone="UTC",
    )


class TestPaymentStatus:
    def test_classification(self):
        """Stichtag 10.01.: 5. überfällig, 12. bald fällig, 20. offen, 13. gerade noch bald."""
        dues = [PaymentDue(date=date(2024, 1, d), class_id="c1") for d in (5, 12, 13, 14, 20)]
        report = PaymentStatusAnalyzer(soon_days=3, clock=_clock()).analyze(_month(*dues))
        statuses = [e.status for e in report.entries]
        assert statuses == [
            PaymentStatus.OVERDUE,
            PaymentStatus.DUE_SOON,
            PaymentStatus.DUE_SOON,
            PaymentStatus.UPCOMING,
            PaymentStatus.UPCOMING,
        ]
        assert report.today == date(2024, 1, 10)

    def test_due_today_is_soon(self):
        due = PaymentDue(date=date(2024, 1, 10), class_id="c1")
        report = PaymentStatusAnalyzer(clock=_clock()).analyze(_month(due))
        assert report.entries[0].status == PaymentStatus.DUE_SOON
        assert report.entries[0].days_until == 0

    def test_paid_wins_over_overdue(self):
        due = PaymentDue(date=date(2024, 1, 5), class_id="c1")
        paid = [CompletedPayment(class_id="c1", due_date=date(2024, 1, 5))]
        report = PaymentStatusAnalyzer(clock=_clock()).analyze(_month(due), paid)
        assert report.entries[0].status == PaymentStatus.PAID

    def test_paid_for_other_class_ignored(self):
        due = PaymentDue(date=date(2024, 1, 5), class_id="c1")
        paid = [CompletedPayment(class_id="c2", due_date=date(2024, 1, 5))]
        report = PaymentStatusAnalyzer(clock=_clock()).analyze(_month(due), paid)
        assert report.entries[0].status == PaymentStatus.OVERDUE

    def test_counts(self):
        dues = [PaymentDue(date=date(2024, 1, d), class_id="c1") for d in (1, 2, 25)]
        report = PaymentStatusAnalyzer(clock=_clock()).analyze(_month(*dues))
        assert report.count(PaymentStatus.OVERDUE) == 2
        assert len(report.by_status(PaymentStatus.UPCOMING)) == 1

    def test_today_in_analyzer_timezone(self):
        """23:00 UTC am 10. ist in Tokio schon der 11."""
        due = PaymentDue(date=date(2024, 1, 11), class_id="c1")
        analyzer = PaymentStatusAnalyzer(clock=_clock(hour=23), timezone="Asia/Tokyo")
        report = analyzer.analyze(_month(due))
        assert report.today == date(2024, 1, 11)
        assert report.entries[0].days_until == 0


class TestOccurrenceTiming:
    def test_past(self):
        assert classify_occurrence(_occ(10, "09:00"), _clock()) == OccurrenceTiming.PAST

    def test_today_not_started(self):
        assert classify_occurrence(_occ(10, "15:00"), _clock()) == OccurrenceTiming.TODAY

    def test_upcoming(self):
        assert classify_occurrence(_occ(11, "09:00"), _clock()) == OccurrenceTiming.UPCOMING

    def test_viewer_timezone_used(self):
        """12:00 UTC = 07:00 New York → eine 08:00-Stunde in New York kommt noch."""
        assert classify_occurrence(_occ(10, "08:00", "America/New_York"), _clock()) == OccurrenceTiming.TODAY

    def test_unknown_timezone_falls_back_to_utc(self):
        assert classify_occurrence(_occ(10, "09:00", "Nowhere/Zone"), _clock()) == OccurrenceTiming.PAST
