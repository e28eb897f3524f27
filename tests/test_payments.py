"""Tests für die Fälligkeitsberechnung (wöchentlich / monatlich)."""

from datetime import date

import pytest

from models.payment_config import PaymentConfig
from resolver.errors import InvalidPaymentConfigError
from resolver.payments import PaymentDueCalculator


def _weekly(interval=1, start=None) -> PaymentConfig:
    return PaymentConfig(type="weekly", weekly_interval=interval, start_date=start)


def _monthly(option, start=None) -> PaymentConfig:
    return PaymentConfig(type="monthly", monthly_option=option, start_date=start)


class TestMonthly:
    def setup_method(self):
        self.calc = PaymentDueCalculator()

    def test_last_day_leap_year(self):
        """Februar 2024 → 29.02."""
        dues = self.calc.compute_due_dates(_monthly("last"), date(2023, 1, 1), 2, 2024)
        assert dues == [date(2024, 2, 29)]

    def test_last_day_non_leap_year(self):
        dues = self.calc.compute_due_dates(_monthly("last"), date(2022, 1, 1), 2, 2023)
        assert dues == [date(2023, 2, 28)]

    def test_first_and_fifteen(self):
        start = date(2023, 1, 1)
        assert self.calc.compute_due_dates(_monthly("first"), start, 3, 2024) == [date(2024, 3, 1)]
        assert self.calc.compute_due_dates(_monthly("fifteen"), start, 3, 2024) == [date(2024, 3, 15)]

    def test_before_anchor_excluded(self):
        """Klasse beginnt am 10. → der 1. des Monats ist noch nicht fällig."""
        dues = self.calc.compute_due_dates(_monthly("first"), date(2024, 3, 10), 3, 2024)
        assert dues == []

    def test_anchor_from_payment_config(self):
        """start_date der Zahlungsregel hat Vorrang vor dem Klassenstart."""
        cfg = _monthly("fifteen", start=date(2024, 3, 20))
        assert self.calc.compute_due_dates(cfg, date(2023, 1, 1), 3, 2024) == []
        assert self.calc.compute_due_dates(cfg, date(2023, 1, 1), 4, 2024) == [date(2024, 4, 15)]

    def test_after_class_end_excluded(self):
        dues = self.calc.compute_due_dates(
            _monthly("last"), date(2023, 1, 1), 3, 2024, class_end_date=date(2024, 3, 20)
        )
        assert dues == []

    def test_month_before_anchor_empty(self):
        assert self.calc.compute_due_dates(_monthly("first"), date(2024, 5, 1), 3, 2024) == []


class TestWeekly:
    def setup_method(self):
        self.calc = PaymentDueCalculator()

    def test_every_week_from_anchor(self):
        """Anker Montag 01.01.2024 → jeden Montag im Januar."""
        dues = self.calc.compute_due_dates(_weekly(1), date(2024, 1, 1), 1, 2024)
        assert [d.day for d in dues] == [1, 8, 15, 22, 29]

    def test_biweekly_continues_across_months(self):
        """Alle 2 Wochen ab 01.01.: im Februar 12. und 26."""
        dues = self.calc.compute_due_dates(_weekly(2), date(2024, 1, 1), 2, 2024)
        assert dues == [date(2024, 2, 12), date(2024, 2, 26)]

    def test_anchor_mid_month(self):
        dues = self.calc.compute_due_dates(_weekly(1, start=date(2024, 1, 17)), date(2023, 1, 1), 1, 2024)
        assert [d.day for d in dues] == [17, 24, 31]

    def test_stops_at_class_end(self):
        dues = self.calc.compute_due_dates(
            _weekly(1), date(2024, 1, 1), 1, 2024, class_end_date=date(2024, 1, 16)
        )
        assert [d.day for d in dues] == [1, 8, 15]

    def test_phase_preserved_long_after_anchor(self):
        """Ein Jahr nach dem Anker bleibt der Wochentag erhalten."""
        dues = self.calc.compute_due_dates(_weekly(3), date(2023, 1, 2), 1, 2024)
        assert all((d - date(2023, 1, 2)).days % 21 == 0 for d in dues)
        assert dues


class TestValidation:
    def setup_method(self):
        self.calc = PaymentDueCalculator()

    @pytest.mark.parametrize("cfg", [
        PaymentConfig(type="weekly"),
        PaymentConfig(type="weekly", weekly_interval=0),
        PaymentConfig(type="monthly"),
        PaymentConfig(type="monthly", monthly_option="second"),
        PaymentConfig(type="yearly"),
    ])
    def test_invalid_configs_raise(self, cfg):
        with pytest.raises(InvalidPaymentConfigError):
            self.calc.compute_due_dates(cfg, date(2024, 1, 1), 1, 2024)

    def test_valid_config_passes(self):
        self.calc.validate(_weekly(2))
        self.calc.validate(_monthly("last"))
