"""Fälligkeitstermine aus der Zahlungsregel einer Klasse."""

import calendar
import logging
from datetime import date, timedelta
from typing import Optional

from models.payment_config import MonthlyOption, PaymentConfig, PaymentType
from resolver.errors import InvalidPaymentConfigError
from resolver.recurrence import month_bounds

logger = logging.getLogger(__name__)


class PaymentDueCalculator:
    """Berechnet die Fälligkeiten einer Klasse innerhalb eines Monats.

    Anker ist `payment_config.start_date`, sonst das Startdatum der Klasse.
    Vor dem Anker und nach dem Enddatum der Klasse gibt es keine Termine.
    """

    def validate(self, config: PaymentConfig) -> None:
        """Prüft die Regel. Raises InvalidPaymentConfigError."""
        if config.type == PaymentType.WEEKLY.value:
            interval = config.weekly_interval
            if interval is None:
                raise InvalidPaymentConfigError("Wöchentliche Zahlung ohne weekly_interval.")
            if interval < 1:
                raise InvalidPaymentConfigError(
                    f"weekly_interval muss ≥ 1 sein, ist {interval}."
                )
        elif config.type == PaymentType.MONTHLY.value:
            valid = {o.value for o in MonthlyOption}
            if config.monthly_option not in valid:
                raise InvalidPaymentConfigError(
                    f"monthly_option '{config.monthly_option}' ungültig "
                    f"(erlaubt: {', '.join(sorted(valid))})."
                )
        else:
            raise InvalidPaymentConfigError(f"Unbekannter Zahlungstyp '{config.type}'.")

    def compute_due_dates(
        self,
        payment_config: PaymentConfig,
        class_start_date: date,
        month: int,
        year: int,
        class_end_date: Optional[date] = None,
    ) -> list[date]:
        """Alle Fälligkeiten im Monat, aufsteigend sortiert."""
        self.validate(payment_config)

        anchor = payment_config.start_date or class_start_date
        month_start, month_end = month_bounds(year, month)
        last = month_end if class_end_date is None else min(month_end, class_end_date)
        if last < max(month_start, anchor):
            return []

        if payment_config.type == PaymentType.WEEKLY.value:
            dues = self._weekly(anchor, payment_config.weekly_interval, month_start, last)
        else:
            dues = self._monthly(payment_config.monthly_option, year, month, anchor, last)

        logger.debug(
            f"Fälligkeiten {year}-{month:02d} ({payment_config.type}, Anker {anchor}): "
            f"{[d.isoformat() for d in dues]}"
        )
        return dues

    # ─── Regeln ───

    @staticmethod
    def _weekly(anchor: date, interval: int, month_start: date, last: date) -> list[date]:
        step = timedelta(days=7 * interval)
        current = anchor
        if current < month_start:
            # Direkt zum ersten Intervall-Termin im Monat springen
            gap = (month_start - anchor).days
            periods = -(-gap // step.days)
            current = anchor + step * periods

        dues: list[date] = []
        while current <= last:
            dues.append(current)
            current += step
        return dues

    @staticmethod
    def _monthly(option: str, year: int, month: int, anchor: date, last: date) -> list[date]:
        if option == MonthlyOption.FIRST.value:
            day = 1
        elif option == MonthlyOption.FIFTEEN.value:
            day = 15
        else:
            day = calendar.monthrange(year, month)[1]
        due = date(year, month, day)
        if anchor <= due <= last:
            return [due]
        return []
