"""Expansion wöchentlicher Termine in konkrete Kalendertage eines Monats."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from models.class_definition import ClassDefinition
from models.schedule import ScheduleEntry

VARIANT_SEPARATOR = "::"


@dataclass(frozen=True)
class Occurrence:
    """Rohe Stunde vor der Umrechnung in die Betrachter-Zone.

    `class_id` ist bei Mehrfach-Stundenplänen eine Varianten-ID
    ("<basis>::<wochentag>"); der Deduplicator führt sie zurück.
    """

    class_id: str
    date: date
    start_time: str
    end_time: str
    timezone: str
    rescheduled_from: Optional[date] = None
    exception_id: Optional[str] = None


def sunday_based_weekday(d: date) -> int:
    """Wochentag mit 0=Sonntag … 6=Samstag (Speicherkonvention)."""
    return (d.weekday() + 1) % 7


def variant_id(base_id: str, day_of_week: int) -> str:
    return f"{base_id}{VARIANT_SEPARATOR}{day_of_week}"


def base_class_id(raw_id: str) -> str:
    """Entfernt ein Varianten-Suffix ("abc::3" → "abc")."""
    base, sep, suffix = raw_id.rpartition(VARIANT_SEPARATOR)
    if sep and suffix.isdigit():
        return base
    return raw_id


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """Erster und letzter Kalendertag eines Monats."""
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def adjacent_months(year: int, month: int) -> list[tuple[int, int]]:
    """(Jahr, Monat) für Vormonat, Monat, Folgemonat."""
    prev = (year - 1, 12) if month == 1 else (year, month - 1)
    nxt = (year + 1, 1) if month == 12 else (year, month + 1)
    return [prev, (year, month), nxt]


def is_in_relevant_range(d: date, year: int, month: int) -> bool:
    """True wenn `d` im Monat oder einem direkten Nachbarmonat liegt."""
    return (d.year, d.month) in adjacent_months(year, month)


class RecurrenceExpander:
    """Erzeugt alle Kalendertage eines Monats, an denen eine Klasse stattfindet."""

    def expand(
        self,
        class_def: ClassDefinition,
        month: int,
        year: int,
        entries: Optional[list[ScheduleEntry]] = None,
    ) -> list[Occurrence]:
        """Expandiert den Wochenplan für (month, year).

        Pro Termin werden alle passenden Wochentage des Monats erzeugt, ohne
        Tage vor `start_date` und nach `end_date` (das Enddatum selbst zählt
        noch). Reihenfolge: Termin für Termin, Datum aufsteigend.

        Args:
            entries: optional gefilterte Termine (z.B. ohne unparsebare
                Uhrzeiten); Default sind alle Termine der Klasse.
        """
        month_start, month_end = month_bounds(year, month)
        first = max(month_start, class_def.start_date)
        last = month_end if class_def.end_date is None else min(month_end, class_def.end_date)
        if first > last:
            return []

        is_multiple = class_def.schedule_type == "multiple"
        occurrences: list[Occurrence] = []
        for entry in (class_def.schedules if entries is None else entries):
            offset = (entry.day_of_week - sunday_based_weekday(month_start)) % 7
            current = month_start + timedelta(days=offset)
            raw_id = variant_id(class_def.id, entry.day_of_week) if is_multiple else class_def.id
            while current <= month_end:
                if first <= current <= last:
                    occurrences.append(Occurrence(
                        class_id=raw_id,
                        date=current,
                        start_time=entry.start_time,
                        end_time=entry.end_time,
                        timezone=entry.timezone,
                    ))
                current += timedelta(days=7)
        return occurrences
