"""DateKey: kanonischer YYYY-MM-DD-Schlüssel für Datums-Lookups.

Ausnahmen, Materialien und Hausaufgaben werden über Datums-Strings verknüpft.
Alle Komponenten formatieren ausschließlich über diese Klasse, damit die
Join-Keys (``"<class_id>_<YYYY-MM-DD>"``) überall identisch sind.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Union

DateLike = Union["DateKey", date, datetime, str]


@dataclass(frozen=True, order=True)
class DateKey:
    """Datum ohne Uhrzeit, als Dict-Key / Set-Element nutzbar."""

    value: date

    @classmethod
    def of(cls, raw: DateLike) -> "DateKey":
        """Erzeugt einen DateKey aus date, datetime oder ISO-String.

        Bei datetime wird nur der Datumsanteil verwendet (keine Zonen-Umrechnung).
        """
        if isinstance(raw, DateKey):
            return raw
        if isinstance(raw, datetime):
            return cls(raw.date())
        if isinstance(raw, date):
            return cls(raw)
        if isinstance(raw, str):
            try:
                return cls(date.fromisoformat(raw.strip()[:10]))
            except ValueError as e:
                raise ValueError(f"Ungültiges Datum: {raw!r}") from e
        raise TypeError(f"Kein Datum: {raw!r}")

    @property
    def iso(self) -> str:
        return self.value.isoformat()

    @property
    def month_key(self) -> str:
        """Monats-Schlüssel "YYYY-MM" (Material-/Hausaufgaben-Abfragen)."""
        return f"{self.value.year:04d}-{self.value.month:02d}"

    def in_month(self, year: int, month: int) -> bool:
        return self.value.year == year and self.value.month == month

    def __str__(self) -> str:
        return self.iso


def date_key(raw: DateLike) -> str:
    """Kurzform: beliebiges Datum → "YYYY-MM-DD"."""
    return DateKey.of(raw).iso


def join_key(class_id: str, raw: DateLike) -> str:
    """Verknüpfungs-Schlüssel für Materialien/Hausaufgaben: "<class_id>_<YYYY-MM-DD>"."""
    return f"{class_id}_{date_key(raw)}"
