"""Datenmodell für eine Ausnahme (Ausfall / Verlegung) einer Klasse (Pydantic v2)."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, field_validator

from models.date_key import DateKey


class ExceptionType(str, Enum):
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"


class ClassException(BaseModel):
    """Überschreibt genau einen Termin einer Klasse.

    Schlüssel ist immer das ursprüngliche Datum (`original_date`); pro Klasse
    und Datum gibt es höchstens eine Ausnahme. Eine Verlegung darf in einen
    anderen Monat führen.

    Vollständigkeit (z.B. new_date bei Verlegung) wird hier NICHT erzwungen:
    Der Resolver schließt unvollständige Ausnahmen mit Warnung aus, der
    ScheduleStore lehnt sie beim Anlegen ab.
    """

    id: str
    class_id: str
    type: ExceptionType
    original_date: date
    original_start_time: Optional[str] = None
    original_end_time: Optional[str] = None
    new_date: Optional[date] = None
    new_start_time: Optional[str] = None
    new_end_time: Optional[str] = None
    timezone: str = "UTC"
    reason: Optional[str] = None
    created_at: Optional[datetime] = None
    created_by: Optional[str] = None

    @field_validator("original_date", "new_date", mode="before")
    @classmethod
    def _date_only(cls, v):
        if v is None or v == "":
            return None
        return DateKey.of(v).value

    @property
    def is_cancelled(self) -> bool:
        return self.type == ExceptionType.CANCELLED

    @property
    def is_rescheduled(self) -> bool:
        return self.type == ExceptionType.RESCHEDULED

    @property
    def original_key(self) -> DateKey:
        return DateKey(self.original_date)

    @property
    def new_key(self) -> Optional[DateKey]:
        return DateKey(self.new_date) if self.new_date else None

    def touches_range(self, start: date, end: date) -> bool:
        """True wenn Original- ODER Zieldatum in [start, end] liegt."""
        if start <= self.original_date <= end:
            return True
        return self.new_date is not None and start <= self.new_date <= end
