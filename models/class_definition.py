"""Datenmodell für eine wiederkehrende Unterrichtsklasse (Pydantic v2)."""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, field_validator, model_validator

from models.date_key import DateKey
from models.payment_config import PaymentConfig
from models.schedule import Schedule, ScheduleEntry, schedule_from_flat


class ClassDefinition(BaseModel):
    """Eine Klasse mit Wochenplan, Laufzeit und Teilnehmern.

    `id` ist die Basis-Identität. Für Mehrfach-Stundenpläne erzeugt der
    Resolver intern Varianten-IDs ("<id>::<wochentag>"), die vor der Ausgabe
    wieder auf `id` zurückgeführt werden.
    """

    id: str
    schedule: Schedule
    start_date: date                     # erste mögliche Stunde (inklusive)
    end_date: Optional[date] = None      # letzte mögliche Stunde (inklusive); None = offen
    student_emails: list[str] = []
    course_type: str = ""
    notes: Optional[str] = None
    payment_config: Optional[PaymentConfig] = None

    @model_validator(mode="before")
    @classmethod
    def _accept_flat_schedule(cls, data: Any) -> Any:
        if isinstance(data, dict) and "schedule" not in data:
            data = dict(data)
            data["schedule"] = schedule_from_flat(data)
        return data

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _date_only(cls, v):
        # Zeitstempel aus der Datenbank ("2024-01-01T05:00:00Z") → nur Datum
        if v is None:
            return None
        return DateKey.of(v).value

    @field_validator("student_emails")
    @classmethod
    def _normalize_emails(cls, v: list[str]) -> list[str]:
        return [e.strip().lower() for e in v]

    @property
    def schedule_type(self) -> str:
        return self.schedule.kind

    @property
    def schedules(self) -> list[ScheduleEntry]:
        return self.schedule.entries

    def entry_for_weekday(self, day_of_week: int) -> Optional[ScheduleEntry]:
        """Termin für einen Wochentag (0=So); der Wochentag bestimmt ihn eindeutig."""
        return next((e for e in self.schedules if e.day_of_week == day_of_week), None)

    def is_active_on(self, d: date) -> bool:
        """True wenn `d` innerhalb von [start_date, end_date] liegt."""
        if d < self.start_date:
            return False
        return self.end_date is None or d <= self.end_date
