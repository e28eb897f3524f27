"""Ergebnis-Modelle des Resolvers: CalendarMonth und seine Einträge (Pydantic v2).

Der Assembler erzeugt und besitzt diese Werte; Aufrufer leiten daraus nur
Darstellungszustand ab. Die Modelle sind daher eingefroren (frozen=True).
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict

from models.date_key import join_key


class ResolvedOccurrence(BaseModel):
    """Eine konkrete Unterrichtsstunde, umgerechnet in die Zeitzone des Betrachters."""

    model_config = ConfigDict(frozen=True)

    class_id: str                  # Basis-Identität, nie eine Varianten-ID
    date: date                     # Datum in der Zone der Klasse (Join-Key)
    local_date: date               # Datum in der Zone des Betrachters
    start_time: str                # "14:00" (24h, Betrachter-Zone)
    end_time: str                  # "15:00"
    display_time: str              # "2:00 PM - 3:00 PM UTC"
    timezone: str                  # Zone des Betrachters
    timezone_abbreviation: str     # "UTC", "EST", ...
    source_timezone: str           # effektive Zone der Stunde (Klasse oder Ausnahme)
    is_rescheduled_from: Optional[date] = None
    is_cancelled: bool = False

    @property
    def join_key(self) -> str:
        """Schlüssel für Material-/Hausaufgaben-Maps: "<class_id>_<YYYY-MM-DD>"."""
        return join_key(self.class_id, self.date)


class PaymentDue(BaseModel):
    """Fälligkeit einer Zahlung (nur Datum, ohne Status)."""

    model_config = ConfigDict(frozen=True)

    date: date
    class_id: str
    payment_link: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None


class AssemblyWarning(BaseModel):
    """Diagnose-Eintrag: etwas wurde beim Monatsaufbau ausgeschlossen."""

    model_config = ConfigDict(frozen=True)

    class_id: Optional[str]
    kind: str         # "ParseError", "InvalidExceptionError", ...
    message: str


class CalendarMonth(BaseModel):
    """Alle Stunden und Fälligkeiten eines Monats für einen Betrachter."""

    model_config = ConfigDict(frozen=True)

    month: int   # 1..12
    year: int
    viewer_timezone: str
    occurrences: list[ResolvedOccurrence] = []
    cancelled: list[ResolvedOccurrence] = []     # nur zur Nachvollziehbarkeit
    payment_due_dates: list[PaymentDue] = []
    warnings: list[AssemblyWarning] = []

    def occurrences_on(self, d: date) -> list[ResolvedOccurrence]:
        """Stunden an einem Tag (Betrachter-Datum)."""
        return [o for o in self.occurrences if o.local_date == d]

    def payments_on(self, d: date) -> list[PaymentDue]:
        return [p for p in self.payment_due_dates if p.date == d]

    def for_class(self, class_id: str) -> list[ResolvedOccurrence]:
        return [o for o in self.occurrences if o.class_id == class_id]

    def class_dates(self, class_id: str) -> list[date]:
        return [o.date for o in self.for_class(class_id)]

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)
