"""Zahlungsstatus und zeitliche Einordnung von Stunden.

Der Resolver liefert nur Fälligkeitsdaten. Ob eine Zahlung bezahlt,
überfällig oder bald fällig ist, hängt vom heutigen Datum und den
abgeschlossenen Zahlungen ab und wird hier abgeleitet.
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel

from models.calendar_month import CalendarMonth, PaymentDue, ResolvedOccurrence
from models.class_data import CompletedPayment
from resolver.clock import Clock, system_clock
from resolver.errors import TimezoneConversionError
from resolver.time_of_day import parse_time
from resolver.timezone import resolve_zone


class PaymentStatus(str, Enum):
    PAID = "paid"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    UPCOMING = "upcoming"


class OccurrenceTiming(str, Enum):
    PAST = "past"          # bereits begonnen
    TODAY = "today"        # heute, noch nicht begonnen
    UPCOMING = "upcoming"  # an einem späteren Tag


_STATUS_STYLE = {
    PaymentStatus.PAID: ("green", "bezahlt"),
    PaymentStatus.OVERDUE: ("red", "überfällig"),
    PaymentStatus.DUE_SOON: ("yellow", "bald fällig"),
    PaymentStatus.UPCOMING: ("dim", "offen"),
}


# ─── Modelle ──────────────────────────────────────────────────────────────────

class PaymentStatusEntry(BaseModel):
    due: PaymentDue
    status: PaymentStatus
    days_until: int   # negativ = in der Vergangenheit


class PaymentStatusReport(BaseModel):
    """Fälligkeiten eines Monats mit abgeleitetem Status."""

    month: int
    year: int
    today: date
    entries: list[PaymentStatusEntry]

    def count(self, status: PaymentStatus) -> int:
        return sum(1 for e in self.entries if e.status == status)

    def by_status(self, status: PaymentStatus) -> list[PaymentStatusEntry]:
        return [e for e in self.entries if e.status == status]

    def print_rich(self) -> None:
        """Gibt die Übersicht formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        console.print(Panel(
            f"Stichtag: [bold]{self.today.isoformat()}[/bold] | "
            f"Fälligkeiten: [bold]{len(self.entries)}[/bold]\n"
            f"[green]bezahlt {self.count(PaymentStatus.PAID)}[/green] | "
            f"[red]überfällig {self.count(PaymentStatus.OVERDUE)}[/red] | "
            f"[yellow]bald fällig {self.count(PaymentStatus.DUE_SOON)}[/yellow] | "
            f"offen {self.count(PaymentStatus.UPCOMING)}",
            title=f"Zahlungen {self.year}-{self.month:02d}",
            border_style="cyan",
        ))
        if not self.entries:
            console.print("[dim]Keine Fälligkeiten in diesem Monat.[/dim]")
            return

        table = Table(box=box.ROUNDED)
        table.add_column("Datum", width=11)
        table.add_column("Klasse")
        table.add_column("Betrag", justify="right")
        table.add_column("Tage", justify="right", width=5)
        table.add_column("Status")
        table.add_column("Link", overflow="fold")
        for e in self.entries:
            color, label = _STATUS_STYLE[e.status]
            amount = ""
            if e.due.amount is not None:
                amount = f"{e.due.amount:.2f} {e.due.currency or ''}".strip()
            table.add_row(
                e.due.date.isoformat(),
                e.due.class_id,
                amount,
                str(e.days_until),
                f"[{color}]{label}[/{color}]",
                e.due.payment_link or "",
            )
        console.print(table)


# ─── Analyse ──────────────────────────────────────────────────────────────────

class PaymentStatusAnalyzer:
    """Ordnet Fälligkeiten relativ zum heutigen Datum ein.

    Args:
        soon_days: Fälligkeiten in 0..soon_days Tagen gelten als "bald fällig".
        timezone: Zone, in der "heute" bestimmt wird.
    """

    def __init__(self, soon_days: int = 3, clock: Optional[Clock] = None,
                 timezone: str = "UTC") -> None:
        self.soon_days = soon_days
        self.clock = clock or system_clock
        self.timezone = timezone

    def status_for(self, due: PaymentDue, paid: set[tuple[str, date]], today: date) -> PaymentStatusEntry:
        days = (due.date - today).days
        if (due.class_id, due.date) in paid:
            status = PaymentStatus.PAID
        elif days < 0:
            status = PaymentStatus.OVERDUE
        elif days <= self.soon_days:
            status = PaymentStatus.DUE_SOON
        else:
            status = PaymentStatus.UPCOMING
        return PaymentStatusEntry(due=due, status=status, days_until=days)

    def analyze(
        self,
        calendar_month: CalendarMonth,
        completed: Iterable[CompletedPayment] = (),
    ) -> PaymentStatusReport:
        today = self.clock.today(self.timezone)
        paid = {(p.class_id, p.due_date) for p in completed}
        return PaymentStatusReport(
            month=calendar_month.month,
            year=calendar_month.year,
            today=today,
            entries=[
                self.status_for(due, paid, today)
                for due in calendar_month.payment_due_dates
            ],
        )


def classify_occurrence(occ: ResolvedOccurrence, clock: Optional[Clock] = None) -> OccurrenceTiming:
    """Vergangen, heute (noch nicht begonnen) oder kommend.

    Verglichen wird in der Zone des Betrachters (`occ.timezone`); ist sie
    nicht auflösbar, in UTC.
    """
    clock = clock or system_clock
    try:
        zone = resolve_zone(occ.timezone)
        now = clock.now(occ.timezone)
    except TimezoneConversionError:
        zone = None
        now = clock.now()

    start = parse_time(occ.start_time)
    starts_at = datetime.combine(occ.local_date, time(start.hour, start.minute), tzinfo=zone or now.tzinfo)
    if starts_at <= now:
        return OccurrenceTiming.PAST
    if occ.local_date == now.date():
        return OccurrenceTiming.TODAY
    return OccurrenceTiming.UPCOMING
