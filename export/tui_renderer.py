"""Gemeinsamer Renderer für die Terminal-Monatsansicht.

Wird von cmd_calendar (Rich) verwendet; liefert reine Tabellenzeilen, damit
die Darstellung unabhängig vom Ausgabe-Backend testbar bleibt.
"""

import calendar as _calendar
from datetime import date
from typing import TYPE_CHECKING, Optional

from models.schedule import DAY_NAMES

if TYPE_CHECKING:
    from models.calendar_month import CalendarMonth, ResolvedOccurrence


def _cell(
    day: date,
    calendar_month: "CalendarMonth",
    materials: set[str],
    homework: set[str],
    today: Optional[date],
) -> str:
    """Zelleninhalt: Tag, Stunden, Zahlungs- und Material-Markierungen."""
    head = f"{day.day:2d}"
    if today is not None and day == today:
        head += " ●"
    lines = [head]
    for occ in calendar_month.occurrences_on(day):
        marker = ""
        if occ.join_key in materials:
            marker += " 📎"
        if occ.join_key in homework:
            marker += " ✎"
        moved = " ↷" if occ.is_rescheduled_from else ""
        lines.append(f"{occ.start_time} {occ.class_id}{moved}{marker}")
    for occ in calendar_month.cancelled:
        if occ.local_date == day:
            lines.append(f"✗ {occ.class_id}")
    if calendar_month.payments_on(day):
        lines.append(f"$ ×{len(calendar_month.payments_on(day))}")
    return "\n".join(lines)


def render_month_rows(
    calendar_month: "CalendarMonth",
    materials: Optional[set[str]] = None,
    homework: Optional[set[str]] = None,
    today: Optional[date] = None,
) -> list[list[str]]:
    """Gibt Tabellenzeilen für die Monatsansicht zurück.

    Jede Zeile ist eine Woche: [So, Mo, Di, Mi, Do, Fr, Sa]. Tage außerhalb
    des Monats bleiben leer. `materials`/`homework` sind Mengen von Join-Keys
    ("<class_id>_<YYYY-MM-DD>").
    """
    materials = materials or set()
    homework = homework or set()
    cal = _calendar.Calendar(firstweekday=6)  # Sonntag zuerst, wie DAY_NAMES
    rows: list[list[str]] = []
    for week in cal.monthdatescalendar(calendar_month.year, calendar_month.month):
        rows.append([
            _cell(d, calendar_month, materials, homework, today)
            if d.month == calendar_month.month else ""
            for d in week
        ])
    return rows


def render_day_rows(
    calendar_month: "CalendarMonth",
    day: date,
) -> list[list[str]]:
    """Detailzeilen für einen Tag: [Zeit, Klasse, Status, Zone]."""
    rows: list[list[str]] = []
    items: list["ResolvedOccurrence"] = calendar_month.occurrences_on(day) + [
        o for o in calendar_month.cancelled if o.local_date == day
    ]
    for occ in sorted(items, key=lambda o: (o.start_time, o.class_id)):
        if occ.is_cancelled:
            status = "ausgefallen"
        elif occ.is_rescheduled_from:
            status = f"verlegt vom {occ.is_rescheduled_from.isoformat()}"
        else:
            status = ""
        rows.append([occ.display_time, occ.class_id, status, occ.source_timezone])
    for due in calendar_month.payments_on(day):
        rows.append(["—", due.class_id, "Zahlung fällig", ""])
    return rows


def print_month(
    calendar_month: "CalendarMonth",
    materials: Optional[set[str]] = None,
    homework: Optional[set[str]] = None,
    today: Optional[date] = None,
) -> None:
    """Gibt die Monatsansicht samt Warnungen über Rich aus."""
    from rich.console import Console
    from rich.table import Table
    from rich import box

    console = Console()
    title = (
        f"{calendar_month.year}-{calendar_month.month:02d} "
        f"({calendar_month.viewer_timezone})"
    )
    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    for name in DAY_NAMES:
        table.add_column(name, vertical="top", min_width=12)
    for row in render_month_rows(calendar_month, materials, homework, today):
        table.add_row(*row)
    console.print(table)
    console.print(
        "[dim]↷ verlegt  ✗ ausgefallen  $ Zahlung fällig  📎 Material  ✎ Hausaufgabe[/dim]"
    )

    for w in calendar_month.warnings:
        console.print(f"  [yellow]• [{w.kind}] {w.class_id or '-'}: {w.message}[/yellow]")
