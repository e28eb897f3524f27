"""Kurskalender — Haupt-CLI.

Verwendung:
  python main.py init                          Konfiguration anlegen
  python main.py config show                   Konfiguration anzeigen
  python main.py generate                      Demo-Datensatz erzeugen
  python main.py validate                      Datensatz prüfen
  python main.py calendar --month 2024-01      Monatsansicht
  python main.py payments --month 2024-01      Fälligkeiten mit Status
  python main.py exception cancel <id> <datum>             Stunde absagen
  python main.py exception reschedule <id> <datum> <neu>   Stunde verlegen
  python main.py exception list <id>           Ausnahmen einer Klasse
  python main.py exception delete <id> <exc>   Ausnahme löschen
"""

import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()
logger = logging.getLogger("kurskalender")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config():
    """Lädt die Konfiguration (oder die Standardwerte ohne Datei)."""
    from config.manager import ConfigManager
    mgr = ConfigManager()
    try:
        return mgr, mgr.load_or_default()
    except ValueError as e:
        console.print(f"[red bold]Konfiguration ungültig:[/red bold]\n{e}")
        sys.exit(1)


def _load_store_or_abort(config, data_path: Optional[str], clock=None):
    """Lädt den Datensatz als ScheduleStore oder bricht mit Fehlermeldung ab."""
    from data.loader import DataLoadError, load_class_data
    from data.store import ScheduleStore

    path = Path(data_path or config.data_file)
    try:
        data, report = load_class_data(path)
    except DataLoadError as e:
        console.print(
            f"[red bold]Datensatz nicht ladbar:[/red bold]\n{e}\n"
            "Erzeugen Sie Demo-Daten mit [bold]python main.py generate[/bold]."
        )
        sys.exit(1)
    if not report.is_valid:
        console.print(
            f"[yellow]{len(report.errors)} fehlerhafte Einträge werden ignoriert "
            f"(Details: python main.py validate).[/yellow]"
        )
    store = ScheduleStore(data, admins=config.admin_emails, clock=clock)
    return path, store


def _parse_month(value: Optional[str], clock) -> tuple[int, int]:
    """ "2024-01" → (2024, 1); ohne Angabe der aktuelle Monat."""
    if not value:
        today = clock.today()
        return today.year, today.month
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise click.BadParameter(f"Monat im Format JJJJ-MM erwartet, nicht {value!r}")
    return parsed.year, parsed.month


def _parse_date(value: str) -> date:
    from models.date_key import DateKey
    try:
        return DateKey.of(value).value
    except ValueError:
        raise click.BadParameter(f"Datum im Format JJJJ-MM-TT erwartet, nicht {value!r}")


def _make_clock(today: Optional[str]):
    from resolver.clock import FixedClock, system_clock
    if today is None:
        return system_clock
    return FixedClock(datetime.combine(_parse_date(today), datetime.min.time()))


def _scope(config, as_email: Optional[str]):
    from models.viewer import ViewerScope
    if as_email is None:
        email = config.admin_emails[0] if config.admin_emails else "admin"
        return ViewerScope(email=email, is_admin=True)
    return ViewerScope(email=as_email, is_admin=config.is_admin(as_email))


def _save_store(store, path: Path) -> None:
    from data.loader import save_class_data
    save_class_data(store.snapshot(), path)
    console.print(f"[green]✓[/green] Datensatz gespeichert: {path}")


# Gemeinsame Optionen
_data_option = click.option("--data", "data_path", default=None,
                            help="Pfad zum Datensatz (Default aus Konfiguration).")
_month_option = click.option("--month", "-m", default=None,
                             help="Monat im Format JJJJ-MM (Default: aktueller Monat).")
_today_option = click.option("--today", default=None,
                             help="Stichtag JJJJ-MM-TT (für reproduzierbare Ausgaben).")


# ─── INIT ─────────────────────────────────────────────────────────────────────

@click.command("init")
@click.option("--timezone", "tz", default="UTC", help="Standard-Zeitzone der Anzeige.")
@click.option("--force", is_flag=True, default=False, help="Bestehende Konfiguration überschreiben.")
def cmd_init(tz: str, force: bool):
    """Legt die Konfigurationsdatei mit Standardwerten an."""
    from config.defaults import default_calendar_config
    from config.manager import ConfigManager
    from resolver.timezone import is_valid_timezone

    mgr = ConfigManager()
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Verwenden Sie [bold]--force[/bold] zum Überschreiben."
        )
        return
    if not is_valid_timezone(tz):
        raise click.BadParameter(f"Unbekannte Zeitzone: {tz}", param_hint="--timezone")

    config = default_calendar_config().model_copy(update={"default_timezone": tz})
    mgr.save(config)
    console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
def config_show():
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config()
    if mgr.first_run_check():
        console.print("[dim]Keine Konfigurationsdatei – Standardwerte:[/dim]")
    mgr.print_rich(config)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--classes", "num_classes", default=8, help="Anzahl Klassen.")
@_month_option
@click.option("--output", "-o", default=None, help="Zieldatei (.json/.yaml).")
@click.option("--validate/--no-validate", "run_validate", default=True,
              help="Konsistenz-Check nach Generierung.")
def cmd_generate(seed: int, num_classes: int, month: Optional[str],
                 output: Optional[str], run_validate: bool):
    """Erzeugt einen Demo-Datensatz (Klassen, Ausnahmen, Zahlungen)."""
    from data.fake_data import FakeDataGenerator
    from data.loader import save_class_data
    from resolver.clock import system_clock

    _, config = _load_config()
    year, mon = _parse_month(month, system_clock)

    console.print("[bold]Testdaten werden generiert...[/bold]")
    admin = config.admin_emails[0] if config.admin_emails else "lehrer@example.com"
    gen = FakeDataGenerator(seed=seed, num_classes=num_classes,
                            reference=date(year, mon, 1), admin_email=admin)
    data = gen.generate()
    gen.print_summary(data)
    console.print(f"\n[dim]{data.summary()}[/dim]")

    if run_validate:
        data.validate_consistency().print_rich()

    out_path = Path(output or config.data_file)
    save_class_data(data, out_path)
    console.print(f"[green]✓[/green] Datensatz gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@_data_option
def cmd_validate(data_path: Optional[str]):
    """Prüft den Datensatz auf Einträge, die der Kalender ausschließen würde."""
    from data.loader import DataLoadError, load_class_data

    _, config = _load_config()
    path = Path(data_path or config.data_file)
    console.print(f"[bold]Lade Datensatz:[/bold] {path}")
    try:
        data, report = load_class_data(path)
    except DataLoadError as e:
        console.print(f"[red bold]Laden fehlgeschlagen:[/red bold]\n{e}")
        sys.exit(1)

    console.print(f"\n{data.summary()}\n")
    report.print_rich()
    sys.exit(0 if report.is_valid else 1)


# ─── CALENDAR ─────────────────────────────────────────────────────────────────

@click.command("calendar")
@_month_option
@click.option("--tz", "viewer_tz", default=None, help="Anzeige-Zeitzone (IANA).")
@click.option("--as", "as_email", default=None,
              help="Als Schüler/in (E-Mail) anzeigen; Default: Admin-Sicht.")
@click.option("--day", default=None, help="Details zu einem Tag (JJJJ-MM-TT).")
@_data_option
@_today_option
def cmd_calendar(month, viewer_tz, as_email, day, data_path, today):
    """Zeigt den Monatskalender mit Ausfällen, Verlegungen und Zahlungen."""
    from export.tui_renderer import print_month, render_day_rows
    from resolver.service import CalendarResolver

    _, config = _load_config()
    clock = _make_clock(today)
    year, mon = _parse_month(month, clock)
    _, store = _load_store_or_abort(config, data_path, clock)

    resolver = CalendarResolver(store, config=config, clock=clock)
    store.subscribe(resolver.invalidate)
    scope = _scope(config, as_email)
    cal = resolver.resolve(mon, year, scope, viewer_tz)

    print_month(cal, today=clock.today(cal.viewer_timezone))

    if day:
        d = _parse_date(day)
        table = Table(title=f"Tag {d.isoformat()}", box=box.ROUNDED)
        for col in ("Zeit", "Klasse", "Status", "Zone der Klasse"):
            table.add_column(col)
        for row in render_day_rows(cal, d):
            table.add_row(*row)
        console.print(table)


# ─── PAYMENTS ─────────────────────────────────────────────────────────────────

@click.command("payments")
@_month_option
@click.option("--as", "as_email", default=None,
              help="Nur Klassen dieser Schüler/in; Default: alle.")
@_data_option
@_today_option
def cmd_payments(month, as_email, data_path, today):
    """Zeigt die Zahlungstermine eines Monats mit Status."""
    from analysis.payment_status import PaymentStatusAnalyzer
    from resolver.service import CalendarResolver

    _, config = _load_config()
    clock = _make_clock(today)
    year, mon = _parse_month(month, clock)
    _, store = _load_store_or_abort(config, data_path, clock)

    resolver = CalendarResolver(store, config=config, clock=clock)
    cal = resolver.resolve(mon, year, _scope(config, as_email))
    analyzer = PaymentStatusAnalyzer(
        soon_days=config.payment_soon_days, clock=clock, timezone=config.default_timezone
    )
    analyzer.analyze(cal, store.snapshot().completed_payments).print_rich()


# ─── EXCEPTION ────────────────────────────────────────────────────────────────

@click.group("exception")
def cmd_exception():
    """Ausfälle und Verlegungen verwalten (nur Admins)."""


def _run_mutation(action):
    """Führt eine Store-Änderung aus; Fehler → Meldung + Exit-Code 1."""
    from data.store import ClassNotFoundError, ExceptionValidationError, PermissionDeniedError
    try:
        return action()
    except (ExceptionValidationError, PermissionDeniedError, ClassNotFoundError) as e:
        console.print(f"[red bold]Abgelehnt:[/red bold] {e}")
        sys.exit(1)


def _entry_times(store, class_id: str, d: date):
    """Originalzeiten der Stunde am Datum `d` aus dem Wochenplan."""
    from resolver.recurrence import sunday_based_weekday
    class_def = _run_mutation(lambda: store.get_class(class_id))
    entry = class_def.entry_for_weekday(sunday_based_weekday(d))
    if entry is None:
        console.print(
            f"[yellow]Hinweis:[/yellow] {class_id} hat am {d.isoformat()} regulär keinen Termin."
        )
        entry = class_def.schedules[0]
    return entry


@cmd_exception.command("cancel")
@click.argument("class_id")
@click.argument("original_date")
@click.option("--by", "created_by", default=None, help="Admin-E-Mail (Default: erster Admin).")
@click.option("--reason", default=None, help="Begründung.")
@_data_option
def exception_cancel(class_id, original_date, created_by, reason, data_path):
    """Sagt die Stunde einer Klasse an einem Datum ab."""
    _, config = _load_config()
    path, store = _load_store_or_abort(config, data_path)
    d = _parse_date(original_date)
    entry = _entry_times(store, class_id, d)
    exc = _run_mutation(lambda: store.cancel_class_on_date(
        class_id, d, entry.start_time, entry.end_time, entry.timezone,
        created_by or (config.admin_emails[0] if config.admin_emails else ""),
        reason=reason,
    ))
    console.print(f"[green]✓[/green] Ausfall angelegt: {class_id} am {d.isoformat()} ({exc.id})")
    _save_store(store, path)


@cmd_exception.command("reschedule")
@click.argument("class_id")
@click.argument("original_date")
@click.argument("new_date")
@click.option("--start", "new_start", required=True, help='Neue Startzeit, z.B. "4:00 PM".')
@click.option("--end", "new_end", default=None,
              help="Neue Endzeit (Default: Start + Standard-Dauer).")
@click.option("--tz", "tz", default=None, help="Zeitzone der neuen Zeit (Default: Zone der Klasse).")
@click.option("--by", "created_by", default=None, help="Admin-E-Mail (Default: erster Admin).")
@click.option("--reason", default=None, help="Begründung.")
@_data_option
def exception_reschedule(class_id, original_date, new_date, new_start, new_end, tz,
                         created_by, reason, data_path):
    """Verlegt die Stunde eines Datums auf ein neues Datum/eine neue Uhrzeit."""
    from resolver.errors import ParseError
    from resolver.time_of_day import default_end_time, parse_time, time_options

    _, config = _load_config()
    path, store = _load_store_or_abort(config, data_path)
    d, nd = _parse_date(original_date), _parse_date(new_date)
    entry = _entry_times(store, class_id, d)

    tp = config.time_picker
    try:
        start = parse_time(new_start)
    except ParseError as e:
        raise click.BadParameter(str(e), param_hint="--start")
    if start.format_12h() not in time_options(tp.start_hour, tp.end_hour, tp.step_minutes):
        console.print(
            f"[yellow]Hinweis:[/yellow] {start.format_12h()} liegt außerhalb des "
            f"üblichen Rasters ({tp.start_hour}:00–{tp.end_hour}:00, {tp.step_minutes} min)."
        )
    end = new_end or default_end_time(start, tp.default_duration_minutes).format_24h()

    exc = _run_mutation(lambda: store.reschedule_class(
        class_id, d, entry.start_time, entry.end_time,
        nd, start.format_24h(), end, tz or entry.timezone,
        created_by or (config.admin_emails[0] if config.admin_emails else ""),
        reason=reason,
    ))
    console.print(
        f"[green]✓[/green] Verlegung angelegt: {class_id} {d.isoformat()} → "
        f"{nd.isoformat()} {exc.new_start_time}–{exc.new_end_time} ({exc.id})"
    )
    _save_store(store, path)


@cmd_exception.command("list")
@click.argument("class_id")
@click.option("--from", "start", default=None, help="Ab Datum (JJJJ-MM-TT).")
@click.option("--to", "end", default=None, help="Bis Datum (JJJJ-MM-TT).")
@_data_option
def exception_list(class_id, start, end, data_path):
    """Listet die Ausnahmen einer Klasse auf."""
    _, config = _load_config()
    _, store = _load_store_or_abort(config, data_path)
    _run_mutation(lambda: store.get_class(class_id))

    if start or end:
        items = store.exceptions_in_range(
            class_id,
            _parse_date(start) if start else date.min,
            _parse_date(end) if end else date.max,
        )
    else:
        items = store.all_exceptions(class_id)

    if not items:
        console.print("[dim]Keine Ausnahmen vorhanden.[/dim]")
        return

    table = Table(title=f"Ausnahmen {class_id}", box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Typ")
    table.add_column("Datum")
    table.add_column("Neu")
    table.add_column("Zone")
    table.add_column("Grund")
    for e in sorted(items, key=lambda x: x.original_date):
        new = ""
        if e.is_rescheduled:
            new = f"{e.new_date} {e.new_start_time}–{e.new_end_time}"
        kind = "[red]Ausfall[/red]" if e.is_cancelled else "[cyan]Verlegung[/cyan]"
        table.add_row(e.id, kind, e.original_date.isoformat(), new, e.timezone, e.reason or "")
    console.print(table)


@cmd_exception.command("delete")
@click.argument("class_id")
@click.argument("exception_id")
@_data_option
def exception_delete(class_id, exception_id, data_path):
    """Löscht eine Ausnahme (die reguläre Stunde erscheint wieder)."""
    _, config = _load_config()
    path, store = _load_store_or_abort(config, data_path)
    _run_mutation(lambda: store.delete_exception(class_id, exception_id))
    console.print(f"[green]✓[/green] Ausnahme {exception_id} gelöscht.")
    _save_store(store, path)


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben anzeigen.")
def cli(verbose: bool):
    """Kurskalender für Nachhilfe-Klassen.

    Starten Sie mit: python main.py init
    """
    _, config = _load_config()
    _setup_logging("DEBUG" if verbose else config.log_level.value)


def main():
    """Einstiegspunkt. Weist beim ersten Aufruf auf 'init' hin."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Kurskalender![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Legen Sie sie an mit: [bold]python main.py init[/bold]",
            border_style="cyan",
        ))
        return

    cli()


# Befehle registrieren
cli.add_command(cmd_init)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_calendar)
cli.add_command(cmd_payments)
cli.add_command(cmd_exception)


if __name__ == "__main__":
    main()
