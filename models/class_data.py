"""ClassData: Vollständiger Kalender-Datensatz + Konsistenz-Check (Pydantic v2)."""

import json
from collections import defaultdict
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from models.class_definition import ClassDefinition
from models.class_exception import ClassException


class CompletedPayment(BaseModel):
    """Abgeschlossene Zahlung, verknüpft über das Fälligkeitsdatum."""

    class_id: str
    due_date: date
    completed_at: Optional[datetime] = None
    amount: Optional[float] = None
    currency: Optional[str] = None


class DataReport(BaseModel):
    """Ergebnis des Konsistenz-Checks."""

    is_valid: bool
    errors: list[str]      # Einträge, die der Resolver ausschließen wird
    warnings: list[str]    # Auffälligkeiten ohne Einfluss auf die Auflösung

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_valid:
            status = "[bold green]✓ KONSISTENT[/bold green]"
        else:
            status = "[bold red]✗ FEHLERHAFTE EINTRÄGE[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler (werden ausgeschlossen):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Datensatz-Check", border_style="cyan"))


class ClassData(BaseModel):
    """Klassen, Ausnahmen und abgeschlossene Zahlungen."""

    classes: list[ClassDefinition] = []
    exceptions: list[ClassException] = []
    completed_payments: list[CompletedPayment] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        multi = sum(1 for c in self.classes if c.schedule_type == "multiple")
        open_ended = sum(1 for c in self.classes if c.end_date is None)
        students = {e for c in self.classes for e in c.student_emails}
        with_payment = sum(1 for c in self.classes if c.payment_config is not None)
        cancelled = sum(1 for e in self.exceptions if e.is_cancelled)
        lines = [
            f"Klassen: {len(self.classes)} "
            f"({multi} mit mehreren Terminen, {open_ended} ohne Enddatum)",
            f"Schüler: {len(students)}",
            f"Mit Zahlungsregel: {with_payment}",
            f"Ausnahmen: {len(self.exceptions)} "
            f"({cancelled} Ausfälle, {len(self.exceptions) - cancelled} Verlegungen)",
            f"Abgeschlossene Zahlungen: {len(self.completed_payments)}",
        ]
        return "\n".join(lines)

    def class_by_id(self, class_id: str) -> Optional[ClassDefinition]:
        return next((c for c in self.classes if c.id == class_id), None)

    def exceptions_by_class(self) -> dict[str, list[ClassException]]:
        grouped: dict[str, list[ClassException]] = defaultdict(list)
        for exc in self.exceptions:
            grouped[exc.class_id].append(exc)
        return dict(grouped)

    def completed_due_dates(self, class_id: Optional[str] = None) -> set[date]:
        return {
            p.due_date for p in self.completed_payments
            if class_id is None or p.class_id == class_id
        }

    # ─── Konsistenz-Check ───

    def validate_consistency(self) -> DataReport:
        """Prüft, was der Resolver ausschließen würde.

        Prüfungen:
        1. Klassen-IDs eindeutig
        2. Uhrzeiten parsebar, Zeitzonen auflösbar
        3. Zahlungsregeln vollständig
        4. Ausnahmen: bekannte Klasse, eindeutiges Datum, Verlegung vollständig
        """
        from resolver.errors import InvalidPaymentConfigError, ParseError
        from resolver.payments import PaymentDueCalculator
        from resolver.time_of_day import parse_time
        from resolver.timezone import is_valid_timezone

        errors: list[str] = []
        warnings: list[str] = []

        # ── 1. Eindeutige IDs ─────────────────────────────────────────────
        seen_ids: set[str] = set()
        for c in self.classes:
            if c.id in seen_ids:
                errors.append(f"Klasse '{c.id}': ID mehrfach vergeben.")
            seen_ids.add(c.id)

        # ── 2./3. Klassen ─────────────────────────────────────────────────
        calculator = PaymentDueCalculator()
        for c in self.classes:
            for entry in c.schedules:
                for label, raw in (("Beginn", entry.start_time), ("Ende", entry.end_time)):
                    try:
                        parse_time(raw)
                    except ParseError as e:
                        errors.append(f"Klasse '{c.id}' ({entry.day_name}): {label} – {e}")
                if not is_valid_timezone(entry.timezone):
                    warnings.append(
                        f"Klasse '{c.id}' ({entry.day_name}): Zeitzone '{entry.timezone}' "
                        f"unbekannt – Zeiten werden unverändert angezeigt."
                    )
            if c.end_date is not None and c.end_date < c.start_date:
                warnings.append(
                    f"Klasse '{c.id}': Enddatum {c.end_date} liegt vor Startdatum {c.start_date}."
                )
            if not c.student_emails:
                warnings.append(f"Klasse '{c.id}': keine Schüler eingetragen.")
            if c.payment_config is not None:
                try:
                    calculator.validate(c.payment_config)
                except InvalidPaymentConfigError as e:
                    errors.append(f"Klasse '{c.id}': Zahlungsregel – {e}")

        # ── 4. Ausnahmen ──────────────────────────────────────────────────
        seen_keys: set[tuple[str, date]] = set()
        for exc in self.exceptions:
            if exc.class_id not in seen_ids:
                errors.append(f"Ausnahme '{exc.id}': Klasse '{exc.class_id}' existiert nicht.")
            key = (exc.class_id, exc.original_date)
            if key in seen_keys:
                errors.append(
                    f"Ausnahme '{exc.id}': zweite Ausnahme für {exc.class_id} "
                    f"am {exc.original_date}."
                )
            seen_keys.add(key)
            if exc.is_rescheduled:
                missing = [
                    f for f in ("new_date", "new_start_time", "new_end_time")
                    if not getattr(exc, f)
                ]
                if missing:
                    errors.append(
                        f"Ausnahme '{exc.id}': Verlegung ohne {', '.join(missing)}."
                    )
                for raw in (exc.new_start_time, exc.new_end_time):
                    if raw:
                        try:
                            parse_time(raw)
                        except ParseError as e:
                            errors.append(f"Ausnahme '{exc.id}': {e}")

        return DataReport(is_valid=not errors, errors=errors, warnings=warnings)

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "ClassData":
        """Lädt einen Datensatz streng aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))
