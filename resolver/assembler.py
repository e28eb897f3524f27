"""MonthlyCalendarAssembler: baut den Monatskalender eines Betrachters.

Pipeline pro Klasse:
  1. Termine mit unparsebaren Uhrzeiten aussortieren
  2. Wochenplan expandieren           (RecurrenceExpander)
  3. Ausnahmen anwenden               (ExceptionOverlay)
  4. Varianten zusammenführen         (OccurrenceDeduplicator)
  5. In die Zone des Betrachters umrechnen (TimeZoneConverter)
  6. Fälligkeiten berechnen           (PaymentDueCalculator)

Der Aufbau ist total: Fehler einer Klasse oder Ausnahme landen als
AssemblyWarning im Ergebnis, der Rest des Monats wird trotzdem gebaut.
"""

import logging
from datetime import timedelta
from typing import Optional

from models.calendar_month import AssemblyWarning, CalendarMonth, PaymentDue, ResolvedOccurrence
from models.class_definition import ClassDefinition
from models.class_exception import ClassException
from models.schedule import ScheduleEntry
from resolver.dedupe import OccurrenceDeduplicator
from resolver.errors import InvalidExceptionError, ParseError, ResolverError, TimezoneConversionError
from resolver.overlay import ExceptionOverlay
from resolver.payments import PaymentDueCalculator
from resolver.recurrence import Occurrence, RecurrenceExpander, base_class_id
from resolver.time_of_day import parse_time
from resolver.timezone import ConvertedTime, TimeZoneConverter

logger = logging.getLogger(__name__)


class MonthlyCalendarAssembler:
    """Setzt Expander, Overlay, Deduplicator, Umrechnung und Zahlungen zusammen."""

    def __init__(
        self,
        converter: Optional[TimeZoneConverter] = None,
        expander: Optional[RecurrenceExpander] = None,
        overlay: Optional[ExceptionOverlay] = None,
        deduplicator: Optional[OccurrenceDeduplicator] = None,
        payments: Optional[PaymentDueCalculator] = None,
    ) -> None:
        self.converter = converter or TimeZoneConverter()
        self.expander = expander or RecurrenceExpander()
        self.overlay = overlay or ExceptionOverlay()
        self.deduplicator = deduplicator or OccurrenceDeduplicator()
        self.payments = payments or PaymentDueCalculator()

    def assemble(
        self,
        classes: list[ClassDefinition],
        exceptions_by_class: dict[str, list[ClassException]],
        month: int,
        year: int,
        viewer_timezone: str,
    ) -> CalendarMonth:
        """Baut den CalendarMonth für (month, year) in `viewer_timezone`.

        Args:
            classes: die für den Betrachter sichtbaren Klassen.
            exceptions_by_class: Ausnahmen je Basis-Klassen-ID; sie dürfen
                über den Monat hinausreichen (Verlegungen über Monatsgrenzen).
            month: 1..12.
        """
        if not 1 <= month <= 12:
            raise ValueError(f"Monat muss zwischen 1 und 12 liegen, ist {month}.")

        warnings: list[AssemblyWarning] = []
        occurrences: list[ResolvedOccurrence] = []
        cancelled: list[ResolvedOccurrence] = []
        dues: list[PaymentDue] = []

        def warn(class_id: Optional[str], error: ResolverError) -> None:
            w = AssemblyWarning(class_id=class_id, kind=error.kind, message=str(error))
            if w not in warnings:
                logger.warning(f"[{w.kind}] {class_id or '-'}: {w.message}")
                warnings.append(w)

        # ── Ausnahmen nach Basis-ID zusammenführen ────────────────────────
        by_base: dict[str, list[ClassException]] = {}
        for owner, excs in exceptions_by_class.items():
            by_base.setdefault(base_class_id(owner), []).extend(excs)

        known = {c.id for c in classes}
        for owner, excs in by_base.items():
            if owner in known:
                continue
            for exc in excs:
                warn(owner, InvalidExceptionError(
                    f"Ausnahme '{exc.id}' ({exc.original_date}) verweist auf unbekannte "
                    f"Klasse '{owner}'."
                ))

        # ── Klassen ───────────────────────────────────────────────────────
        for class_def in classes:
            try:
                resolved, dropped = self._resolve_class(
                    class_def,
                    by_base.get(class_def.id, []),
                    month, year, viewer_timezone, warn,
                )
                occurrences.extend(resolved)
                cancelled.extend(dropped)
            except ResolverError as e:
                warn(class_def.id, e)

            if class_def.payment_config is not None:
                try:
                    for due in self.payments.compute_due_dates(
                        class_def.payment_config,
                        class_def.start_date,
                        month, year,
                        class_end_date=class_def.end_date,
                    ):
                        dues.append(PaymentDue(
                            date=due,
                            class_id=class_def.id,
                            payment_link=class_def.payment_config.payment_link,
                            amount=class_def.payment_config.amount,
                            currency=class_def.payment_config.currency,
                        ))
                except ResolverError as e:
                    warn(class_def.id, e)

        def sort_key(o: ResolvedOccurrence):
            return (o.local_date, o.start_time, o.class_id)

        logger.info(
            f"Kalender {year}-{month:02d} ({viewer_timezone}): {len(occurrences)} Stunden, "
            f"{len(cancelled)} Ausfälle, {len(dues)} Fälligkeiten, {len(warnings)} Warnungen"
        )
        return CalendarMonth(
            month=month,
            year=year,
            viewer_timezone=viewer_timezone,
            occurrences=sorted(occurrences, key=sort_key),
            cancelled=sorted(cancelled, key=sort_key),
            payment_due_dates=sorted(dues, key=lambda p: (p.date, p.class_id)),
            warnings=warnings,
        )

    # ─── Pro Klasse ───

    def _resolve_class(
        self,
        class_def: ClassDefinition,
        exceptions: list[ClassException],
        month: int,
        year: int,
        viewer_timezone: str,
        warn,
    ) -> tuple[list[ResolvedOccurrence], list[ResolvedOccurrence]]:
        entries = self._parseable_entries(class_def, warn)
        raw = self.expander.expand(class_def, month, year, entries=entries)

        result = self.overlay.apply(raw, exceptions, month, year, class_def.id)
        for error in result.warnings:
            warn(class_def.id, error)

        merged = self.deduplicator.dedupe(result.occurrences)
        resolved = [self._convert(occ, viewer_timezone, warn) for occ in merged]
        dropped = [
            self._convert(occ, viewer_timezone, warn, is_cancelled=True)
            for occ in self.deduplicator.dedupe(result.cancelled)
        ]
        return resolved, dropped

    @staticmethod
    def _parseable_entries(class_def: ClassDefinition, warn) -> list[ScheduleEntry]:
        entries: list[ScheduleEntry] = []
        for entry in class_def.schedules:
            try:
                parse_time(entry.start_time)
                parse_time(entry.end_time)
            except ParseError as e:
                warn(class_def.id, ParseError(f"Termin {entry.day_name} übersprungen: {e}"))
                continue
            entries.append(entry)
        return entries

    def _convert(
        self,
        occ: Occurrence,
        viewer_timezone: str,
        warn,
        is_cancelled: bool = False,
    ) -> ResolvedOccurrence:
        start = parse_time(occ.start_time)
        end = parse_time(occ.end_time)
        try:
            local_start = self.converter.convert(start, occ.timezone, viewer_timezone, occ.date)
            local_end = self.converter.convert(end, occ.timezone, viewer_timezone, occ.date)
        except TimezoneConversionError as e:
            warn(occ.class_id, TimezoneConversionError(f"{e} – Zeiten unverändert angezeigt."))
            local_start = self.converter.identity(start, occ.timezone)
            local_end = self.converter.identity(end, occ.timezone)

        return ResolvedOccurrence(
            class_id=occ.class_id,
            date=occ.date,
            local_date=occ.date + timedelta(days=local_start.day_offset),
            start_time=local_start.time.format_24h(),
            end_time=local_end.time.format_24h(),
            display_time=_display(local_start, local_end),
            timezone=local_start.timezone,
            timezone_abbreviation=local_start.abbreviation,
            source_timezone=occ.timezone,
            is_rescheduled_from=occ.rescheduled_from,
            is_cancelled=is_cancelled,
        )


def _display(start: ConvertedTime, end: ConvertedTime) -> str:
    """Anzeige wie "2:00 PM - 3:00 PM UTC"."""
    return f"{start.time.format_12h()} - {end.time.format_12h()} {start.abbreviation}"
