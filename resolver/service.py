"""CalendarResolver: öffentliche Schnittstelle für Kalender und Zahlungsübersicht.

Verbindet Datenquelle, Assembler und Cache. Pro Anfrage:
  1. Cache prüfen
  2. Sichtbare Klassen laden
  3. Ausnahmen je Klasse parallel laden (Monat ± Rand), alle abwarten
  4. Monat aufbauen und speichern
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import Optional, Protocol

from config.schema import CalendarConfig
from models.calendar_month import CalendarMonth
from models.class_definition import ClassDefinition
from models.class_exception import ClassException
from models.viewer import ViewerScope
from resolver.assembler import MonthlyCalendarAssembler
from resolver.cache import CalendarCache
from resolver.clock import Clock, system_clock
from resolver.recurrence import adjacent_months, month_bounds

logger = logging.getLogger(__name__)


class ScheduleSource(Protocol):
    """Datenquelle des Resolvers (z.B. data.store.ScheduleStore)."""

    def list_classes(self, scope: ViewerScope) -> list[ClassDefinition]:
        """Für `scope` sichtbare Klassen."""
        ...

    def list_exceptions(self, class_id: str, start: date, end: date) -> list[ClassException]:
        """Ausnahmen, deren Original- ODER Zieldatum in [start, end] liegt."""
        ...


class CalendarResolver:
    def __init__(
        self,
        source: ScheduleSource,
        config: Optional[CalendarConfig] = None,
        cache: Optional[CalendarCache] = None,
        assembler: Optional[MonthlyCalendarAssembler] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        if config is None:
            from config.defaults import default_calendar_config
            config = default_calendar_config()
        self.source = source
        self.config = config
        self.clock = clock or system_clock
        if cache is None and config.cache.enabled:
            cache = CalendarCache(clock=self.clock, ttl_seconds=config.cache_ttl)
        self.cache = cache
        self.assembler = assembler or MonthlyCalendarAssembler()

    def resolve(
        self,
        month: int,
        year: int,
        scope: ViewerScope,
        viewer_timezone: Optional[str] = None,
    ) -> CalendarMonth:
        """Monatskalender für einen Betrachter (aus dem Cache, falls aktuell)."""
        tz = viewer_timezone or self.config.default_timezone
        scope_key = f"{scope.cache_key}|{tz}"

        if self.cache is not None:
            cached = self.cache.get(month, year, scope_key)
            if cached is not None:
                return cached
            token = self.cache.begin()

        classes = self.source.list_classes(scope)
        exceptions = self._fetch_exceptions(classes, month, year)
        calendar_month = self.assembler.assemble(classes, exceptions, month, year, tz)

        if self.cache is not None:
            self.cache.put(month, year, scope_key, calendar_month,
                           token.with_classes(c.id for c in classes))
        return calendar_month

    def prefetch_adjacent(
        self,
        month: int,
        year: int,
        scope: ViewerScope,
        viewer_timezone: Optional[str] = None,
    ) -> list[CalendarMonth]:
        """Baut Vor- und Folgemonat vor (Blättern ohne Wartezeit)."""
        return [
            self.resolve(m, y, scope, viewer_timezone)
            for y, m in adjacent_months(year, month)
            if (y, m) != (year, month)
        ]

    def invalidate(self, class_id: Optional[str] = None) -> None:
        """Verwirft gecachte Monate einer Klasse bzw. (None) alle."""
        if self.cache is None:
            return
        if class_id is None:
            self.cache.invalidate_all()
        else:
            self.cache.invalidate(class_id)

    def today(self) -> date:
        return self.clock.today(self.config.default_timezone)

    # ─── Intern ───

    def _fetch_exceptions(
        self,
        classes: list[ClassDefinition],
        month: int,
        year: int,
    ) -> dict[str, list[ClassException]]:
        """Lädt die Ausnahmen aller Klassen parallel; wartet auf alle Abrufe."""
        if not classes:
            return {}
        month_start, month_end = month_bounds(year, month)
        margin = timedelta(days=self.config.exception_margin_days)
        start, end = month_start - margin, month_end + margin

        workers = min(self.config.fetch_workers, len(classes))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(
                lambda c: self.source.list_exceptions(c.id, start, end), classes
            ))
        logger.debug(
            f"Ausnahmen {start}..{end} für {len(classes)} Klassen geladen "
            f"({sum(len(r) for r in results)} gesamt)"
        )
        return {c.id: r for c, r in zip(classes, results)}
