"""Occurrence-Resolver: Wochenplan + Ausnahmen + Zahlungsregeln → Monatskalender."""

from .assembler import MonthlyCalendarAssembler
from .cache import CacheToken, CalendarCache
from .clock import Clock, FixedClock, system_clock
from .dedupe import OccurrenceDeduplicator
from .errors import (
    InvalidExceptionError,
    InvalidPaymentConfigError,
    ParseError,
    ResolverError,
    TimezoneConversionError,
)
from .overlay import ExceptionOverlay, OverlayResult
from .payments import PaymentDueCalculator
from .recurrence import Occurrence, RecurrenceExpander, base_class_id
from .service import CalendarResolver, ScheduleSource
from .time_of_day import TimeOfDay, parse_time
from .timezone import ConvertedTime, TimeZoneConverter

__all__ = [
    "MonthlyCalendarAssembler",
    "CacheToken",
    "CalendarCache",
    "Clock",
    "FixedClock",
    "system_clock",
    "OccurrenceDeduplicator",
    "InvalidExceptionError",
    "InvalidPaymentConfigError",
    "ParseError",
    "ResolverError",
    "TimezoneConversionError",
    "ExceptionOverlay",
    "OverlayResult",
    "PaymentDueCalculator",
    "Occurrence",
    "RecurrenceExpander",
    "base_class_id",
    "CalendarResolver",
    "ScheduleSource",
    "TimeOfDay",
    "parse_time",
    "ConvertedTime",
    "TimeZoneConverter",
]
