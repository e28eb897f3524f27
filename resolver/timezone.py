"""Zeitzonen-Umrechnung für Unterrichtszeiten (DST-bewusst, zoneinfo).

Eine Uhrzeit ist immer an einen Kalendertag gebunden: 09:00 America/New_York
ist am 2024-03-09 (EST, UTC-5) 14:00 UTC, am 2024-03-11 (EDT, UTC-4) aber
13:00 UTC. Deshalb wird immer mit dem konkreten Datum umgerechnet, nie mit
"heute".
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from resolver.errors import TimezoneConversionError
from resolver.time_of_day import TimeOfDay


@dataclass(frozen=True)
class ConvertedTime:
    """Ergebnis einer Umrechnung in die Ziel-Zeitzone."""

    time: TimeOfDay
    timezone: str       # IANA-Bezeichner der Ziel-Zone
    abbreviation: str   # z.B. "EST", "CET", "UTC"
    day_offset: int = 0  # -1/+1 wenn die Umrechnung über Mitternacht geht

    @property
    def display(self) -> str:
        """12h-Anzeige mit Zonen-Kürzel, z.B. "9:00 AM EST"."""
        return f"{self.time.format_12h()} {self.abbreviation}"


def resolve_zone(name: str) -> ZoneInfo:
    """IANA-Bezeichner → ZoneInfo.

    Raises:
        TimezoneConversionError: unbekannter oder ungültiger Bezeichner.
    """
    if not name or not isinstance(name, str):
        raise TimezoneConversionError(f"Leerer Zeitzonen-Bezeichner: {name!r}")
    try:
        return ZoneInfo(name)
    # Verzeichnisnamen wie "America" lösen je nach Version IsADirectoryError aus
    except (ZoneInfoNotFoundError, ValueError, OSError) as e:
        raise TimezoneConversionError(f"Unbekannte Zeitzone: {name!r}") from e


def is_valid_timezone(name: str) -> bool:
    try:
        resolve_zone(name)
    except TimezoneConversionError:
        return False
    return True


def zone_abbreviation(name: str, on_date: date, at: TimeOfDay = TimeOfDay(12, 0)) -> str:
    """Kurzname der Zone an einem Tag (EST/EDT, CET/CEST …)."""
    zone = resolve_zone(name)
    return datetime.combine(on_date, time(at.hour, at.minute), tzinfo=zone).tzname() or name


class TimeZoneConverter:
    """Rechnet Wanduhrzeiten zwischen Zeitzonen um."""

    def convert(
        self,
        value: TimeOfDay,
        source_timezone: str,
        target_timezone: str,
        on_date: date,
    ) -> ConvertedTime:
        """Uhrzeit `value` in `source_timezone` am Tag `on_date` → `target_timezone`.

        Bei identischen Zonen wird die Uhrzeit unverändert zurückgegeben.

        Raises:
            TimezoneConversionError: eine der Zonen ist nicht auflösbar.
        """
        target = resolve_zone(target_timezone)
        if source_timezone == target_timezone:
            local = datetime.combine(on_date, time(value.hour, value.minute), tzinfo=target)
            return ConvertedTime(
                time=value,
                timezone=target_timezone,
                abbreviation=local.tzname() or target_timezone,
            )

        source = resolve_zone(source_timezone)
        local = datetime.combine(on_date, time(value.hour, value.minute), tzinfo=source)
        converted = local.astimezone(target)
        return ConvertedTime(
            time=TimeOfDay(converted.hour, converted.minute),
            timezone=target_timezone,
            abbreviation=converted.tzname() or target_timezone,
            day_offset=(converted.date() - on_date).days,
        )

    def identity(self, value: TimeOfDay, timezone_name: str) -> ConvertedTime:
        """Fallback bei nicht auflösbarer Zone: Zeit bleibt, Kürzel = Bezeichner."""
        return ConvertedTime(time=value, timezone=timezone_name,
                             abbreviation=timezone_name or "?")
