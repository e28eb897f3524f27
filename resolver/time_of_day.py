"""Uhrzeit-Wert (TimeOfDay) und Parser für lose formatierte Zeit-Strings.

Akzeptierte Formate:
  "9:00"       → 09:00 (24h-Literal)
  "14:30"      → 14:30
  "9:00 AM"    → 09:00
  "09:00pm"    → 21:00 (Meridiem case-insensitiv, Leerzeichen optional)
  "12:00"      → 12:00 (ohne Meridiem immer 24h)
"""

import re
from dataclasses import dataclass

from resolver.errors import ParseError

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$")


@dataclass(frozen=True, order=True)
class TimeOfDay:
    """Normalisierte Wanduhrzeit im 24-Stunden-Format.

    Immutable (frozen=True) und sortierbar, damit als Sortier-Key nutzbar.
    """

    hour: int    # 0..23
    minute: int  # 0..59

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23 or not 0 <= self.minute <= 59:
            raise ParseError(f"Uhrzeit außerhalb des Bereichs: {self.hour}:{self.minute:02d}")

    @classmethod
    def parse(cls, raw: str) -> "TimeOfDay":
        return parse_time(raw)

    @property
    def minutes(self) -> int:
        """Minuten seit Mitternacht."""
        return self.hour * 60 + self.minute

    @property
    def meridiem(self) -> str:
        return "PM" if self.hour >= 12 else "AM"

    def format_24h(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"

    def format_12h(self) -> str:
        hour12 = self.hour % 12 or 12
        return f"{hour12}:{self.minute:02d} {self.meridiem}"

    def plus_minutes(self, minutes: int) -> "TimeOfDay":
        """Addiert Minuten (Überlauf über Mitternacht wird abgeschnitten)."""
        total = (self.minutes + minutes) % (24 * 60)
        return TimeOfDay(total // 60, total % 60)

    def __str__(self) -> str:
        return self.format_24h()


def parse_time(raw: str) -> TimeOfDay:
    """Parst einen Uhrzeit-String in eine TimeOfDay.

    Raises:
        ParseError: nicht numerisch, falsches Format oder außerhalb des Bereichs.
    """
    if not isinstance(raw, str):
        raise ParseError(f"Uhrzeit muss ein String sein, nicht {type(raw).__name__}")
    match = _TIME_RE.match(raw)
    if not match:
        raise ParseError(f"Unbekanntes Uhrzeit-Format: {raw!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    meridiem = match.group(3)

    if meridiem:
        if hour > 12:
            raise ParseError(f"Stunde {hour} ist mit {meridiem.upper()} ungültig: {raw!r}")
        if meridiem.upper() == "PM" and hour != 12:
            hour += 12
        elif meridiem.upper() == "AM" and hour == 12:
            hour = 0

    if hour > 23 or minute > 59:
        raise ParseError(f"Uhrzeit außerhalb des Bereichs: {raw!r}")
    return TimeOfDay(hour, minute)


def default_end_time(start: TimeOfDay, duration_minutes: int = 60) -> TimeOfDay:
    """Standard-Ende einer Stunde: Beginn + 60 Minuten."""
    return start.plus_minutes(duration_minutes)


def time_options(start_hour: int = 6, end_hour: int = 21,
                 step_minutes: int = 30) -> list[str]:
    """Auswahlliste für Uhrzeiten im 12h-Format ("6:00 AM" … "9:30 PM")."""
    options: list[str] = []
    for hour in range(start_hour, end_hour + 1):
        for minute in range(0, 60, step_minutes):
            options.append(TimeOfDay(hour, minute).format_12h())
    return options
