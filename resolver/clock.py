"""Injizierbare Uhr.

Alle Zugriffe auf die aktuelle Zeit (Zahlungs-Dringlichkeit, "ist heute",
Cache-TTL) laufen über ein Clock-Objekt, damit Tests ohne Wanduhr auskommen.
"""

import time
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


class Clock:
    """Systemuhr (UTC-basiert)."""

    def now(self, tz: Optional[str] = None) -> datetime:
        utc_now = datetime.now(timezone.utc)
        return utc_now.astimezone(ZoneInfo(tz)) if tz else utc_now

    def today(self, tz: Optional[str] = None) -> date:
        return self.now(tz).date()

    def monotonic(self) -> float:
        """Monotone Sekunden für TTL-Berechnungen, unabhängig von Uhrsprüngen."""
        return time.monotonic()


class FixedClock(Clock):
    """Feste Uhr für Tests und reproduzierbare CLI-Läufe (--today)."""

    def __init__(self, fixed: datetime) -> None:
        if fixed.tzinfo is None:
            fixed = fixed.replace(tzinfo=timezone.utc)
        self._now = fixed
        self._elapsed = 0.0

    def now(self, tz: Optional[str] = None) -> datetime:
        return self._now.astimezone(ZoneInfo(tz)) if tz else self._now

    def monotonic(self) -> float:
        return self._elapsed

    def advance(self, seconds: float) -> None:
        self._now = self._now + timedelta(seconds=seconds)
        self._elapsed += seconds

    def __repr__(self) -> str:
        return f"FixedClock({self._now.isoformat()})"


system_clock = Clock()
