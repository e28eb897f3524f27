"""Wochenplan einer Klasse als getaggte Variante (Pydantic v2).

Schedule = SingleSchedule(entry) | MultipleSchedule(entries)

Damit muss keine Aufrufstelle mehr prüfen, ob ein optionales Array vorhanden
ist; `entries` liefert immer die Liste der aktiven Wochentage.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

DAY_NAMES = ["So", "Mo", "Di", "Mi", "Do", "Fr", "Sa"]


class ScheduleEntry(BaseModel):
    """Ein wöchentlicher Termin: Wochentag + Uhrzeit + Zeitzone."""

    # 0=Sonntag, 1=Montag, ..., 6=Samstag (wie in den gespeicherten Daten)
    day_of_week: int = Field(ge=0, le=6)
    # Uhrzeiten bleiben Roh-Strings ("9:00", "09:00 AM", "14:30"); geparst
    # wird erst im Resolver, damit ein Tippfehler nicht den ganzen Datensatz sperrt.
    start_time: str
    end_time: str
    timezone: str = "UTC"

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]


class SingleSchedule(BaseModel):
    """Genau ein Termin pro Woche."""

    kind: Literal["single"] = "single"
    entry: ScheduleEntry

    @property
    def entries(self) -> list[ScheduleEntry]:
        return [self.entry]


class MultipleSchedule(BaseModel):
    """Mehrere Termine pro Woche, höchstens einer pro Wochentag."""

    kind: Literal["multiple"] = "multiple"
    entries: list[ScheduleEntry]

    @model_validator(mode="after")
    def _check_unique_days(self):
        if not self.entries:
            raise ValueError("Mehrfach-Stundenplan ohne Termine.")
        days = [e.day_of_week for e in self.entries]
        if len(days) != len(set(days)):
            raise ValueError(f"Wochentage müssen eindeutig sein: {days}")
        return self


Schedule = Annotated[Union[SingleSchedule, MultipleSchedule], Field(discriminator="kind")]


def schedule_from_flat(raw: dict) -> dict:
    """Wandelt die flache Speicherform in die getaggte Form um.

    Speicherform (wie in der Dokument-DB):
        {"schedule_type": "multiple", "schedules": [{...}, {...}]}
        {"schedule_type": "single", "day_of_week": 1, "start_time": ..., ...}
    """
    schedule_type = raw.get("schedule_type") or raw.get("scheduleType") or "single"
    schedules = raw.get("schedules") or []
    flat_entry = {
        k: raw[k]
        for k in ("day_of_week", "start_time", "end_time", "timezone")
        if k in raw
    }
    if schedule_type == "multiple":
        fallback_tz = raw.get("timezone")
        entries = [
            {**({"timezone": fallback_tz} if fallback_tz else {}), **dict(s)}
            for s in schedules
        ]
        return {"kind": "multiple", "entries": entries}
    entry = {**flat_entry, **dict(schedules[0])} if schedules else flat_entry
    return {"kind": "single", "entry": entry}
