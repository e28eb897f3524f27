from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional
from enum import Enum


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


# ─── CACHE ───

class CacheConfig(BaseModel):
    """Monats-Cache des Resolvers."""
    # Cache aktiv? Ohne Cache wird jeder Monat neu aufgebaut.
    enabled: bool = Field(True,
        description="Monats-Cache aktiv")
    # Ablaufzeit eines Eintrags in Sekunden (0 = kein Ablauf)
    ttl_seconds: int = Field(300, ge=0,
        description="Ablaufzeit in Sekunden (0 = nie)")


# ─── ZEIT-AUSWAHL (Admin-Formular) ───

class TimePickerConfig(BaseModel):
    """Raster der auswählbaren Startzeiten beim Anlegen/Verlegen."""
    # Früheste auswählbare Stunde (24h)
    start_hour: int = Field(6, ge=0, le=23,
        description="Früheste Stunde")
    # Späteste auswählbare Stunde (24h, inklusive)
    end_hour: int = Field(21, ge=0, le=23,
        description="Späteste Stunde")
    # Schrittweite in Minuten
    step_minutes: int = Field(30, ge=5, le=60,
        description="Schrittweite in Minuten")
    # Standard-Dauer einer Stunde (Ende = Beginn + Dauer)
    default_duration_minutes: int = Field(60, ge=15, le=240,
        description="Standard-Dauer einer Stunde")

    @model_validator(mode='after')
    def validate_range(self):
        """Startstunde muss vor der Endstunde liegen."""
        if self.start_hour > self.end_hour:
            raise ValueError(
                f"start_hour ({self.start_hour}) liegt nach end_hour ({self.end_hour})")
        return self


# ─── GESAMT-CONFIG ───

class CalendarConfig(BaseModel):
    """Gesamtkonfiguration des Kurskalenders."""
    # Zeitzone des Betrachters, wenn keine angegeben wird
    default_timezone: str = Field("UTC",
        description="Standard-Zeitzone der Anzeige (IANA)")
    # Zahlungen, die in 0..N Tagen fällig sind, gelten als "bald fällig"
    payment_soon_days: int = Field(3, ge=0, le=31,
        description="Tage bis Fälligkeit für 'bald fällig'")
    # Ausnahmen werden für den Monat ± N Tage geladen (Verlegungen über Monatsgrenzen)
    exception_margin_days: int = Field(7, ge=0, le=62,
        description="Zusätzliche Tage beim Laden von Ausnahmen")
    # Parallele Abrufe der Ausnahmen (eine Anfrage pro Klasse)
    fetch_workers: int = Field(4, ge=1, le=32,
        description="Parallele Ausnahme-Abrufe")
    # Monats-Cache
    cache: CacheConfig = Field(default_factory=CacheConfig)
    # Zeitauswahl im Admin-Formular
    time_picker: TimePickerConfig = Field(default_factory=TimePickerConfig)
    # Lehrkräfte mit Admin-Rechten (sehen alle Klassen, dürfen Ausnahmen anlegen)
    admin_emails: list[str] = Field(
        default=["lehrer@example.com"],
        description="E-Mails mit Admin-Rechten")
    # Datensatz (JSON oder YAML)
    data_file: str = Field("data/classes.json",
        description="Pfad zum Datensatz")
    # Log-Level der CLI
    log_level: LogLevel = Field(LogLevel.INFO)

    @field_validator("default_timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Nur auflösbare IANA-Zeitzonen."""
        from resolver.timezone import is_valid_timezone
        if not is_valid_timezone(v):
            raise ValueError(f"Unbekannte Zeitzone: {v!r}")
        return v

    @field_validator("admin_emails")
    @classmethod
    def normalize_admins(cls, v: list[str]) -> list[str]:
        return [e.strip().lower() for e in v]

    def is_admin(self, email: Optional[str]) -> bool:
        return email is not None and email.strip().lower() in self.admin_emails

    @property
    def cache_ttl(self) -> Optional[int]:
        """TTL für den Cache; None = kein Ablauf."""
        return self.cache.ttl_seconds or None
