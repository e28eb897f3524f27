from config.schema import (
    CacheConfig,
    CalendarConfig,
    TimePickerConfig,
)


def default_time_picker() -> TimePickerConfig:
    """Standard-Zeitauswahl des Admin-Formulars.

    Startzeiten ab 6:00 AM bis einschließlich der 21-Uhr-Stunde im 30-Minuten-Raster:
        6:00 AM, 6:30 AM, 7:00 AM, ... 9:00 PM, 9:30 PM
    Endzeit-Vorschlag: Beginn + 60 Minuten.
    """
    return TimePickerConfig(
        start_hour=6,
        end_hour=21,
        step_minutes=30,
        default_duration_minutes=60,
    )


def default_calendar_config() -> CalendarConfig:
    """Standardkonfiguration: Anzeige in UTC, 5-Minuten-Cache."""
    return CalendarConfig(
        default_timezone="UTC",
        payment_soon_days=3,
        exception_margin_days=7,
        fetch_workers=4,
        cache=CacheConfig(enabled=True, ttl_seconds=300),
        time_picker=default_time_picker(),
        data_file="data/classes.json",
    )
