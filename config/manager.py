"""Konfigurationsmanager: Laden, Speichern und Anzeigen der Kalender-Konfiguration.

Nutzt ruamel.yaml für YAML-Serialisierung mit Kommentaren.
"""

import json
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from rich import box
from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap

from config.schema import CalendarConfig

console = Console()
yaml = YAML()
yaml.default_flow_style = False
yaml.width = 120


# ─── YAML-KOMMENTAR-AUFBAU ───

def _yaml_header() -> str:
    return (
        "# ============================================\n"
        "# Kurskalender — Konfiguration\n"
        "# Version: 1.0\n"
        f"# Erstellt: {date.today().isoformat()}\n"
        "# ============================================\n"
    )


_SECTION_COMMENTS = {
    "default_timezone": (
        "Anzeige",
        "IANA-Zeitzone, in die alle Stunden umgerechnet werden (z.B. Europe/Berlin).",
    ),
    "payment_soon_days": (
        "Zahlungen",
        "Fälligkeiten in 0..N Tagen werden als 'bald fällig' markiert.",
    ),
    "exception_margin_days": (
        "Ausnahmen",
        "Ladefenster um den Monat herum, damit Verlegungen über Monatsgrenzen sichtbar sind.",
    ),
    "cache": (
        "Cache",
        "ttl_seconds: 0 = Einträge laufen nie ab (Invalidierung nur bei Änderungen).",
    ),
    "time_picker": (
        "Zeitauswahl",
        None,
    ),
    "admin_emails": (
        "Admins",
        "Lehrkräfte: sehen alle Klassen und dürfen Ausfälle/Verlegungen anlegen.",
    ),
    "data_file": (
        "Datensatz",
        None,
    ),
}


class ConfigManager:
    CONFIG_DIR = Path("config")
    DEFAULT_CONFIG = CONFIG_DIR / "calendar_config.yaml"

    def first_run_check(self) -> bool:
        """Gibt True zurück wenn noch keine Config existiert (Erstaufruf)."""
        return not self.DEFAULT_CONFIG.exists()

    # ─── Laden ───

    def load(self, path: Optional[Path] = None) -> CalendarConfig:
        """Lade Config aus YAML. Validiert automatisch via Pydantic."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            raise FileNotFoundError(
                f"Konfigurationsdatei nicht gefunden: {target}\n"
                f"Führen Sie 'python main.py init' aus, um sie anzulegen."
            )
        with open(target, "r", encoding="utf-8") as f:
            raw = yaml.load(f)
        try:
            return CalendarConfig.model_validate(dict(raw or {}))
        except ValidationError as e:
            raise ValueError(
                f"Konfigurationsdatei ungültig: {target}\n"
                f"Pydantic-Fehler: {e}"
            ) from e

    def load_or_default(self, path: Optional[Path] = None) -> CalendarConfig:
        """Wie load(), aber ohne Datei die Standardkonfiguration."""
        target = path or self.DEFAULT_CONFIG
        if not target.exists():
            from config.defaults import default_calendar_config
            return default_calendar_config()
        return self.load(target)

    # ─── Speichern ───

    def save(self, config: CalendarConfig, path: Optional[Path] = None) -> None:
        """Speichere Config als YAML mit deutschen Kommentaren."""
        target = path or self.DEFAULT_CONFIG
        target.parent.mkdir(parents=True, exist_ok=True)

        data = self._build_commented_yaml(config)

        with open(target, "w", encoding="utf-8") as f:
            f.write(_yaml_header() + "\n")
            yaml.dump(data, f)

        console.print(f"[green]✓[/green] Konfiguration gespeichert: {target}")

    def _build_commented_yaml(self, config: CalendarConfig) -> CommentedMap:
        """Baut die YAML-Struktur mit Kommentaren auf."""
        raw = json.loads(config.model_dump_json())
        cm = CommentedMap(raw)

        for field, (label, comment) in _SECTION_COMMENTS.items():
            if field not in cm:
                continue
            cm.yaml_set_comment_before_after_key(
                field,
                before=f"\n─── {label} ───" + (f"\n{comment}" if comment else ""),
            )

        cache_map = CommentedMap(cm["cache"])
        cache_map.yaml_add_eol_comment("Sekunden", "ttl_seconds")
        cm["cache"] = cache_map

        return cm

    # ─── Anzeigen ───

    def print_rich(self, config: CalendarConfig) -> None:
        """Zeigt die Konfiguration als Tabelle an."""
        table = Table(title="Kalender-Konfiguration", box=box.ROUNDED)
        table.add_column("Parameter", style="bold")
        table.add_column("Wert")
        table.add_row("Zeitzone", config.default_timezone)
        table.add_row("Bald fällig", f"≤ {config.payment_soon_days} Tage")
        table.add_row("Ausnahme-Fenster", f"± {config.exception_margin_days} Tage")
        table.add_row("Parallele Abrufe", str(config.fetch_workers))
        ttl = f"{config.cache.ttl_seconds}s" if config.cache.ttl_seconds else "kein Ablauf"
        table.add_row("Cache", f"aktiv, {ttl}" if config.cache.enabled else "aus")
        tp = config.time_picker
        table.add_row(
            "Zeitauswahl",
            f"{tp.start_hour}:00–{tp.end_hour}:00, alle {tp.step_minutes} min, "
            f"Dauer {tp.default_duration_minutes} min",
        )
        table.add_row("Admins", ", ".join(config.admin_emails) or "-")
        table.add_row("Datensatz", config.data_file)
        table.add_row("Log-Level", config.log_level.value)
        console.print(table)
