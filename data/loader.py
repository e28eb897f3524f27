"""Laden und Speichern von Kalender-Datensätzen (JSON oder YAML).

Der Loader ist tolerant: ein fehlerhafter Klassen- oder Ausnahme-Eintrag
wird übersprungen und im Report vermerkt, statt den ganzen Import abzubrechen.
Schlüssel dürfen in camelCase (Export aus der Web-Datenbank) oder snake_case
vorliegen; Ausnahmen können global oder pro Klasse ("class_exceptions")
angegeben werden.
"""

import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from models.class_data import ClassData, CompletedPayment, DataReport
from models.class_definition import ClassDefinition
from models.class_exception import ClassException

logger = logging.getLogger(__name__)


class DataLoadError(Exception):
    """Datei fehlt, ist nicht lesbar oder hat keine gültige Grundstruktur."""


_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _snake_keys(value: Any) -> Any:
    """Wandelt alle dict-Schlüssel rekursiv in snake_case um."""
    if isinstance(value, dict):
        return {_snake(str(k)): _snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_snake_keys(v) for v in value]
    return value


def _short_error(e: ValidationError) -> str:
    first = e.errors()[0]
    loc = ".".join(str(p) for p in first["loc"])
    more = f" (+{e.error_count() - 1} weitere)" if e.error_count() > 1 else ""
    return f"{loc}: {first['msg']}{more}" if loc else f"{first['msg']}{more}"


# ─── Lesen ───

def _read_raw(path: Path) -> dict:
    if not path.exists():
        raise DataLoadError(f"Datei nicht gefunden: {path}")
    suffix = path.suffix.lower()
    try:
        with open(path, "r", encoding="utf-8") as f:
            if suffix == ".json":
                raw = json.load(f)
            elif suffix in (".yaml", ".yml"):
                raw = YAML(typ="safe").load(f)
            else:
                raise DataLoadError(
                    f"Unbekanntes Dateiformat '{suffix}' (erwartet .json, .yaml, .yml)"
                )
    except (json.JSONDecodeError, YAMLError) as e:
        raise DataLoadError(f"Datei nicht lesbar: {path}\n{e}") from e
    except OSError as e:
        raise DataLoadError(f"Datei nicht lesbar: {path}\n{e}") from e

    if not isinstance(raw, dict) or not isinstance(raw.get("classes", []), list):
        raise DataLoadError(
            f"{path}: erwartet ein Objekt mit einer Liste 'classes'."
        )
    return _snake_keys(raw)


def load_class_data(path: Path) -> tuple[ClassData, DataReport]:
    """Lädt einen Datensatz und prüft ihn.

    Returns:
        (ClassData, DataReport) – der Report enthält übersprungene Einträge
        sowie das Ergebnis von ClassData.validate_consistency().

    Raises:
        DataLoadError: Datei fehlt, Format unbekannt oder Grundstruktur falsch.
    """
    path = Path(path)
    raw = _read_raw(path)
    skipped: list[str] = []

    classes: list[ClassDefinition] = []
    raw_exceptions: list[dict] = list(raw.get("exceptions") or [])
    for i, item in enumerate(raw.get("classes") or []):
        if not isinstance(item, dict):
            skipped.append(f"Klasse #{i + 1}: kein Objekt, übersprungen.")
            continue
        item = dict(item)
        nested = item.pop("class_exceptions", None) or []
        for exc in nested:
            if isinstance(exc, dict):
                raw_exceptions.append({"class_id": item.get("id"), **exc})
        try:
            classes.append(ClassDefinition.model_validate(item))
        except ValidationError as e:
            skipped.append(f"Klasse '{item.get('id', f'#{i + 1}')}' übersprungen: {_short_error(e)}")

    exceptions: list[ClassException] = []
    for i, item in enumerate(raw_exceptions):
        try:
            exceptions.append(ClassException.model_validate(item))
        except ValidationError as e:
            label = item.get("id", f"#{i + 1}") if isinstance(item, dict) else f"#{i + 1}"
            skipped.append(f"Ausnahme '{label}' übersprungen: {_short_error(e)}")

    payments: list[CompletedPayment] = []
    for i, item in enumerate(raw.get("completed_payments") or []):
        try:
            payments.append(CompletedPayment.model_validate(item))
        except ValidationError as e:
            skipped.append(f"Zahlung #{i + 1} übersprungen: {_short_error(e)}")

    try:
        data = ClassData(
            classes=classes,
            exceptions=exceptions,
            completed_payments=payments,
            created_at=raw.get("created_at"),
            modified_at=raw.get("modified_at"),
        )
    except ValidationError as e:
        skipped.append(f"Zeitstempel verworfen: {_short_error(e)}")
        data = ClassData(classes=classes, exceptions=exceptions, completed_payments=payments)
    for msg in skipped:
        logger.warning(msg)
    logger.info(
        f"Datensatz geladen: {path} ({len(classes)} Klassen, {len(exceptions)} Ausnahmen)"
    )

    report = data.validate_consistency()
    errors = skipped + report.errors
    return data, DataReport(is_valid=not errors, errors=errors, warnings=report.warnings)


# ─── Schreiben ───

def save_class_data(data: ClassData, path: Path) -> None:
    """Speichert als JSON oder YAML, je nach Dateiendung."""
    path = Path(path)
    if path.suffix.lower() == ".json":
        data.save_json(path)
        return
    if path.suffix.lower() not in (".yaml", ".yml"):
        raise DataLoadError(f"Unbekanntes Dateiformat '{path.suffix}'")

    now = datetime.now(timezone.utc)
    updated = data.model_copy(update={"modified_at": now, "created_at": data.created_at or now})
    path.parent.mkdir(parents=True, exist_ok=True)
    yaml = YAML()
    yaml.default_flow_style = False
    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(updated.model_dump(mode="json"), f)
