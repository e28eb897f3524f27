"""Ausnahme-Overlay: Ausfälle entfernen, Verlegungen verschieben.

Ausnahmen haben absoluten Vorrang vor der regulären Wiederholung:
  - cancelled auf D    → D verschwindet
  - rescheduled D → D' → D verschwindet, D' erscheint mit neuer Uhrzeit/Zone,
                         auch wenn D in einem anderen Monat liegt
  - reguläre Stunde auf einem Datum, das eine Ausnahme belegt → unterdrückt
"""

import logging
from dataclasses import dataclass, field

from models.class_exception import ClassException
from models.date_key import DateKey
from resolver.errors import InvalidExceptionError, ParseError, ResolverError
from resolver.recurrence import Occurrence, base_class_id
from resolver.time_of_day import parse_time

logger = logging.getLogger(__name__)


@dataclass
class OverlayResult:
    """Ergebnis des Overlays für eine Klasse und einen Monat."""

    occurrences: list[Occurrence] = field(default_factory=list)
    # Zieldatum → verlegte Stunde (Uhrzeit/Zone überschrieben)
    overrides: dict[DateKey, Occurrence] = field(default_factory=dict)
    cancelled: list[Occurrence] = field(default_factory=list)
    warnings: list[ResolverError] = field(default_factory=list)


def validate_exception(exc: ClassException, class_id: str) -> None:
    """Prüft eine Ausnahme auf Vollständigkeit.

    Raises:
        InvalidExceptionError: falsche Klasse oder Verlegung unvollständig.
        ParseError: neue Uhrzeiten nicht parsebar.
    """
    if base_class_id(exc.class_id) != class_id:
        raise InvalidExceptionError(
            f"Ausnahme '{exc.id}' gehört zu Klasse '{exc.class_id}', nicht zu '{class_id}'."
        )
    if exc.is_rescheduled:
        missing = [f for f in ("new_date", "new_start_time", "new_end_time") if not getattr(exc, f)]
        if missing:
            raise InvalidExceptionError(
                f"Verlegung '{exc.id}' ({exc.original_date}) ohne {', '.join(missing)}."
            )
        parse_time(exc.new_start_time)
        parse_time(exc.new_end_time)


class ExceptionOverlay:
    """Wendet die Ausnahmen einer Klasse auf ihre expandierten Stunden an."""

    def apply(
        self,
        occurrences: list[Occurrence],
        exceptions: list[ClassException],
        month: int,
        year: int,
        class_id: str,
    ) -> OverlayResult:
        result = OverlayResult()
        by_original, by_new = self._build_maps(exceptions, class_id, result)

        # ── Reguläre Stunden filtern ───────────────────────────────────
        for occ in occurrences:
            key = DateKey(occ.date)
            exc = by_original.get(key)
            if exc is not None:
                if exc.is_cancelled:
                    result.cancelled.append(occ)
                continue
            if key in by_new:
                logger.debug(f"{class_id}: reguläre Stunde am {key} durch Verlegung überdeckt")
                continue
            result.occurrences.append(occ)

        # ── Verlegte Stunden, die im angefragten Monat landen ─────────
        # Unabhängig davon, ob das Originaldatum in diesem Monat liegt.
        for key, exc in sorted(by_new.items()):
            if not key.in_month(year, month):
                continue
            moved = Occurrence(
                class_id=class_id,
                date=exc.new_date,
                start_time=exc.new_start_time,
                end_time=exc.new_end_time,
                timezone=exc.timezone,
                rescheduled_from=exc.original_date,
                exception_id=exc.id,
            )
            result.overrides[key] = moved
            result.occurrences.append(moved)

        return result

    def _build_maps(
        self,
        exceptions: list[ClassException],
        class_id: str,
        result: OverlayResult,
    ) -> tuple[dict[DateKey, ClassException], dict[DateKey, ClassException]]:
        """Lookup-Maps nach Original- und Zieldatum; ungültige Ausnahmen fliegen raus."""
        by_original: dict[DateKey, ClassException] = {}
        by_new: dict[DateKey, ClassException] = {}

        for exc in exceptions:
            try:
                validate_exception(exc, class_id)
            except (InvalidExceptionError, ParseError) as e:
                result.warnings.append(e)
                continue

            key = exc.original_key
            if key in by_original:
                e = InvalidExceptionError(
                    f"Zweite Ausnahme '{exc.id}' für {class_id} am {key} ignoriert "
                    f"(bereits '{by_original[key].id}')."
                )
                result.warnings.append(e)
                continue

            if exc.is_rescheduled:
                new_key = exc.new_key
                if new_key in by_new:
                    # Originaldatum bleibt unterdrückt, am Ziel gilt die erste Verlegung
                    e = InvalidExceptionError(
                        f"Verlegung '{exc.id}' nach {new_key}: Ziel bereits durch "
                        f"'{by_new[new_key].id}' belegt, nur eine Stunde wird angezeigt."
                    )
                    result.warnings.append(e)
                else:
                    by_new[new_key] = exc
            by_original[key] = exc

        return by_original, by_new
