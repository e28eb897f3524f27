"""Zusammenführen gleichtägiger Doppel-Einträge von Mehrfach-Stundenplänen."""

import logging
from dataclasses import replace

from models.date_key import DateKey
from resolver.recurrence import Occurrence, base_class_id

logger = logging.getLogger(__name__)


class OccurrenceDeduplicator:
    """Eine Stunde pro (Basis-Klasse, Datum); die erste gewinnt."""

    def dedupe(self, occurrences: list[Occurrence]) -> list[Occurrence]:
        seen: set[tuple[str, DateKey]] = set()
        result: list[Occurrence] = []
        for occ in occurrences:
            base = base_class_id(occ.class_id)
            key = (base, DateKey(occ.date))
            if key in seen:
                logger.debug(f"Doppelte Stunde verworfen: {base} am {key[1]} ({occ.class_id})")
                continue
            seen.add(key)
            result.append(occ if occ.class_id == base else replace(occ, class_id=base))
        return result
