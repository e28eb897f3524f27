"""Monats-Cache mit Versions-Tokens und Beobachtern.

Ein Eintrag gilt nur, solange sich keine der Klassen geändert hat, aus denen
er gebaut wurde. Jede Invalidierung erhöht einen monotonen Zähler und
stempelt die betroffene Klasse damit; `invalidate_all` beginnt eine neue
Epoche. Ein Token merkt sich Epoche und Zählerstand beim `begin()`:

    token = cache.begin()                      # vor dem Laden der Daten
    classes = source.list_classes(scope)
    token = token.with_classes(c.id for c in classes)
    cache.put(month, year, scope, value, token)

Wird zwischen `begin` und `put` eine der Klassen invalidiert, verwirft `put`
den Wert. So kann ein langsamer Aufbau keinen veralteten Monat speichern.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterable, Optional

from resolver.clock import Clock, system_clock

logger = logging.getLogger(__name__)

InvalidationCallback = Callable[[Optional[str]], None]


@dataclass(frozen=True)
class CacheToken:
    """Momentaufnahme zu Beginn eines Aufbaus."""

    epoch: int
    generation: int
    class_ids: frozenset[str] = field(default_factory=frozenset)

    def with_classes(self, class_ids: Iterable[str]) -> "CacheToken":
        """Gleicher Zeitpunkt, andere Abhängigkeiten."""
        return replace(self, class_ids=frozenset(class_ids))


@dataclass
class _Entry:
    value: Any
    token: CacheToken
    stored_at: float


class CalendarCache:
    """Thread-sicherer Cache für CalendarMonth-Werte.

    Schlüssel: (Betrachter-Schlüssel, Jahr, Monat). Optionaler TTL in Sekunden,
    gemessen mit der injizierten Uhr; None = kein Ablauf.
    """

    def __init__(self, clock: Optional[Clock] = None, ttl_seconds: Optional[float] = 300) -> None:
        self.clock = clock or system_clock
        self.ttl_seconds = ttl_seconds
        self._lock = threading.Lock()
        self._entries: dict[tuple[str, int, int], _Entry] = {}
        self._changed_at: dict[str, int] = {}   # Klasse → Zählerstand der letzten Änderung
        self._generation = 0
        self._epoch = 0
        self._subscribers: list[tuple[Optional[str], InvalidationCallback]] = []

    # ─── Lesen / Schreiben ───

    def begin(self, class_ids: Iterable[str] = ()) -> CacheToken:
        with self._lock:
            return CacheToken(
                epoch=self._epoch,
                generation=self._generation,
                class_ids=frozenset(class_ids),
            )

    def get(self, month: int, year: int, scope_key: str) -> Optional[Any]:
        key = (scope_key, year, month)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                logger.debug(f"Cache-Miss: {key}")
                return None
            if self._is_stale(entry.token) or self._is_expired(entry):
                del self._entries[key]
                logger.debug(f"Cache-Eintrag verworfen: {key}")
                return None
            logger.debug(f"Cache-Treffer: {key}")
            return entry.value

    def put(self, month: int, year: int, scope_key: str, value: Any, token: CacheToken) -> bool:
        """Speichert `value`, sofern `token` noch aktuell ist.

        Returns:
            False wenn zwischenzeitlich invalidiert wurde (Wert verworfen).
        """
        key = (scope_key, year, month)
        with self._lock:
            if self._is_stale(token):
                logger.debug(f"Cache-Put verworfen, Token veraltet: {key}")
                return False
            self._entries[key] = _Entry(value=value, token=token, stored_at=self.clock.monotonic())
            return True

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    # ─── Invalidierung ───

    def invalidate(self, class_id: str) -> None:
        """Stempelt eine Klasse als geändert und verwirft alle abhängigen Einträge."""
        with self._lock:
            self._generation += 1
            self._changed_at[class_id] = self._generation
            stale = [k for k, e in self._entries.items() if class_id in e.token.class_ids]
            for k in stale:
                del self._entries[k]
            callbacks = [cb for cid, cb in self._subscribers if cid is None or cid == class_id]
        logger.info(f"Cache invalidiert für Klasse '{class_id}' ({len(stale)} Einträge)")
        for cb in callbacks:
            cb(class_id)

    def invalidate_all(self) -> None:
        """Neue Epoche: alle Einträge und alle laufenden Tokens werden ungültig."""
        with self._lock:
            self._epoch += 1
            count = len(self._entries)
            self._entries.clear()
            callbacks = [cb for _, cb in self._subscribers]
        logger.info(f"Cache komplett invalidiert ({count} Einträge)")
        for cb in callbacks:
            cb(None)

    def subscribe(
        self,
        callback: InvalidationCallback,
        class_id: Optional[str] = None,
    ) -> Callable[[], None]:
        """Registriert einen Beobachter; Rückgabe meldet ihn wieder ab.

        Mit `class_id` wird der Beobachter nur für diese Klasse (und für
        `invalidate_all`) benachrichtigt, sonst für jede Invalidierung.
        """
        subscription = (class_id, callback)
        with self._lock:
            self._subscribers.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if subscription in self._subscribers:
                    self._subscribers.remove(subscription)

        return unsubscribe

    # ─── Intern (Lock wird gehalten) ───

    def _is_stale(self, token: CacheToken) -> bool:
        if token.epoch != self._epoch:
            return True
        return any(self._changed_at.get(cid, 0) > token.generation for cid in token.class_ids)

    def _is_expired(self, entry: _Entry) -> bool:
        if self.ttl_seconds is None:
            return False
        return self.clock.monotonic() - entry.stored_at >= self.ttl_seconds
