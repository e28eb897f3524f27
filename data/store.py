"""ScheduleStore: In-Memory-Datenquelle für Klassen, Ausnahmen und Zahlungen.

Implementiert das ScheduleSource-Protokoll des Resolvers und kapselt alle
schreibenden Operationen. Jede Änderung wird an die Beobachter gemeldet
(Klassen-ID bzw. None für "alles"), typischerweise an den Kalender-Cache:

    store.subscribe(resolver.invalidate)
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Optional

from models.class_data import ClassData, CompletedPayment
from models.class_definition import ClassDefinition
from models.class_exception import ClassException, ExceptionType
from models.date_key import DateKey
from models.payment_config import PaymentConfig
from models.viewer import ViewerScope
from resolver.clock import Clock, system_clock
from resolver.errors import ParseError
from resolver.time_of_day import parse_time
from resolver.timezone import is_valid_timezone

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[Optional[str]], None]


class ExceptionValidationError(ValueError):
    """Ausnahme unvollständig oder widersprüchlich."""


class PermissionDeniedError(Exception):
    """Benutzer darf die Aktion nicht ausführen (nur Admins)."""


class ClassNotFoundError(KeyError):
    """Klasse oder Ausnahme existiert nicht."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Nicht gefunden"


@dataclass(frozen=True)
class PermissionCheck:
    """Diagnose, warum eine Ausnahme angelegt werden darf oder nicht."""

    can_create: bool
    reason: str
    class_exists: bool
    is_user_admin: bool


class ScheduleStore:
    """Thread-sichere Verwaltung eines ClassData-Datensatzes.

    Args:
        data: Ausgangsdatensatz (wird nicht verändert, sondern kopiert).
        admins: E-Mails der Lehrkräfte mit Admin-Rechten.
    """

    def __init__(
        self,
        data: Optional[ClassData] = None,
        admins: Iterable[str] = (),
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        data = data or ClassData()
        self._classes: dict[str, ClassDefinition] = {c.id: c for c in data.classes}
        self._exceptions: dict[str, list[ClassException]] = {}
        for exc in data.exceptions:
            self._exceptions.setdefault(exc.class_id, []).append(exc)
        self._payments: list[CompletedPayment] = list(data.completed_payments)
        self._created_at = data.created_at
        self.admins = {a.strip().lower() for a in admins}
        self.clock = clock or system_clock
        self._new_id = id_factory or (lambda: uuid.uuid4().hex[:20])
        self._lock = threading.RLock()
        self._subscribers: list[ChangeCallback] = []

    # ─── Beobachter ───

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Meldet `callback` für Änderungen an; Rückgabe meldet wieder ab."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _changed(self, class_id: Optional[str]) -> None:
        for cb in list(self._subscribers):
            cb(class_id)

    # ─── ScheduleSource ───

    def list_classes(self, scope: ViewerScope) -> list[ClassDefinition]:
        with self._lock:
            return scope.visible(list(self._classes.values()))

    def list_exceptions(self, class_id: str, start: date, end: date) -> list[ClassException]:
        return self.exceptions_in_range(class_id, start, end)

    # ─── Klassen ───

    def get_class(self, class_id: str) -> ClassDefinition:
        with self._lock:
            try:
                return self._classes[class_id]
            except KeyError:
                raise ClassNotFoundError(f"Klasse '{class_id}' existiert nicht.") from None

    def add_class(self, class_def: ClassDefinition) -> None:
        """Neue Klasse; alle Betrachter-Sichten können sich ändern."""
        with self._lock:
            if class_def.id in self._classes:
                raise ExceptionValidationError(f"Klasse '{class_def.id}' existiert bereits.")
            self._classes[class_def.id] = class_def
        logger.info(f"Klasse '{class_def.id}' angelegt")
        self._changed(None)

    def update_class(self, class_def: ClassDefinition) -> None:
        with self._lock:
            previous = self.get_class(class_def.id)
            self._classes[class_def.id] = class_def
        if previous.student_emails != class_def.student_emails:
            # Sichtbarkeit hat sich geändert → Schüler-Sichten komplett neu
            self._changed(None)
        else:
            self._changed(class_def.id)

    def remove_class(self, class_id: str) -> None:
        """Entfernt die Klasse samt Ausnahmen."""
        with self._lock:
            self.get_class(class_id)
            del self._classes[class_id]
            self._exceptions.pop(class_id, None)
        logger.info(f"Klasse '{class_id}' gelöscht")
        self._changed(None)

    def set_payment_config(self, class_id: str, config: Optional[PaymentConfig]) -> None:
        with self._lock:
            current = self.get_class(class_id)
            self._classes[class_id] = current.model_copy(update={"payment_config": config})
        self._changed(class_id)

    # ─── Berechtigungen ───

    def check_exception_permissions(self, class_id: str, user: str) -> PermissionCheck:
        """Prüft, ob `user` für `class_id` Ausnahmen anlegen darf."""
        with self._lock:
            exists = class_id in self._classes
        if not exists:
            return PermissionCheck(False, "Klasse existiert nicht", False, False)
        if user.strip().lower() in self.admins:
            return PermissionCheck(True, "Benutzer ist Admin", True, True)
        return PermissionCheck(False, "Benutzer ist kein Admin", True, False)

    # ─── Ausnahmen: Lesen ───

    def all_exceptions(self, class_id: str) -> list[ClassException]:
        with self._lock:
            return list(self._exceptions.get(class_id, []))

    def get_exception(self, class_id: str, exception_id: str) -> ClassException:
        for exc in self.all_exceptions(class_id):
            if exc.id == exception_id:
                return exc
        raise ClassNotFoundError(f"Ausnahme '{exception_id}' für Klasse '{class_id}' existiert nicht.")

    def exceptions_in_range(self, class_id: str, start: date, end: date) -> list[ClassException]:
        """Ausnahmen, deren Original- ODER Zieldatum in [start, end] liegt."""
        return [e for e in self.all_exceptions(class_id) if e.touches_range(start, end)]

    def exception_for_date(self, class_id: str, original_date) -> Optional[ClassException]:
        key = DateKey.of(original_date)
        return next(
            (e for e in self.all_exceptions(class_id) if e.original_key == key), None
        )

    # ─── Ausnahmen: Schreiben ───

    def create_exception(
        self,
        class_id: str,
        *,
        type: str,
        original_date,
        original_start_time: str,
        original_end_time: str,
        timezone: str,
        created_by: str,
        new_date=None,
        new_start_time: Optional[str] = None,
        new_end_time: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> ClassException:
        """Legt eine Ausnahme an.

        Raises:
            ExceptionValidationError: Pflichtfeld fehlt, Uhrzeit/Zone ungültig
                oder für das Datum existiert bereits eine Ausnahme.
            ClassNotFoundError: Klasse existiert nicht.
            PermissionDeniedError: `created_by` ist kein Admin.
        """
        if not class_id:
            raise ExceptionValidationError("class_id ist erforderlich.")
        for name, value in (
            ("type", type),
            ("created_by", created_by),
            ("timezone", timezone),
            ("original_start_time", original_start_time),
            ("original_end_time", original_end_time),
            ("original_date", original_date),
        ):
            if not value:
                raise ExceptionValidationError(f"{name} ist erforderlich.")

        check = self.check_exception_permissions(class_id, created_by)
        if not check.class_exists:
            raise ClassNotFoundError(
                f"Ausnahme nicht möglich: Klasse '{class_id}' existiert nicht."
            )
        if not check.is_user_admin:
            raise PermissionDeniedError(
                "Zugriff verweigert: nur Admins dürfen Ausnahmen anlegen."
            )

        try:
            exc = ClassException(
                id=self._new_id(),
                class_id=class_id,
                type=type,
                original_date=original_date,
                original_start_time=original_start_time,
                original_end_time=original_end_time,
                new_date=new_date,
                new_start_time=new_start_time,
                new_end_time=new_end_time,
                timezone=timezone,
                reason=reason,
                created_at=self.clock.now(),
                created_by=created_by,
            )
        except ValueError as e:
            raise ExceptionValidationError(f"Ausnahme ungültig: {e}") from e
        self._validate(exc)

        with self._lock:
            if self.exception_for_date(class_id, exc.original_date) is not None:
                raise ExceptionValidationError(
                    f"Für {class_id} am {exc.original_key} existiert bereits eine Ausnahme."
                )
            self._exceptions.setdefault(class_id, []).append(exc)

        logger.info(
            f"Ausnahme {exc.type.value} für {class_id} am {exc.original_key} angelegt "
            f"({exc.id})"
        )
        self._changed(class_id)
        return exc

    def update_exception(self, class_id: str, exception_id: str, **updates) -> ClassException:
        """Ändert Felder einer Ausnahme (id, class_id, created_* bleiben)."""
        for frozen in ("id", "class_id", "created_at", "created_by"):
            if frozen in updates:
                raise ExceptionValidationError(f"Feld '{frozen}' kann nicht geändert werden.")

        with self._lock:
            current = self.get_exception(class_id, exception_id)
            try:
                updated = ClassException.model_validate({**current.model_dump(), **updates})
            except ValueError as e:
                raise ExceptionValidationError(f"Ausnahme ungültig: {e}") from e
            self._validate(updated)
            clash = self.exception_for_date(class_id, updated.original_date)
            if clash is not None and clash.id != exception_id:
                raise ExceptionValidationError(
                    f"Für {class_id} am {updated.original_key} existiert bereits eine Ausnahme."
                )
            items = self._exceptions[class_id]
            items[items.index(current)] = updated

        self._changed(class_id)
        return updated

    def delete_exception(self, class_id: str, exception_id: str) -> None:
        with self._lock:
            current = self.get_exception(class_id, exception_id)
            self._exceptions[class_id].remove(current)
        logger.info(f"Ausnahme {exception_id} für {class_id} gelöscht")
        self._changed(class_id)

    def cancel_class_on_date(
        self,
        class_id: str,
        original_date,
        original_start_time: str,
        original_end_time: str,
        timezone: str,
        created_by: str,
        reason: Optional[str] = None,
    ) -> ClassException:
        return self.create_exception(
            class_id,
            type=ExceptionType.CANCELLED.value,
            original_date=original_date,
            original_start_time=original_start_time,
            original_end_time=original_end_time,
            timezone=timezone,
            created_by=created_by,
            reason=reason,
        )

    def reschedule_class(
        self,
        class_id: str,
        original_date,
        original_start_time: str,
        original_end_time: str,
        new_date,
        new_start_time: str,
        new_end_time: str,
        timezone: str,
        created_by: str,
        reason: Optional[str] = None,
    ) -> ClassException:
        return self.create_exception(
            class_id,
            type=ExceptionType.RESCHEDULED.value,
            original_date=original_date,
            original_start_time=original_start_time,
            original_end_time=original_end_time,
            new_date=new_date,
            new_start_time=new_start_time,
            new_end_time=new_end_time,
            timezone=timezone,
            created_by=created_by,
            reason=reason,
        )

    @staticmethod
    def _validate(exc: ClassException) -> None:
        if not is_valid_timezone(exc.timezone):
            raise ExceptionValidationError(f"Unbekannte Zeitzone: {exc.timezone!r}")
        times = [exc.original_start_time, exc.original_end_time]
        if exc.is_rescheduled:
            if exc.new_date is None or not exc.new_start_time or not exc.new_end_time:
                raise ExceptionValidationError(
                    "Verlegung benötigt new_date, new_start_time und new_end_time."
                )
            times += [exc.new_start_time, exc.new_end_time]
        for raw in times:
            if raw:
                try:
                    parse_time(raw)
                except ParseError as e:
                    raise ExceptionValidationError(str(e)) from e

    # ─── Zahlungen ───

    def mark_paid(self, class_id: str, due_date, amount: Optional[float] = None,
                  currency: Optional[str] = None) -> CompletedPayment:
        """Verknüpft eine abgeschlossene Zahlung mit einem Fälligkeitsdatum."""
        self.get_class(class_id)
        payment = CompletedPayment(
            class_id=class_id,
            due_date=DateKey.of(due_date).value,
            completed_at=self.clock.now(),
            amount=amount,
            currency=currency,
        )
        with self._lock:
            self._payments.append(payment)
        return payment

    def completed_due_dates(self, class_id: Optional[str] = None) -> set[date]:
        with self._lock:
            return {
                p.due_date for p in self._payments
                if class_id is None or p.class_id == class_id
            }

    # ─── Export ───

    def snapshot(self) -> ClassData:
        """Aktueller Stand als ClassData (z.B. zum Speichern)."""
        with self._lock:
            return ClassData(
                classes=list(self._classes.values()),
                exceptions=[e for excs in self._exceptions.values() for e in excs],
                completed_payments=list(self._payments),
                created_at=self._created_at,
            )
