"""Testdaten-Generator für den Kurskalender.

Erzeugt realistische Nachhilfe-Klassen mit absichtlichen Sonderfällen:

  1. Mehrfach-Termine: Klassen mit 2–3 Wochentagen (Varianten-IDs im Resolver)
  2. Zonen-Mix: Unterricht in America/New_York, Europe/Berlin, America/Sao_Paulo, ...
  3. Laufzeiten: Klassen mit Enddatum mitten im Monat
  4. Ausnahmen: Ausfälle und Verlegungen, eine davon über die Monatsgrenze
  5. Zahlungsregeln: wöchentlich (1–2 Wochen) und monatlich (first/fifteen/last)
"""

import random
from datetime import date, timedelta
from typing import Optional

from models.class_data import ClassData, CompletedPayment
from models.class_definition import ClassDefinition
from models.class_exception import ClassException, ExceptionType
from models.payment_config import MonthlyOption, PaymentConfig, PaymentType
from resolver.recurrence import month_bounds, sunday_based_weekday
from resolver.time_of_day import TimeOfDay

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Ana", "Bruno", "Carla", "Daniel", "Elisa", "Felipe", "Gabriela", "Hugo",
    "Isabel", "João", "Karin", "Lucas", "Marta", "Nina", "Otto", "Paula",
    "Rafael", "Sofia", "Tomás", "Vera",
]

_LAST_NAMES = [
    "Almeida", "Becker", "Costa", "Fischer", "Gomes", "Hoffmann", "Lima",
    "Martins", "Neumann", "Oliveira", "Pereira", "Richter", "Santos", "Weber",
]

_COURSE_TYPES = ["Einzelunterricht", "Gruppe", "Konversation", "Prüfungsvorbereitung"]

_TIMEZONES = [
    "America/New_York", "America/Sao_Paulo", "Europe/Berlin",
    "Europe/Lisbon", "America/Los_Angeles", "UTC",
]

_CURRENCIES = {"America/Sao_Paulo": "BRL", "Europe/Berlin": "EUR", "Europe/Lisbon": "EUR"}


class FakeDataGenerator:
    """Generiert einen vollständigen Datensatz rund um einen Referenzmonat."""

    def __init__(
        self,
        seed: Optional[int] = None,
        num_classes: int = 8,
        reference: Optional[date] = None,
        admin_email: str = "lehrer@example.com",
    ) -> None:
        self.rng = random.Random(seed)
        self.num_classes = num_classes
        self.reference = reference or date.today().replace(day=1)
        self.admin_email = admin_email
        self._used_emails: set[str] = set()

    # ─── Schüler ──────────────────────────────────────────────────────────────

    def _student_email(self) -> str:
        while True:
            first = self.rng.choice(_FIRST_NAMES)
            last = self.rng.choice(_LAST_NAMES)
            email = f"{first}.{last}@example.com".lower()
            if email not in self._used_emails:
                self._used_emails.add(email)
                return email

    # ─── Klassen ──────────────────────────────────────────────────────────────

    def _random_start(self) -> TimeOfDay:
        return TimeOfDay(self.rng.randint(7, 19), self.rng.choice([0, 30]))

    def _schedule(self, tz: str, multiple: bool) -> dict:
        use_12h = self.rng.random() < 0.3
        days = self.rng.sample(range(1, 6), self.rng.randint(2, 3) if multiple else 1)

        def entry(day: int) -> dict:
            start = self._random_start()
            end = start.plus_minutes(60)
            fmt = (lambda t: t.format_12h()) if use_12h else (lambda t: t.format_24h())
            return {"day_of_week": day, "start_time": fmt(start),
                    "end_time": fmt(end), "timezone": tz}

        if multiple:
            return {"kind": "multiple", "entries": [entry(d) for d in sorted(days)]}
        return {"kind": "single", "entry": entry(days[0])}

    def _payment_config(self, tz: str, start: date) -> Optional[PaymentConfig]:
        roll = self.rng.random()
        currency = _CURRENCIES.get(tz, "USD")
        amount = float(self.rng.choice([25, 30, 40, 120, 160]))
        if roll < 0.15:
            return None
        if roll < 0.55:
            return PaymentConfig(
                type=PaymentType.WEEKLY.value,
                weekly_interval=self.rng.choice([1, 1, 2]),
                start_date=start,
                amount=amount,
                currency=currency,
                payment_link="https://pay.example.com/checkout",
            )
        return PaymentConfig(
            type=PaymentType.MONTHLY.value,
            monthly_option=self.rng.choice([o.value for o in MonthlyOption]),
            amount=amount * 4,
            currency=currency,
            payment_link="https://pay.example.com/checkout",
        )

    def _generate_classes(self) -> list[ClassDefinition]:
        month_start, month_end = month_bounds(self.reference.year, self.reference.month)
        classes = []
        for i in range(1, self.num_classes + 1):
            tz = self.rng.choice(_TIMEZONES)
            start = month_start - timedelta(days=self.rng.randint(0, 120))
            end = None
            # Sonderfall 3: jede vierte Klasse endet mitten im Referenzmonat
            if i % 4 == 0:
                end = month_start + timedelta(days=self.rng.randint(7, 20))
            students = [self._student_email() for _ in range(self.rng.randint(1, 3))]
            classes.append(ClassDefinition(
                id=f"class-{i:03d}",
                schedule=self._schedule(tz, multiple=(i % 3 == 0)),
                start_date=start,
                end_date=end,
                student_emails=students,
                course_type=self.rng.choice(_COURSE_TYPES),
                payment_config=self._payment_config(tz, start),
            ))
        return classes

    # ─── Ausnahmen ────────────────────────────────────────────────────────────

    def _first_date_on(self, day_of_week: int, not_before: date) -> date:
        offset = (day_of_week - sunday_based_weekday(not_before)) % 7
        return not_before + timedelta(days=offset)

    def _generate_exceptions(self, classes: list[ClassDefinition]) -> list[ClassException]:
        month_start, month_end = month_bounds(self.reference.year, self.reference.month)
        exceptions = []
        for n, class_def in enumerate(classes[: max(1, len(classes) // 2)]):
            entry = class_def.schedules[0]
            # Zweite Woche des Monats: Ausfall oder Verlegung
            original = self._first_date_on(entry.day_of_week,
                                           month_start + timedelta(days=7))
            if not class_def.is_active_on(original):
                continue
            base = {
                "id": f"exc-{n + 1:03d}",
                "class_id": class_def.id,
                "original_date": original,
                "original_start_time": entry.start_time,
                "original_end_time": entry.end_time,
                "timezone": entry.timezone,
                "created_by": self.admin_email,
            }
            if n % 2 == 0:
                exceptions.append(ClassException(
                    type=ExceptionType.CANCELLED, reason="Feiertag", **base))
                continue
            # Sonderfall 4: die erste Verlegung springt in den Folgemonat
            if n == 1:
                new_date = month_end + timedelta(days=2)
            else:
                new_date = original + timedelta(days=1)
            new_start = self._random_start()
            exceptions.append(ClassException(
                type=ExceptionType.RESCHEDULED,
                new_date=new_date,
                new_start_time=new_start.format_24h(),
                new_end_time=new_start.plus_minutes(60).format_24h(),
                reason="Terminkonflikt",
                **base,
            ))
        return exceptions

    def _generate_payments(self, classes: list[ClassDefinition]) -> list[CompletedPayment]:
        """Ein Teil der Fälligkeiten des Vormonats ist bereits bezahlt."""
        from resolver.payments import PaymentDueCalculator

        prev_year, prev_month = (
            (self.reference.year - 1, 12) if self.reference.month == 1
            else (self.reference.year, self.reference.month - 1)
        )
        calculator = PaymentDueCalculator()
        payments = []
        for c in classes:
            if c.payment_config is None:
                continue
            for due in calculator.compute_due_dates(
                c.payment_config, c.start_date, prev_month, prev_year, c.end_date
            ):
                if self.rng.random() < 0.7:
                    payments.append(CompletedPayment(
                        class_id=c.id, due_date=due,
                        amount=c.payment_config.amount,
                        currency=c.payment_config.currency,
                    ))
        return payments

    # ─── Gesamt ───────────────────────────────────────────────────────────────

    def generate(self) -> ClassData:
        """Erzeugt den vollständigen Datensatz als ClassData-Objekt."""
        classes = self._generate_classes()
        return ClassData(
            classes=classes,
            exceptions=self._generate_exceptions(classes),
            completed_payments=self._generate_payments(classes),
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: ClassData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Klasse", style="bold cyan")
        table.add_column("Termine")
        table.add_column("Zone")
        table.add_column("Laufzeit")
        table.add_column("Zahlung")
        table.add_column("Schüler", justify="right")

        for c in data.classes:
            slots = ", ".join(f"{e.day_name} {e.start_time}" for e in c.schedules)
            runtime = f"{c.start_date} – {c.end_date or 'offen'}"
            pc = c.payment_config
            if pc is None:
                payment = "-"
            elif pc.type == PaymentType.WEEKLY.value:
                payment = f"alle {pc.weekly_interval} Wo."
            else:
                payment = f"monatlich ({pc.monthly_option})"
            table.add_row(c.id, slots, c.schedules[0].timezone, runtime, payment,
                          str(len(c.student_emails)))

        console.print(table)
