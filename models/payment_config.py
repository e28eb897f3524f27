"""Zahlungs-Konfiguration einer Klasse (Pydantic v2)."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class PaymentType(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MonthlyOption(str, Enum):
    FIRST = "first"      # 1. des Monats
    FIFTEEN = "fifteen"  # 15. des Monats
    LAST = "last"        # letzter Kalendertag


class PaymentConfig(BaseModel):
    """Abrechnungsregel.

    Bewusst tolerant modelliert: `type` und die Unterfelder werden erst vom
    PaymentDueCalculator geprüft. Eine fehlerhafte Regel führt dort nur dazu,
    dass die Klasse keine Fälligkeiten beiträgt, nicht zu einem Ladefehler.
    """

    type: str                                # "weekly" / "monthly"
    weekly_interval: Optional[int] = None    # nur weekly: alle N Wochen
    monthly_option: Optional[str] = None     # nur monthly: first/fifteen/last
    start_date: Optional[date] = None        # Anker; sonst Startdatum der Klasse
    amount: Optional[float] = None
    currency: Optional[str] = None           # "USD", "BRL", ...
    payment_link: Optional[str] = None       # wird unverändert durchgereicht
