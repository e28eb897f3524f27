from models.schedule import ScheduleEntry, SingleSchedule, MultipleSchedule, Schedule
from models.payment_config import PaymentConfig, PaymentType, MonthlyOption
from models.class_definition import ClassDefinition
from models.class_exception import ClassException, ExceptionType
from models.calendar_month import CalendarMonth, ResolvedOccurrence, PaymentDue, AssemblyWarning
from models.date_key import DateKey, date_key, join_key
from models.viewer import ViewerScope
from models.class_data import ClassData, CompletedPayment, DataReport

__all__ = [
    "ScheduleEntry",
    "SingleSchedule",
    "MultipleSchedule",
    "Schedule",
    "PaymentConfig",
    "PaymentType",
    "MonthlyOption",
    "ClassDefinition",
    "ClassException",
    "ExceptionType",
    "CalendarMonth",
    "ResolvedOccurrence",
    "PaymentDue",
    "AssemblyWarning",
    "DateKey",
    "date_key",
    "join_key",
    "ViewerScope",
    "ClassData",
    "CompletedPayment",
    "DataReport",
]
