from .exceptions import (
    PlanejamentoError, NegativeDurationError, CyclicHierarchyError,
    InvalidFieldError, InvalidCalendarConfigError
)
from .working_days import WorkCalendar, WorkCalendarConfig, default_calendar

__all__ = [
    'PlanejamentoError',
    'NegativeDurationError',
    'CyclicHierarchyError',
    'InvalidFieldError',
    'InvalidCalendarConfigError',
    'WorkCalendar',
    'WorkCalendarConfig',
    'default_calendar',
]
