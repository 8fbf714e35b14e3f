"""Adaptive study scheduler."""

from .errors import InvalidInputError, NotFoundError, SchedulerError, StaleProfileError, ValidationError
from .service import SchedulerService

__version__ = "0.1.0"

__all__ = [
    'InvalidInputError',
    'NotFoundError',
    'SchedulerError',
    'SchedulerService',
    'StaleProfileError',
    'ValidationError',
]
