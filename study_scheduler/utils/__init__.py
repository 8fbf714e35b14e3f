"""Utility functions."""

from .config import get_default_config, load_config, merge_config, resolve_config
from .datetime_utils import end_of_day, parse_date, parse_timestamp, start_of_day, utc_now
from .logging_config import configure_logging

__all__ = [
    'configure_logging',
    'end_of_day',
    'get_default_config',
    'load_config',
    'merge_config',
    'parse_date',
    'parse_timestamp',
    'resolve_config',
    'start_of_day',
    'utc_now',
]
