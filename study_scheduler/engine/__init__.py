"""Scheduling engine components."""

from .allocator import CapacityAllocator
from .estimation import EstimationModel
from .feedback import CompletionFeedbackLoop, CompletionResult
from .recurrence import RecurrenceRule, expand, expand_day, parse_rule

__all__ = [
    'CapacityAllocator',
    'CompletionFeedbackLoop',
    'CompletionResult',
    'EstimationModel',
    'RecurrenceRule',
    'expand',
    'expand_day',
    'parse_rule',
]
