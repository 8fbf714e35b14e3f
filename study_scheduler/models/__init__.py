"""Scheduler data models."""

from .profile import StudyProfile
from .task import DEFAULT_TOPIC, Occurrence, OccurrenceCompletion, Priority, TaskStatus, TaskTemplate
from .trace import DailyPlan, OccurrenceFeatures, PlanDecision

__all__ = [
    'DEFAULT_TOPIC',
    'DailyPlan',
    'Occurrence',
    'OccurrenceCompletion',
    'OccurrenceFeatures',
    'PlanDecision',
    'Priority',
    'StudyProfile',
    'TaskStatus',
    'TaskTemplate',
]
