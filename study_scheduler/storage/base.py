"""Base study store interface."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List

from ..models.profile import StudyProfile
from ..models.task import OccurrenceCompletion, TaskTemplate


class StudyStore(ABC):
    """Abstract base class for the external task and profile store."""

    @abstractmethod
    def list_templates(self, user_id: str, window_start: datetime, window_end: datetime) -> List[TaskTemplate]:
        """Get open templates that may produce work for the user in the window.

        Includes every recurring template and every one-off template due on
        or before the window end.
        """
        pass

    @abstractmethod
    def get_template(self, user_id: str, template_id: str) -> TaskTemplate:
        """Get one of the user's templates. Raises NotFoundError."""
        pass

    @abstractmethod
    def save_template(self, template: TaskTemplate) -> None:
        """Insert or replace a template row."""
        pass

    @abstractmethod
    def get_profile(self, user_id: str) -> StudyProfile:
        """Get the user's study profile. Raises NotFoundError."""
        pass

    @abstractmethod
    def save_profile(self, profile: StudyProfile, expected_version: int) -> StudyProfile:
        """Write the profile if the stored version still matches.

        Returns the stored profile with its new version. Raises
        StaleProfileError when another writer got there first.
        """
        pass

    @abstractmethod
    def list_completions(self, user_id: str, start: date, end: date) -> List[OccurrenceCompletion]:
        """Get occurrence completions with occurrence dates in [start, end]."""
        pass

    @abstractmethod
    def append_completion(self, completion: OccurrenceCompletion) -> None:
        """Append to the occurrence completion log."""
        pass
