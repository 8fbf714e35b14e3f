"""Completion feedback loop."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from ..errors import InvalidInputError, NotFoundError
from ..models.profile import StudyProfile
from ..models.task import OccurrenceCompletion, TaskStatus, TaskTemplate
from .estimation import EstimationModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletionResult:
    """New state for the caller to persist after a completion."""

    template: TaskTemplate
    profile: StudyProfile
    completion: OccurrenceCompletion
    predicted_minutes: float


class CompletionFeedbackLoop:
    """Turns a finished occurrence into template and profile updates."""

    def __init__(self, estimator: EstimationModel):
        self.estimator = estimator

    def record_completion(
        self,
        templates: Mapping[str, TaskTemplate],
        template_id: str,
        occurrence_due: datetime,
        actual_minutes: float,
        completed_at: datetime,
        profile: StudyProfile,
    ) -> CompletionResult:
        """Compute the updated template and profile for one completion.

        Early and late completions are both accepted. A recurring template
        stays open; its completion is only an estimation fact.
        """
        template: Optional[TaskTemplate] = templates.get(template_id)
        if template is None:
            raise NotFoundError('task', template_id, profile.user_id)
        if actual_minutes is None or actual_minutes < 0:
            raise InvalidInputError('actual_minutes', f"must be >= 0, got {actual_minutes}")
        if template.status == TaskStatus.CANCELLED:
            raise InvalidInputError('status', f"task {template_id} is cancelled")
        if not template.is_recurring and template.status == TaskStatus.COMPLETED:
            raise InvalidInputError('status', f"task {template_id} is already completed")

        predicted = self.estimator.predict(template, profile)
        updated_profile = self.estimator.update(profile, template, actual_minutes, updated_at=completed_at)

        if template.is_recurring:
            updated_template = template
        else:
            updated_template = template.mark_completed(actual_minutes, completed_at)

        completion = OccurrenceCompletion(
            task_id=template.task_id,
            user_id=template.user_id,
            occurrence_date=occurrence_due.date(),
            actual_minutes=float(actual_minutes),
            completed_at=completed_at,
            predicted_minutes=predicted,
        )

        logger.info(
            "Completed %s (%s) for %s: %.0f min actual vs %.0f predicted",
            template.task_id,
            'recurring' if template.is_recurring else 'one-off',
            template.user_id,
            actual_minutes,
            predicted,
        )

        return CompletionResult(
            template=updated_template,
            profile=updated_profile,
            completion=completion,
            predicted_minutes=predicted,
        )
