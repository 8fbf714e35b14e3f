"""Time estimation model driven by the user's learning velocity."""

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..errors import InvalidInputError
from ..models.profile import StudyProfile
from ..models.task import TaskTemplate

logger = logging.getLogger(__name__)

MIN_PREDICTED_MINUTES = 1.0


class EstimationModel:
    """Predicts minutes-to-complete and learns from observed completions.

    Per-topic estimates are stored as nominal minutes (what the task would
    take at velocity 1.0), so dividing by the current velocity gives the
    personal prediction for both hinted and topic-based templates.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """Initialize model with configuration."""
        estimation_config = (config or {}).get('estimation', {})
        self.smoothing_factor = float(estimation_config.get('smoothing_factor', 0.2))
        self.min_velocity = float(estimation_config.get('min_velocity', 0.25))
        self.max_velocity = float(estimation_config.get('max_velocity', 4.0))

        if not 0 < self.smoothing_factor <= 1:
            raise ValueError(f"smoothing_factor must be in (0, 1], got {self.smoothing_factor}")
        if not 0 < self.min_velocity <= self.max_velocity:
            raise ValueError("velocity bounds must satisfy 0 < min_velocity <= max_velocity")

    def predict(self, template: TaskTemplate, profile: StudyProfile) -> float:
        """Predict minutes to complete the template for this user."""
        if template.estimated_minutes:
            return template.estimated_minutes / profile.learning_velocity

        topic_estimate = profile.topic_estimate(template.topic_key)
        if topic_estimate is not None:
            return topic_estimate / profile.learning_velocity

        return profile.avg_pomodoro_minutes

    def clamp_velocity(self, velocity: float) -> float:
        return min(self.max_velocity, max(self.min_velocity, velocity))

    def update(
        self,
        profile: StudyProfile,
        template: TaskTemplate,
        actual_minutes: float,
        updated_at: Optional[datetime] = None,
    ) -> StudyProfile:
        """Return a new profile recalibrated from one observed completion."""
        if actual_minutes is None or actual_minutes < 0:
            raise InvalidInputError('actual_minutes', f"must be >= 0, got {actual_minutes}")

        predicted = self.predict(template, profile)
        if predicted <= 0:
            predicted = MIN_PREDICTED_MINUTES

        velocity = profile.learning_velocity
        if actual_minutes > 0:
            ratio = actual_minutes / predicted
            velocity = self.clamp_velocity(
                velocity * (1 + self.smoothing_factor * (1 / ratio - 1))
            )

            # Topic estimates track nominal effort, i.e. actual minutes at velocity 1.0
            nominal_minutes = actual_minutes * velocity
            estimates = dict(profile.section_estimates)
            previous = estimates.get(template.topic_key)
            if previous is None:
                estimates[template.topic_key] = nominal_minutes
            else:
                estimates[template.topic_key] = previous + self.smoothing_factor * (nominal_minutes - previous)
        else:
            estimates = dict(profile.section_estimates)

        logger.debug(
            "Velocity for %s: %.3f -> %.3f (predicted %.1f, actual %.1f)",
            profile.user_id, profile.learning_velocity, velocity, predicted, actual_minutes,
        )

        return profile.evolve(
            learning_velocity=velocity,
            section_estimates=estimates,
            completed_count=profile.completed_count + 1,
            updated_at=updated_at if updated_at is not None else profile.updated_at,
        )
