"""Daily capacity allocation engine."""

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import InvalidInputError
from ..models.profile import StudyProfile
from ..models.task import Occurrence
from ..models.trace import DailyPlan, OccurrenceFeatures, PlanDecision
from ..policies.base import OrderingPolicy
from .estimation import EstimationModel

logger = logging.getLogger(__name__)

# Absorbs float noise when a task exactly fills the remaining budget
BUDGET_TOLERANCE = 1e-9


class CapacityAllocator:
    """Fits a day's occurrences into the user's study budget."""

    def __init__(self, policy: OrderingPolicy, estimator: EstimationModel):
        """Initialize allocator with ordering policy and estimation model."""
        self.policy = policy
        self.estimator = estimator

    def plan(
        self,
        occurrences: Sequence[Occurrence],
        profile: StudyProfile,
        daily_budget_minutes: float,
        now: datetime,
        plan_date: Optional[date] = None,
    ) -> DailyPlan:
        """Select and order the occurrences that fit the daily budget.

        Greedy in policy order: an occurrence that does not fit the remaining
        budget is deferred and smaller ones later in the order still get a
        chance. Occurrences are never split. Pure function of its inputs.
        """
        if daily_budget_minutes is None or daily_budget_minutes < 0:
            raise InvalidInputError(
                'daily_budget_minutes', f"must be >= 0, got {daily_budget_minutes}"
            )

        prepared, features = self._prepare(occurrences, profile, now)
        ordered = self.policy.order(prepared)

        scheduled: List[Occurrence] = []
        deferred: List[Occurrence] = []
        decisions: List[PlanDecision] = []
        used = 0.0

        for occurrence in ordered:
            minutes = occurrence.predicted_minutes
            remaining = daily_budget_minutes - used

            if minutes <= remaining + BUDGET_TOLERANCE:
                used += minutes
                scheduled.append(occurrence)
                reason = "Overdue, scheduled first" if occurrence.overdue else "Scheduled by policy ordering"
                decisions.append(PlanDecision(
                    task_id=occurrence.template_id,
                    due_at=occurrence.due_at,
                    minutes=minutes,
                    accepted=True,
                    reason=reason,
                    cumulative_minutes=used,
                ))
            else:
                deferred.append(occurrence)
                decisions.append(PlanDecision(
                    task_id=occurrence.template_id,
                    due_at=occurrence.due_at,
                    minutes=minutes,
                    accepted=False,
                    reason=f"Needs {minutes:.0f} min, only {max(remaining, 0.0):.0f} min left",
                    cumulative_minutes=used,
                ))

        logger.info(
            "Planned %d of %d occurrences for %s: %.0f/%.0f min (%s)",
            len(scheduled), len(ordered), profile.user_id, used,
            daily_budget_minutes, self.policy.get_policy_name(),
        )

        return DailyPlan(
            plan_date=plan_date or now.date(),
            budget_minutes=float(daily_budget_minutes),
            policy_name=self.policy.get_policy_name(),
            scheduled=scheduled,
            deferred=deferred,
            decisions=decisions,
            features=features,
            generated_at=now,
        )

    def _prepare(
        self,
        occurrences: Sequence[Occurrence],
        profile: StudyProfile,
        now: datetime,
    ) -> Tuple[List[Occurrence], List[OccurrenceFeatures]]:
        """Attach predicted minutes and ordering features, dropping duplicates."""
        seen: Dict[Tuple[str, datetime], Occurrence] = {}
        features_list = []

        for occurrence in occurrences:
            key = (occurrence.template_id, occurrence.due_at)
            if key in seen:
                continue

            features = self.policy.compute_features(occurrence, now)
            seen[key] = replace(
                occurrence,
                predicted_minutes=self.estimator.predict(occurrence.template, profile),
                effective_priority=features.effective_priority,
                overdue=features.overdue,
            )
            features_list.append(features)

        return list(seen.values()), features_list
