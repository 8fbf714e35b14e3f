"""Scheduler service: daily plans and occurrence completion."""

import logging
from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from .engine.allocator import CapacityAllocator
from .engine.estimation import EstimationModel
from .engine.feedback import CompletionFeedbackLoop, CompletionResult
from .engine.recurrence import expand
from .errors import InvalidInputError, NotFoundError, StaleProfileError
from .models.profile import StudyProfile
from .models.task import Occurrence, TaskTemplate
from .models.trace import DailyPlan
from .policies import create_policy
from .storage.base import StudyStore
from .utils.config import get_default_config
from .utils.datetime_utils import end_of_day, start_of_day, utc_now

logger = logging.getLogger(__name__)


class SchedulerService:
    """Stateless orchestrator over the store and the pure engine parts.

    Each call is an independent unit of work; the only shared state lives
    in the store.
    """

    def __init__(
        self,
        store: StudyStore,
        config: Optional[dict] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize service with store, configuration and clock."""
        self.store = store
        self.config = config or get_default_config()
        self.clock = clock

        self.estimator = EstimationModel(self.config)
        self.policy = create_policy(self.config)
        self.allocator = CapacityAllocator(self.policy, self.estimator)
        self.feedback = CompletionFeedbackLoop(self.estimator)

        allocation_config = self.config.get('allocation', {})
        self.carry_over_overdue = bool(allocation_config.get('carry_over_overdue', True))
        self.max_profile_retries = int(self.config.get('concurrency', {}).get('max_profile_retries', 3))
        self.profile_defaults = self.config.get('profile_defaults', {})

    def load_profile(self, user_id: str) -> StudyProfile:
        """Get the user's profile, creating it with defaults on first use."""
        try:
            return self.store.get_profile(user_id)
        except NotFoundError:
            logger.info("Creating default study profile for %s", user_id)
            profile = StudyProfile.with_defaults(user_id, self.profile_defaults)
            try:
                return self.store.save_profile(profile, expected_version=0)
            except StaleProfileError:
                # Another request created it first
                return self.store.get_profile(user_id)

    def collect_occurrences(self, user_id: str, plan_date: date) -> List[Occurrence]:
        """Expand the user's templates into candidate occurrences for a day."""
        window_start = start_of_day(plan_date)
        window_end = end_of_day(plan_date)

        templates = self.store.list_templates(user_id, window_start, window_end)
        done = {c.key for c in self.store.list_completions(user_id, plan_date, plan_date)}

        occurrences = []
        for template in templates:
            if not template.is_open:
                continue

            for due_at in expand(template, window_start, window_end):
                if template.is_recurring and (template.task_id, due_at.date()) in done:
                    continue
                occurrences.append(Occurrence(template=template, due_at=due_at))

            if (
                self.carry_over_overdue
                and not template.is_recurring
                and template.due_at is not None
                and template.due_at < window_start
            ):
                occurrences.append(Occurrence(template=template, due_at=template.due_at))

        logger.debug(
            "Collected %d occurrences from %d templates for %s on %s",
            len(occurrences), len(templates), user_id, plan_date,
        )
        return occurrences

    def get_daily_plan(
        self,
        user_id: str,
        plan_date: date,
        daily_budget_minutes: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> DailyPlan:
        """Plan the given day for the user."""
        if not user_id:
            raise InvalidInputError('user_id', "user id is required")
        now = now if now is not None else self.clock()

        profile = self.load_profile(user_id)
        budget = profile.target_daily_minutes if daily_budget_minutes is None else daily_budget_minutes
        occurrences = self.collect_occurrences(user_id, plan_date)

        return self.allocator.plan(occurrences, profile, budget, now, plan_date=plan_date)

    def complete_occurrence(
        self,
        user_id: str,
        template_id: str,
        occurrence_date: date,
        actual_minutes: float,
        completed_at: Optional[datetime] = None,
        daily_budget_minutes: Optional[float] = None,
    ) -> DailyPlan:
        """Record a finished occurrence and return the refreshed day plan."""
        if actual_minutes is None or actual_minutes < 0:
            raise InvalidInputError('actual_minutes', f"must be >= 0, got {actual_minutes}")
        completed_at = completed_at if completed_at is not None else self.clock()

        result = self._commit_completion(user_id, template_id, occurrence_date, actual_minutes, completed_at)
        logger.info(
            "Velocity for %s now %.3f after %d completions",
            user_id, result.profile.learning_velocity, result.profile.completed_count,
        )

        return self.get_daily_plan(user_id, occurrence_date, daily_budget_minutes, now=completed_at)

    def _occurrence_instant(self, user_id: str, template: TaskTemplate, occurrence_date: date) -> datetime:
        """Resolve which concrete occurrence is being completed."""
        if not template.is_recurring:
            return template.due_at if template.due_at is not None else start_of_day(occurrence_date)

        instants = expand(template, start_of_day(occurrence_date), end_of_day(occurrence_date))
        if not instants:
            raise InvalidInputError(
                'occurrence_date',
                f"task {template.task_id} has no occurrence on {occurrence_date.isoformat()}",
            )
        done = self.store.list_completions(user_id, occurrence_date, occurrence_date)
        if any(c.task_id == template.task_id for c in done):
            raise InvalidInputError(
                'occurrence_date',
                f"task {template.task_id} already completed on {occurrence_date.isoformat()}",
            )
        return instants[0]

    def _commit_completion(
        self,
        user_id: str,
        template_id: str,
        occurrence_date: date,
        actual_minutes: float,
        completed_at: datetime,
    ) -> CompletionResult:
        """Compute and persist a completion, retrying on profile version races.

        Every attempt re-reads the template and the completion log, so a
        concurrent completion of the same occurrence is rejected on retry.
        """
        attempt = 0
        while True:
            template = self.store.get_template(user_id, template_id)
            occurrence_due = self._occurrence_instant(user_id, template, occurrence_date)
            templates: Dict[str, TaskTemplate] = {template.task_id: template}

            profile = self.load_profile(user_id)
            result = self.feedback.record_completion(
                templates,
                template.task_id,
                occurrence_due,
                actual_minutes,
                completed_at,
                profile,
            )
            try:
                saved_profile = self.store.save_profile(result.profile, expected_version=profile.version)
                break
            except StaleProfileError:
                attempt += 1
                if attempt > self.max_profile_retries:
                    raise
                logger.warning(
                    "Profile for %s changed concurrently, retrying (%d/%d)",
                    user_id, attempt, self.max_profile_retries,
                )

        if result.template is not template:
            self.store.save_template(result.template)
        self.store.append_completion(result.completion)

        return CompletionResult(
            template=result.template,
            profile=saved_profile,
            completion=result.completion,
            predicted_minutes=result.predicted_minutes,
        )
