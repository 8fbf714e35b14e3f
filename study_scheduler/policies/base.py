"""Base ordering policy interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Sequence

from ..models.task import Occurrence
from ..models.trace import OccurrenceFeatures

# Urgency stays below one tier step so it never lifts a task across tiers
URGENCY_SPAN = 0.99


class OrderingPolicy(ABC):
    """Abstract base class for occurrence ordering policies."""

    def __init__(self, config: dict):
        """Initialize policy with configuration."""
        self.config = config
        allocation_config = config.get('allocation', {})
        self.urgency_horizon_hours = float(allocation_config.get('urgency_horizon_hours', 24))
        if self.urgency_horizon_hours <= 0:
            raise ValueError("urgency_horizon_hours must be positive")

    def compute_features(self, occurrence: Occurrence, now: datetime) -> OccurrenceFeatures:
        """Compute urgency and effective priority for an occurrence."""
        due_in_hours = (occurrence.due_at - now).total_seconds() / 3600
        overdue = occurrence.due_at < now

        # Linear ramp from 0 at the horizon edge to URGENCY_SPAN at the due instant
        closeness = 1.0 - (due_in_hours / self.urgency_horizon_hours)
        urgency = max(0.0, min(1.0, closeness)) * URGENCY_SPAN

        return OccurrenceFeatures(
            task_id=occurrence.template_id,
            due_in_hours=due_in_hours,
            urgency=urgency,
            effective_priority=int(occurrence.template.priority) + urgency,
            overdue=overdue,
        )

    @abstractmethod
    def sort_key(self, occurrence: Occurrence) -> tuple:
        """Return the ordering key for an occurrence with features applied."""
        pass

    def order(self, occurrences: Sequence[Occurrence]) -> List[Occurrence]:
        """Order occurrences according to policy logic."""
        return sorted(occurrences, key=self.sort_key)

    @abstractmethod
    def get_policy_name(self) -> str:
        """Return the name of this policy."""
        pass
