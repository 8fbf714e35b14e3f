"""Priority-then-urgency ordering policy."""

from ..models.task import Occurrence
from .base import OrderingPolicy


class UrgencyPolicy(OrderingPolicy):
    """Default policy: overdue first, then effective priority, then deadline."""

    def sort_key(self, occurrence: Occurrence) -> tuple:
        # Overdue first, higher effective priority first, sooner due, then id
        return (
            not occurrence.overdue,
            -occurrence.effective_priority,
            occurrence.due_at,
            occurrence.template_id,
        )

    def get_policy_name(self) -> str:
        """Return policy name."""
        return "URGENCY"
