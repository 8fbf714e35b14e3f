"""Daily plan and allocation decision models."""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from .task import Occurrence


@dataclass(frozen=True)
class OccurrenceFeatures:
    """Computed ordering features for an occurrence."""

    task_id: str
    due_in_hours: float
    urgency: float
    effective_priority: float
    overdue: bool


@dataclass(frozen=True)
class PlanDecision:
    """Records a single allocation decision."""

    task_id: str
    due_at: datetime
    minutes: float
    accepted: bool
    reason: str
    cumulative_minutes: float


@dataclass
class DailyPlan:
    """Ordered plan for one day, plus everything that did not fit."""

    plan_date: date
    budget_minutes: float
    policy_name: str
    scheduled: List[Occurrence] = field(default_factory=list)
    deferred: List[Occurrence] = field(default_factory=list)
    decisions: List[PlanDecision] = field(default_factory=list)
    features: List[OccurrenceFeatures] = field(default_factory=list)
    generated_at: Optional[datetime] = None

    @property
    def used_minutes(self) -> float:
        return sum(o.predicted_minutes for o in self.scheduled)

    @property
    def remaining_minutes(self) -> float:
        return max(0.0, self.budget_minutes - self.used_minutes)

    @property
    def is_empty(self) -> bool:
        return not self.scheduled and not self.deferred

    def to_dict(self) -> Dict[str, Any]:
        """Convert plan to dictionary for JSON export."""
        return {
            "date": self.plan_date.isoformat(),
            "policy": self.policy_name,
            "budget_minutes": self.budget_minutes,
            "used_minutes": round(self.used_minutes, 2),
            "remaining_minutes": round(self.remaining_minutes, 2),
            "scheduled": [o.to_dict() for o in self.scheduled],
            "deferred": [o.to_dict() for o in self.deferred],
            "decisions": [
                {
                    "task_id": d.task_id,
                    "due_at": d.due_at.isoformat(),
                    "minutes": round(d.minutes, 2),
                    "accepted": d.accepted,
                    "reason": d.reason,
                    "cumulative_minutes": round(d.cumulative_minutes, 2),
                }
                for d in self.decisions
            ],
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
        }

    def to_human_readable(self) -> str:
        """Generate human-readable plan listing."""
        lines = [
            f"=== Study plan for {self.plan_date.isoformat()} ===",
            f"Policy: {self.policy_name}",
            f"Budget: {self.budget_minutes:.0f} min "
            f"(used {self.used_minutes:.0f}, remaining {self.remaining_minutes:.0f})",
            "",
            "Scheduled:",
        ]

        if not self.scheduled:
            lines.append("  (nothing scheduled)")
        for occurrence in self.scheduled:
            lines.append(self._format_line(occurrence))

        if self.deferred:
            lines.extend(["", "Deferred:"])
            for occurrence in self.deferred:
                lines.append(self._format_line(occurrence))

        lines.append("=" * 50)
        return "\n".join(lines)

    def _format_line(self, occurrence: Occurrence) -> str:
        flag = " [overdue]" if occurrence.overdue else ""
        when_format = "%H:%M" if occurrence.due_at.date() == self.plan_date else "%Y-%m-%d %H:%M"
        return (
            f"  {occurrence.due_at.strftime(when_format)} {occurrence.template.title} "
            f"({occurrence.predicted_minutes:.0f} min, "
            f"{occurrence.template.priority.name.lower()}){flag}"
        )
