"""Per-user study profile model."""

import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..errors import ValidationError
from ..utils.datetime_utils import format_timestamp, parse_timestamp

DEFAULT_POMODORO_MINUTES = 25.0
DEFAULT_TARGET_DAILY_MINUTES = 240.0
DEFAULT_LEARNING_VELOCITY = 1.0


def _positive_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise ValidationError(field_name, f"expected a number, got {value!r}")
    if value <= 0:
        raise ValidationError(field_name, f"must be positive, got {value}")
    return float(value)


def _section_estimates(value: Any) -> Dict[str, float]:
    """Validate the stored section-estimate blob as topic -> minutes."""
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValidationError("section_estimates", "expected a mapping of topic to minutes")
    estimates = {}
    for key, minutes in value.items():
        if not isinstance(key, str) or not key:
            raise ValidationError("section_estimates", f"invalid topic key {key!r}")
        estimates[key] = _positive_number(minutes, f"section_estimates.{key}")
    return estimates


def _counter(value: Any, field_name: str) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValidationError(field_name, f"expected a whole number, got {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    if isinstance(value, float) and value.is_integer() and value >= 0:
        return int(value)
    raise ValidationError(field_name, f"expected a whole number, got {value!r}")


@dataclass(frozen=True)
class StudyProfile:
    """One user's estimation state. Sole mutable input of the estimation model."""

    user_id: str
    avg_pomodoro_minutes: float = DEFAULT_POMODORO_MINUTES
    target_daily_minutes: float = DEFAULT_TARGET_DAILY_MINUTES
    learning_velocity: float = DEFAULT_LEARNING_VELOCITY
    section_estimates: Dict[str, float] = field(default_factory=dict)
    completed_count: int = 0
    version: int = 0
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.learning_velocity <= 0:
            raise ValidationError("learning_velocity", "must be greater than zero")
        if self.avg_pomodoro_minutes <= 0:
            raise ValidationError("avg_pomodoro_minutes", "must be greater than zero")
        if self.target_daily_minutes < 0:
            raise ValidationError("target_daily_minutes", "cannot be negative")

    @classmethod
    def with_defaults(cls, user_id: str, defaults: Optional[Mapping[str, Any]] = None) -> "StudyProfile":
        """Create a first-use profile from configured defaults."""
        defaults = defaults or {}
        return cls(
            user_id=user_id,
            avg_pomodoro_minutes=float(defaults.get("avg_pomodoro_minutes", DEFAULT_POMODORO_MINUTES)),
            target_daily_minutes=float(defaults.get("target_daily_minutes", DEFAULT_TARGET_DAILY_MINUTES)),
            learning_velocity=float(defaults.get("learning_velocity", DEFAULT_LEARNING_VELOCITY)),
        )

    def topic_estimate(self, topic: str) -> Optional[float]:
        return self.section_estimates.get(topic)

    def evolve(self, **changes) -> "StudyProfile":
        return replace(self, **changes)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "StudyProfile":
        """Build a profile from a stored row, applying defaults for nulls."""
        user_id = record.get("user_id")
        if not user_id:
            raise ValidationError("user_id", "profile record has no owner")

        def number(name: str, default: float) -> float:
            value = record.get(name)
            return default if value is None else _positive_number(value, name)

        target = record.get("target_daily_minutes")
        if target is not None and (isinstance(target, bool) or not isinstance(target, (int, float)) or target < 0):
            raise ValidationError("target_daily_minutes", f"invalid daily target {target!r}")

        return cls(
            user_id=str(user_id),
            avg_pomodoro_minutes=number("avg_pomodoro_minutes", DEFAULT_POMODORO_MINUTES),
            target_daily_minutes=DEFAULT_TARGET_DAILY_MINUTES if target is None else float(target),
            learning_velocity=number("learning_velocity", DEFAULT_LEARNING_VELOCITY),
            section_estimates=_section_estimates(record.get("section_estimates")),
            completed_count=_counter(record.get("completed_count"), "completed_count"),
            version=_counter(record.get("version"), "version"),
            updated_at=parse_timestamp(record.get("updated_at"), "updated_at"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "avg_pomodoro_minutes": self.avg_pomodoro_minutes,
            "target_daily_minutes": self.target_daily_minutes,
            "learning_velocity": self.learning_velocity,
            "section_estimates": dict(self.section_estimates),
            "completed_count": self.completed_count,
            "version": self.version,
            "updated_at": format_timestamp(self.updated_at),
        }
