"""Task template, occurrence and completion data models."""

from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum, IntEnum
from typing import Any, Dict, Optional

from ..errors import ValidationError
from ..utils.datetime_utils import format_timestamp, parse_date, parse_timestamp

DEFAULT_TOPIC = "_general"


class Priority(IntEnum):
    """Ordered priority tier. Stored rows use 1..3."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3

    @classmethod
    def parse(cls, value: Any) -> "Priority":
        """Parse a stored priority (integer tier or tier name)."""
        if value is None:
            return cls.MEDIUM
        if isinstance(value, str) and not value.strip().isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValidationError("priority", f"unknown priority {value!r}") from None
        if isinstance(value, bool):
            raise ValidationError("priority", f"unknown priority {value!r}")
        try:
            return cls(int(value))
        except (TypeError, ValueError):
            raise ValidationError("priority", f"unknown priority {value!r}") from None


class TaskStatus(str, Enum):
    """Lifecycle status of a task template."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @classmethod
    def parse(cls, value: Any) -> "TaskStatus":
        if value is None:
            return cls.PENDING
        try:
            return cls(str(value))
        except ValueError:
            raise ValidationError("status", f"unknown status {value!r}") from None


def _optional_minutes(value: Any, field_name: str) -> Optional[float]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(field_name, f"expected a number of minutes, got {value!r}")
    if value < 0:
        raise ValidationError(field_name, "minutes cannot be negative")
    return float(value)


def _optional_text(value: Any, field_name: str) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(field_name, f"expected text, got {type(value).__name__}")
    return value or None


@dataclass(frozen=True)
class TaskTemplate:
    """A user-owned unit of work, optionally recurring."""

    task_id: str
    user_id: str
    title: str
    priority: Priority = Priority.MEDIUM
    status: TaskStatus = TaskStatus.PENDING
    description: Optional[str] = None
    course_id: Optional[str] = None
    rrule: Optional[str] = None
    estimated_minutes: Optional[float] = None
    due_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    actual_minutes: Optional[float] = None
    calendar_event_id: Optional[str] = None

    def __post_init__(self):
        """Enforce completion invariants."""
        if self.status == TaskStatus.COMPLETED:
            if self.completed_at is None:
                raise ValidationError("completed_at", "completed task requires a completion timestamp")
            if self.actual_minutes is None or self.actual_minutes < 0:
                raise ValidationError("actual_minutes", "completed task requires actual minutes >= 0")
        if self.status == TaskStatus.CANCELLED and self.completed_at is not None:
            raise ValidationError("completed_at", "cancelled task cannot have a completion timestamp")

    @property
    def is_recurring(self) -> bool:
        return self.rrule is not None

    @property
    def is_open(self) -> bool:
        """True while the template can still produce plannable work."""
        return self.status in (TaskStatus.PENDING, TaskStatus.IN_PROGRESS)

    @property
    def topic_key(self) -> str:
        return self.course_id or DEFAULT_TOPIC

    def mark_completed(self, actual_minutes: float, completed_at: datetime) -> "TaskTemplate":
        """Return a completed copy of this template."""
        return replace(
            self,
            status=TaskStatus.COMPLETED,
            actual_minutes=actual_minutes,
            completed_at=completed_at,
        )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "TaskTemplate":
        """Build a template from a task-store row."""
        task_id = record.get("id")
        if not task_id:
            raise ValidationError("id", "task record has no id")
        user_id = record.get("user_id")
        if not user_id:
            raise ValidationError("user_id", f"task {task_id} has no owner")
        title = record.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("title", f"task {task_id} has no title")

        rrule = _optional_text(record.get("rrule"), "rrule")
        return cls(
            task_id=str(task_id),
            user_id=str(user_id),
            title=title,
            priority=Priority.parse(record.get("priority")),
            status=TaskStatus.parse(record.get("status")),
            description=_optional_text(record.get("description"), "description"),
            course_id=_optional_text(record.get("course_id"), "course_id"),
            rrule=rrule.strip() if rrule else None,
            estimated_minutes=_optional_minutes(record.get("estimated_minutes"), "estimated_minutes"),
            due_at=parse_timestamp(record.get("due_at"), "due_at"),
            completed_at=parse_timestamp(record.get("completed_at"), "completed_at"),
            actual_minutes=_optional_minutes(record.get("actual_minutes"), "actual_minutes"),
            calendar_event_id=_optional_text(record.get("google_calendar_event_id"), "google_calendar_event_id"),
        )

    def to_record(self) -> Dict[str, Any]:
        """Convert to a task-store row."""
        return {
            "id": self.task_id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "course_id": self.course_id,
            "rrule": self.rrule,
            "priority": int(self.priority),
            "status": self.status.value,
            "estimated_minutes": self.estimated_minutes,
            "due_at": format_timestamp(self.due_at),
            "completed_at": format_timestamp(self.completed_at),
            "actual_minutes": self.actual_minutes,
            "google_calendar_event_id": self.calendar_event_id,
        }


@dataclass(frozen=True)
class Occurrence:
    """A concrete, dated instance of a task template. Never persisted."""

    template: TaskTemplate
    due_at: datetime
    predicted_minutes: float = 0.0
    effective_priority: float = 0.0
    overdue: bool = False

    @property
    def template_id(self) -> str:
        return self.template.task_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "task_id": self.template.task_id,
            "title": self.template.title,
            "course_id": self.template.course_id,
            "due_at": self.due_at.isoformat(),
            "priority": self.template.priority.name.lower(),
            "effective_priority": round(self.effective_priority, 4),
            "predicted_minutes": round(self.predicted_minutes, 2),
            "overdue": self.overdue,
            "recurring": self.template.is_recurring,
            "calendar_event_id": self.template.calendar_event_id,
        }


@dataclass(frozen=True)
class OccurrenceCompletion:
    """Append-only completion fact for one occurrence of a template."""

    task_id: str
    user_id: str
    occurrence_date: date
    actual_minutes: float
    completed_at: datetime
    predicted_minutes: Optional[float] = None

    @property
    def key(self) -> tuple:
        return (self.task_id, self.occurrence_date)

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "OccurrenceCompletion":
        completed_at = parse_timestamp(record.get("completed_at"), "completed_at")
        if completed_at is None:
            raise ValidationError("completed_at", "completion record has no timestamp")
        actual = _optional_minutes(record.get("actual_minutes"), "actual_minutes")
        if actual is None:
            raise ValidationError("actual_minutes", "completion record has no minutes")
        for key in ("task_id", "user_id"):
            if not record.get(key):
                raise ValidationError(key, "completion record is missing it")
        return cls(
            task_id=str(record["task_id"]),
            user_id=str(record["user_id"]),
            occurrence_date=parse_date(record.get("occurrence_date"), "occurrence_date"),
            actual_minutes=actual,
            completed_at=completed_at,
            predicted_minutes=_optional_minutes(record.get("predicted_minutes"), "predicted_minutes"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "task_id": self.task_id,
            "user_id": self.user_id,
            "occurrence_date": self.occurrence_date.isoformat(),
            "actual_minutes": self.actual_minutes,
            "completed_at": format_timestamp(self.completed_at),
            "predicted_minutes": self.predicted_minutes,
        }
