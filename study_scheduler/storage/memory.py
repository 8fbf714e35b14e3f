"""Dictionary-backed study store."""

import copy
import threading
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from ..errors import NotFoundError, StaleProfileError, ValidationError
from ..models.profile import StudyProfile
from ..models.task import OccurrenceCompletion, TaskTemplate
from .base import StudyStore


def _index_rows(rows: Optional[Iterable[Dict[str, Any]]], key: str) -> Dict[str, Dict[str, Any]]:
    indexed = {}
    for row in rows or []:
        if not isinstance(row, dict) or not row.get(key):
            raise ValidationError(key, f"store row without {key}: {row!r}")
        indexed[str(row[key])] = copy.deepcopy(row)
    return indexed


class InMemoryStore(StudyStore):
    """Keeps raw store rows in memory and parses them on every read."""

    def __init__(
        self,
        tasks: Optional[Iterable[Dict[str, Any]]] = None,
        profiles: Optional[Iterable[Dict[str, Any]]] = None,
        completions: Optional[Iterable[Dict[str, Any]]] = None,
    ):
        self._lock = threading.RLock()
        self._load_rows({
            'tasks': list(tasks or []),
            'profiles': list(profiles or []),
            'completions': list(completions or []),
        })

    def _load_rows(self, data: Dict[str, Any]) -> None:
        self._tasks: Dict[str, Dict[str, Any]] = _index_rows(data.get('tasks'), 'id')
        self._profiles: Dict[str, Dict[str, Any]] = _index_rows(data.get('profiles'), 'user_id')
        self._completions: List[Dict[str, Any]] = copy.deepcopy(list(data.get('completions') or []))

    def _dump_rows(self) -> Dict[str, Any]:
        return {
            'tasks': list(self._tasks.values()),
            'profiles': list(self._profiles.values()),
            'completions': list(self._completions),
        }

    def _sync(self) -> None:
        """Hook called before every operation."""

    def _changed(self) -> None:
        """Hook called after every write."""

    def list_templates(self, user_id: str, window_start: datetime, window_end: datetime) -> List[TaskTemplate]:
        with self._lock:
            self._sync()
            rows = [row for row in self._tasks.values() if row.get('user_id') == user_id]
        templates = []
        for row in rows:
            template = TaskTemplate.from_record(row)
            if not template.is_open:
                continue
            if template.is_recurring or (template.due_at is not None and template.due_at <= window_end):
                templates.append(template)
        return sorted(templates, key=lambda t: t.task_id)

    def get_template(self, user_id: str, template_id: str) -> TaskTemplate:
        with self._lock:
            self._sync()
            row = self._tasks.get(template_id)
        if row is None or row.get('user_id') != user_id:
            raise NotFoundError('task', template_id, user_id)
        return TaskTemplate.from_record(row)

    def save_template(self, template: TaskTemplate) -> None:
        with self._lock:
            self._sync()
            existing = self._tasks.get(template.task_id, {})
            row = dict(existing)
            row.update(template.to_record())
            self._tasks[template.task_id] = row
            self._changed()

    def get_profile(self, user_id: str) -> StudyProfile:
        with self._lock:
            self._sync()
            row = self._profiles.get(user_id)
        if row is None:
            raise NotFoundError('study profile', user_id)
        return StudyProfile.from_record(row)

    def save_profile(self, profile: StudyProfile, expected_version: int) -> StudyProfile:
        with self._lock:
            self._sync()
            row = self._profiles.get(profile.user_id)
            current_version = int(row.get('version') or 0) if row is not None else 0
            if current_version != expected_version:
                raise StaleProfileError(profile.user_id, expected_version, current_version)
            saved = profile.evolve(version=current_version + 1)
            self._profiles[profile.user_id] = saved.to_record()
            self._changed()
        return saved

    def list_completions(self, user_id: str, start: date, end: date) -> List[OccurrenceCompletion]:
        with self._lock:
            self._sync()
            rows = [row for row in self._completions if row.get('user_id') == user_id]
        completions = [OccurrenceCompletion.from_record(row) for row in rows]
        return [c for c in completions if start <= c.occurrence_date <= end]

    def append_completion(self, completion: OccurrenceCompletion) -> None:
        with self._lock:
            self._sync()
            self._completions.append(completion.to_record())
            self._changed()
