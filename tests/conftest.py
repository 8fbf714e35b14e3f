from datetime import datetime

import pytest

from study_scheduler.engine.allocator import CapacityAllocator
from study_scheduler.engine.estimation import EstimationModel
from study_scheduler.models.profile import StudyProfile
from study_scheduler.models.task import Occurrence, Priority, TaskTemplate
from study_scheduler.policies.urgency import UrgencyPolicy
from study_scheduler.service import SchedulerService
from study_scheduler.storage.memory import InMemoryStore
from study_scheduler.utils.config import get_default_config

MONDAY_9AM = datetime(2024, 3, 4, 9, 0)


def make_template(task_id="t1", **overrides) -> TaskTemplate:
    fields = {
        'task_id': task_id,
        'user_id': 'user-1',
        'title': f"Task {task_id}",
        'priority': Priority.MEDIUM,
        'due_at': MONDAY_9AM,
    }
    fields.update(overrides)
    return TaskTemplate(**fields)


def make_occurrence(task_id="t1", **overrides) -> Occurrence:
    template = make_template(task_id, **overrides)
    return Occurrence(template=template, due_at=template.due_at)


def task_row(task_id, **overrides) -> dict:
    row = {
        'id': task_id,
        'user_id': 'user-1',
        'title': f"Task {task_id}",
        'priority': 2,
        'status': 'pending',
        'due_at': '2024-03-04T09:00:00',
    }
    row.update(overrides)
    return row


@pytest.fixture
def config():
    return get_default_config()


@pytest.fixture
def estimator(config):
    return EstimationModel(config)


@pytest.fixture
def allocator(config, estimator):
    return CapacityAllocator(UrgencyPolicy(config), estimator)


@pytest.fixture
def profile():
    return StudyProfile(user_id='user-1')


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def service(store, config):
    return SchedulerService(store, config, clock=lambda: datetime(2024, 3, 4, 8, 0))
