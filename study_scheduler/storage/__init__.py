"""External task and profile store implementations."""

from .base import StudyStore
from .file_store import FileStore
from .memory import InMemoryStore

__all__ = ['StudyStore', 'InMemoryStore', 'FileStore']
