"""In-memory registry standing in for the local playbook collection."""

from typing import Dict, List, Optional, TypeVar, Generic
from threading import Lock

from .models import Playbook
from .validation import validate_playbook

T = TypeVar('T')


class Registry(Generic[T]):
    """Thread-safe in-memory registry for entities."""

    def __init__(self, name: str, validator=None):
        self.name = name
        self.validator = validator
        self._data: Dict[str, T] = {}
        self._lock = Lock()

    def create(self, id: str, entity: T) -> T:
        """Create a new entity. Validation runs before anything is stored."""
        if self.validator:
            self.validator(entity)

        with self._lock:
            if id in self._data:
                raise ValueError(f"{self.name} with id {id} already exists")
            self._data[id] = entity
        return entity

    def get(self, id: str) -> Optional[T]:
        """Get entity by ID."""
        with self._lock:
            return self._data.get(id)

    def exists(self, id: str) -> bool:
        with self._lock:
            return id in self._data

    def delete(self, id: str) -> bool:
        """Delete entity by ID."""
        with self._lock:
            if id in self._data:
                del self._data[id]
                return True
            return False

    def list(self) -> List[T]:
        """List all entities."""
        with self._lock:
            return list(self._data.values())

    def clear(self) -> None:
        """Clear all entities (for testing)."""
        with self._lock:
            self._data.clear()

    def count(self) -> int:
        """Count entities."""
        with self._lock:
            return len(self._data)


class PlaybookCollection:
    """Global singleton holding the playbook collection."""

    _instance = None
    _lock = Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        self.playbooks = Registry[Playbook]("Playbook", validate_playbook)

    def clear_all(self):
        """Clear all registries (for testing)."""
        self.playbooks.clear()


def new_collection() -> Registry[Playbook]:
    """Standalone playbook registry, e.g. one per browsing context in tests."""
    return Registry[Playbook]("Playbook", validate_playbook)


# Global instance
registry = PlaybookCollection()
