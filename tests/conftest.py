"""
Pytest configuration and shared fixtures.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories and services packages.
"""

import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

# Add the project root to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from repositories.storage import InMemoryStorage  # noqa: E402
from services.state_store import StateStore  # noqa: E402


class RecordingStorage(InMemoryStorage):
    """InMemoryStorage that remembers every write."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        super().__init__(initial)
        self.writes: List[str] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append(key)
        super().set(key, value)


@pytest.fixture
def storage() -> RecordingStorage:
    return RecordingStorage()


@pytest.fixture
def store(storage: RecordingStorage) -> StateStore:
    return StateStore(storage)
