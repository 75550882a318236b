"""
Shared fixtures: a throwaway SQLite store and a fixed clock.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).parent.parent))

from db import KeyValueStore  # noqa: E402
from members import MemberCollection  # noqa: E402
from models import MemberInput  # noqa: E402


@pytest.fixture
def store(tmp_path):
    return KeyValueStore(tmp_path / "test_gym.db")


@pytest.fixture
def collection(store):
    return MemberCollection.load(store)


@pytest.fixture
def now():
    # Mid-morning, so "today" has a partial day left
    return datetime(2024, 1, 31, 10, 0, 0)


@pytest.fixture
def make_input():
    """Factory for a valid candidate record with per-test overrides."""

    def _make(**overrides) -> MemberInput:
        fields = dict(
            name="Jane Doe",
            phone="555-0001",
            type="Gym",
            amount="50",
            start="2024-01-01",
            end="2024-01-31",
        )
        fields.update(overrides)
        return MemberInput(**fields)

    return _make
