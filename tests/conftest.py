"""Shared test fixtures for interval trainer tests."""

import os
import sys

# Add project root to path so tests can import workouts, interval_session, etc.
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from cards_store import CardStore
from interval_session import IntervalSession
from tests.helpers import FakeClock, make_phases


@pytest.fixture
def clock():
    """Fake millisecond clock starting at 0."""
    return FakeClock()


@pytest.fixture
def session(clock):
    """IntervalSession over Work(5), Work(10), Work(3) on a fake clock."""
    return IntervalSession(make_phases(5, 10, 3), clock=clock)


@pytest.fixture
def store(tmp_path):
    """CardStore backed by a file in a temp directory."""
    return CardStore(str(tmp_path / "cards.json"))
