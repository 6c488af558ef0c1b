"""Ensure the root-level modules are importable for local pytest runs."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from batching import BatchGenerator  # noqa: E402


class FixedStateSource:
    """Deterministic stand-in for the scenario's shared random state."""

    def __init__(self, states):
        self.states = list(states)
        self.calls = 0

    def next_random_state(self):
        state = self.states[self.calls % len(self.states)]
        self.calls += 1
        return state


@pytest.fixture
def batch_generator():
    with BatchGenerator(max_workers=4) as generator:
        yield generator


@pytest.fixture
def state_source():
    return FixedStateSource([12345, 67890, 424242])


@pytest.fixture
def make_state_source():
    return FixedStateSource
