"""
Test configuration and fixtures for Dexter HMM.

This file contains pytest configuration and shared fixtures
for testing the dexter_hmm package.
"""

import itertools
import tempfile
from pathlib import Path

import pytest

from dexter_hmm.config import reset_config
from dexter_hmm.hmm import Model, State


@pytest.fixture(autouse=True)
def clean_config():
    """Restore default configuration after every test."""
    yield
    reset_config()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def two_state_model():
    """Sticky two-state model with mirror-image emissions over two symbols."""
    return Model([
        State(0.5, [0.9, 0.1], [[0.9, 0.1]]),
        State(0.5, [0.1, 0.9], [[0.1, 0.9]]),
    ])


@pytest.fixture
def three_state_model():
    """Three states, two emission dimensions with vocabularies of 2 and 3."""
    return Model([
        State(0.6, [0.7, 0.2, 0.1], [[0.8, 0.2], [0.5, 0.3, 0.2]]),
        State(0.3, [0.1, 0.6, 0.3], [[0.3, 0.7], [0.1, 0.1, 0.8]]),
        State(0.1, [0.25, 0.25, 0.5], [[0.5, 0.5], [0.2, 0.6, 0.2]]),
    ])


@pytest.fixture
def brute_force_forward():
    """Reference forward probability by enumerating every state path."""
    def forward(model, sequence, final_index):
        states = model.states
        total = 0.0
        for path in itertools.product(range(len(states)), repeat=len(sequence)):
            if path[-1] != final_index:
                continue
            p = states[path[0]].initial_probability * states[path[0]].likelihood(sequence[0])
            for t in range(1, len(sequence)):
                p *= states[path[t-1]].transitions[path[t]] * states[path[t]].likelihood(sequence[t])
            total += p
        return total

    return forward


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
