# tests/conftest.py
import os
import sys

import pytest

# Ensure repository root is on PYTHONPATH for tests
repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if repo_root not in sys.path:
    sys.path.insert(0, repo_root)

from graphcommitter.config import CommitterSettings  # noqa: E402
from graphcommitter.graph.topologies import NodeTopology  # noqa: E402
from tests.fakes.memory_store import InMemoryGraphStore  # noqa: E402


@pytest.fixture
def store() -> InMemoryGraphStore:
    return InMemoryGraphStore()


@pytest.fixture
def make_topology(store):
    """Build a topology over the in-memory store; keyword arguments go to CommitterSettings."""

    def factory(**overrides) -> NodeTopology:
        settings = CommitterSettings(**overrides)
        return NodeTopology(settings.topology_type, settings, store)

    return factory
