"""Root pytest configuration for all tests.

Provides store-backed fixtures shared by unit and integration tests. No test
talks to the network: GitHub access is exercised through a mocked
requests.Session, everything else runs on MemoryContentStore.
"""

import logging

import pytest

from src.api.content_api import ContentAPI
from src.content_store.memory_store import MemoryContentStore
from src.mutations.mutation_engine import MutationEngine
from tests.fixtures.sample_documents import SAMPLE_TREE

# Keep urllib3 connection chatter out of captured logs
logging.getLogger("urllib3").setLevel(logging.WARNING)


@pytest.fixture
def store() -> MemoryContentStore:
    """MemoryContentStore seeded with SAMPLE_TREE."""
    return MemoryContentStore(SAMPLE_TREE)


@pytest.fixture
def engine(store: MemoryContentStore) -> MutationEngine:
    """Sequential MutationEngine over the sample store."""
    return MutationEngine(store)


@pytest.fixture
def api(store: MemoryContentStore, engine: MutationEngine) -> ContentAPI:
    """ContentAPI over the sample store."""
    return ContentAPI(store, engine)
