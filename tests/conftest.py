"""Global pytest configuration and fixtures."""

import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from snap_reindexer._queue.queue_memory import MemoryWorkQueue
from tests.utils import FakeCluster, create_test_config


@pytest.fixture
def config():
    """Config with zero poll intervals."""
    return create_test_config()


@pytest.fixture
def queue():
    return MemoryWorkQueue()


@pytest.fixture
def cluster():
    return FakeCluster()


@pytest.fixture
def no_sleep():
    """Sleep function that returns immediately and records its calls."""
    return AsyncMock(return_value=None)
