"""Pytest configuration for node fleet tests."""

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Keep test runs from writing into the repository's logs/ directory
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="myst-nodes-logs-"))


@pytest.fixture
def log_records():
    """Capture loguru records emitted through UnifiedLogger during a test."""
    from loguru import logger

    from helpers.unified_logger import get_core_logger

    # Shared handlers are installed on first use; install them before adding ours.
    get_core_logger("tests")
    records = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)
