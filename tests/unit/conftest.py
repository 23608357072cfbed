"""
Pytest configuration and fixtures for solcheck-chc tests.
"""
import sys
from pathlib import Path

import pytest

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from solcheck.formal.reporting import ErrorReporter  # noqa: E402

from programs import RecordingSolver  # noqa: E402


@pytest.fixture
def reporter():
    return ErrorReporter()


@pytest.fixture
def recording_solver():
    return RecordingSolver()
