"""Pytest configuration for taskflow tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add tests directory to path for fixture imports
tests_dir = Path(__file__).parent
if str(tests_dir) not in sys.path:
    sys.path.insert(0, str(tests_dir))

# Re-export all fixtures from fixtures modules
from fixtures.auth import *  # noqa: F401, F403, E402


@pytest.fixture
def anyio_backend() -> str:
    """Configure anyio to use asyncio backend."""
    return "asyncio"
