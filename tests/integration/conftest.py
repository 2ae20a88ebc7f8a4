"""Integration test fixtures."""

import pytest

from tablemap.core.logging import disable_logging


@pytest.fixture(autouse=True)
def quiet_logging():
    """Client.connect() installs a log sink; remove it after each test."""
    yield
    disable_logging()
