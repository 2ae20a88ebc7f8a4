"""Tests for loguru configuration helpers."""

from loguru import logger

from tablemap.core.logging import configure_logging, disable_logging
from tablemap.schema import EntityRegistry
from tests.fakes import User


def test_records_disabled_by_default():
    """Library records are silent until logging is configured."""
    messages = []
    sink = logger.add(messages.append, level="DEBUG")
    try:
        disable_logging()
        EntityRegistry().register_entity(User)
    finally:
        logger.remove(sink)

    assert messages == []


def test_configure_logging_enables_records():
    messages = []
    sink = logger.add(messages.append, level="DEBUG")
    try:
        assert configure_logging(None) is None
        EntityRegistry().register_entity(User)
    finally:
        logger.remove(sink)
        disable_logging()

    assert any("Entity registered: User" in str(m) for m in messages)


def test_configure_logging_replaces_sink():
    first = configure_logging("WARNING")
    second = configure_logging("DEBUG")
    try:
        assert first != second
    finally:
        disable_logging()
