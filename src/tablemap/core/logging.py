"""Loguru setup for applications embedding tablemap.

The package disables its own log records on import so that library users
opt in explicitly:

    from tablemap.core.logging import configure_logging
    configure_logging("DEBUG")  # rendered SQL, registrations, skipped values
"""

import sys

from loguru import logger

PACKAGE = "tablemap"

_sink_id: int | None = None


def configure_logging(level: str | None = "INFO") -> int | None:
    """Enable tablemap log records and route them to stderr.

    Calling it again replaces the previously installed sink.

    Args:
        level: Minimum level to emit, or None to enable records without
            installing a sink (for apps that configure loguru themselves).

    Returns:
        The loguru sink id, or None when no sink was installed.
    """
    global _sink_id

    logger.enable(PACKAGE)

    if _sink_id is not None:
        logger.remove(_sink_id)
        _sink_id = None

    if level is None:
        return None

    _sink_id = logger.add(
        sys.stderr,
        level=level.upper(),
        filter=PACKAGE,
        format="{time:HH:mm:ss.SSS} | {level: <8} | {name}:{line} - {message}",
    )
    return _sink_id


def disable_logging() -> None:
    """Silence tablemap log records again."""
    global _sink_id

    if _sink_id is not None:
        logger.remove(_sink_id)
        _sink_id = None
    logger.disable(PACKAGE)
