"""Logging configuration for badge-review.

Every module obtains its logger via ``logging.getLogger(__name__)``; this
module only attaches a handler to the package logger so that those messages
reach stderr with a consistent format.
"""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_PACKAGE_LOGGER = "badgereview"
_HANDLER_NAME = "badgereview.stderr"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a stream handler to the ``badgereview`` logger.

    Calling this more than once replaces the level but never stacks handlers.

    Args:
        level: Logging level name, e.g. ``"INFO"`` or ``"DEBUG"``.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(_PACKAGE_LOGGER)
    logger.setLevel(level.upper())
    if not any(h.get_name() == _HANDLER_NAME for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(_FORMAT))
        logger.addHandler(handler)
    return logger
