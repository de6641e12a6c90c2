"""Logging setup for the ``showsync`` logger tree."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stream handler to the ``showsync`` root logger.

    Safe to call more than once; the handler is only installed the first time.
    """
    root = logging.getLogger("showsync")
    root.setLevel(level.upper())
    if not any(getattr(h, "_showsync", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._showsync = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    return root
