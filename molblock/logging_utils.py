from __future__ import annotations

import logging

ROOT_LOGGER_NAME = "molblock"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; output is left to the application's configuration."""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not any(isinstance(h, logging.NullHandler) for h in root.handlers):
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
