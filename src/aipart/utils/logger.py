from __future__ import annotations

import logging

_ROOT = "aipart"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _root_logger() -> logging.Logger:
    root = logging.getLogger(_ROOT)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.WARNING)
    return root


def get_logger(name: str = _ROOT) -> logging.Logger:
    """Return a logger under the package root, installing the stream handler once."""
    _root_logger()
    if name != _ROOT and not name.startswith(_ROOT + "."):
        name = f"{_ROOT}.{name}"
    return logging.getLogger(name)


def set_log_level(level: str | int) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")
    _root_logger().setLevel(level)
