"""Utility helpers for logging, configuration, and common routines."""

from .logger import get_logger, set_log_level

__all__ = ["get_logger", "set_log_level"]
