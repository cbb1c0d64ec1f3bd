"""Shared logging helpers."""

from .logging_config import ColoredFormatter, log_error, setup_colored_logging

__all__ = [
    "ColoredFormatter",
    "log_error",
    "setup_colored_logging",
]
