"""dootask telemetry library."""

from .logger import new_logger

__all__ = [
    "new_logger",
]
