"""dootask config library."""

from .exceptions import ConfigError, ConfigErrorCodes
from .loader import apply_env, load, load_from_env
from .merger import deep_merge
from .models import (
    AppConfig,
    AppSection,
    DootaskSection,
    LogSection,
    ObservabilitySection,
    ServerSection,
    SessionSection,
)

__all__ = [
    "AppConfig",
    "AppSection",
    "ConfigError",
    "ConfigErrorCodes",
    "DootaskSection",
    "LogSection",
    "ObservabilitySection",
    "ServerSection",
    "SessionSection",
    "apply_env",
    "deep_merge",
    "load",
    "load_from_env",
]
