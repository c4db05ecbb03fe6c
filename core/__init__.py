"""
Core Module Package.

Infrastructure shared by every retention module.

Components:
- clock: Injectable time source
- exceptions: Exception hierarchy
- logging_config: Root logger setup
- settings: Environment-driven runtime settings
"""

from .clock import ClockProtocol, SystemClock, MockClock, ensure_utc, utc_date
from .exceptions import (
    Severity,
    RetentionException,
    ConfigurationError,
    InvalidConfigError,
    WorkflowError,
    NoWorkflowError,
    AlreadyInTreatmentError,
    TransitionFailedError,
    InvalidInteractionError,
    TagNotFoundError,
)
from .logging_config import setup_logging
from .settings import RetentionSettings


__all__ = [
    "ClockProtocol",
    "SystemClock",
    "MockClock",
    "ensure_utc",
    "utc_date",
    "Severity",
    "RetentionException",
    "ConfigurationError",
    "InvalidConfigError",
    "WorkflowError",
    "NoWorkflowError",
    "AlreadyInTreatmentError",
    "TransitionFailedError",
    "InvalidInteractionError",
    "TagNotFoundError",
    "setup_logging",
    "RetentionSettings",
]
