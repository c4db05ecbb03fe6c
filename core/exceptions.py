"""
Core Module - Exceptions.

============================================================
RESPONSIBILITY
============================================================
Defines all custom exceptions for the retention engine.

- Provides clear exception hierarchy
- Enables specific error handling at the HTTP and board layers
- Carries context for operator notices and logs

============================================================
EXCEPTION HIERARCHY
============================================================
RetentionException (base)
├── ConfigurationError
│   └── InvalidConfigError
└── WorkflowError
    ├── NoWorkflowError
    ├── AlreadyInTreatmentError
    └── TransitionFailedError

============================================================
"""

from enum import Enum
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# ============================================================
# SEVERITY LEVELS
# ============================================================

class Severity(Enum):
    """Exception severity levels for operator notices."""

    LOW = "low"
    """Benign, informational."""

    MEDIUM = "medium"
    """Requires operator attention."""

    HIGH = "high"
    """Operation could not be completed."""


# ============================================================
# BASE EXCEPTION
# ============================================================

class RetentionException(Exception):
    """
    Base exception for all retention engine errors.

    All exceptions carry:
    - severity: for operator notices
    - context: for debugging
    - timestamp: when the error occurred
    """

    default_severity: Severity = Severity.MEDIUM

    def __init__(
        self,
        message: str,
        severity: Optional[Severity] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)

        self.message = message
        self.severity = severity or self.default_severity
        self.context = context or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

        if cause is not None:
            self.context["cause_type"] = type(cause).__name__
            self.context["cause_message"] = str(cause)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize exception for logging/API responses."""
        return {
            "type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


# ============================================================
# CONFIGURATION ERRORS
# ============================================================

class ConfigurationError(RetentionException):
    """Error in configuration."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        actual_value: Optional[Any] = None,
        **kwargs,
    ):
        context = kwargs.pop("context", {})

        if config_key:
            context["config_key"] = config_key
        if actual_value is not None:
            context["actual_value"] = str(actual_value)[:100]

        super().__init__(message, context=context, **kwargs)


class InvalidConfigError(ConfigurationError):
    """A proposed configuration value is non-numeric or out of bounds."""

    def __init__(self, key: str, value: Any, reason: str):
        super().__init__(
            message=f"Invalid configuration for {key}: {reason}",
            config_key=key,
            actual_value=value,
            context={"reason": reason},
        )
        self.key = key
        self.reason = reason


# ============================================================
# WORKFLOW ERRORS
# ============================================================

class WorkflowError(RetentionException):
    """Base class for workflow errors."""

    def __init__(self, message: str, customer_id: Optional[int] = None, **kwargs):
        context = kwargs.pop("context", {})
        if customer_id is not None:
            context["customer_id"] = customer_id
        super().__init__(message, context=context, **kwargs)
        self.customer_id = customer_id


class NoWorkflowError(WorkflowError):
    """Operation requires a workflow record and the customer has none."""

    def __init__(self, customer_id: int, operation: str):
        super().__init__(
            f"Customer {customer_id} has no workflow record ({operation})",
            customer_id=customer_id,
            context={"operation": operation},
        )
        self.operation = operation


class AlreadyInTreatmentError(WorkflowError):
    """
    start_treatment called for a customer that already has a record.

    Non-fatal. The existing record travels with the exception so the
    caller can continue from it.
    """

    default_severity = Severity.LOW

    def __init__(self, customer_id: int, record: Any):
        super().__init__(
            f"Customer {customer_id} is already in the workflow "
            f"(status={getattr(getattr(record, 'status', None), 'value', None)})",
            customer_id=customer_id,
        )
        self.record = record


class TransitionFailedError(WorkflowError):
    """The workflow store failed or timed out during an operation."""

    default_severity = Severity.HIGH

    def __init__(
        self,
        customer_id: Optional[int],
        operation: str,
        cause: Optional[BaseException] = None,
        timed_out: bool = False,
    ):
        detail = "timed out" if timed_out else (str(cause) if cause else "store rejected the write")
        target = f" for customer {customer_id}" if customer_id is not None else ""
        super().__init__(
            f"Workflow {operation} failed{target}: {detail}",
            customer_id=customer_id,
            context={"operation": operation, "timed_out": timed_out},
            cause=cause,
        )
        self.operation = operation
        self.timed_out = timed_out


class InvalidInteractionError(WorkflowError):
    """A comment, action or tag definition failed validation."""

    default_severity = Severity.LOW

    def __init__(self, field: str, value: Any, reason: str, customer_id: Optional[int] = None):
        super().__init__(
            f"Invalid {field} {value!r}: {reason}",
            customer_id=customer_id,
            context={"field": field, "value": str(value)[:100]},
        )
        self.field = field


class TagNotFoundError(WorkflowError):
    """The tag catalog has no tag with this name."""

    default_severity = Severity.LOW

    def __init__(self, name: str):
        super().__init__(f"Tag {name!r} is not in the catalog", context={"tag": name})
        self.name = name


__all__ = [
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
]
