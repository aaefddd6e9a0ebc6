"""Exceptions for stackup."""

from typing import Any

# ---------------------------------------------------------------------------
# Base Exception
# ---------------------------------------------------------------------------


class StackupError(Exception):
    """
    Base exception for all stackup errors.

    All exceptions raised by this library inherit from this class,
    allowing callers to catch all library-specific errors with a single
    except clause.
    """

    pass


# ---------------------------------------------------------------------------
# Lifecycle Exceptions
# ---------------------------------------------------------------------------


class NoSuchStack(StackupError):  # noqa: N818
    """Raised when the target stack does not exist."""

    def __init__(self, stack_name: str, message: str | None = None) -> None:
        self.stack_name = stack_name
        super().__init__(message or f"Stack {stack_name} does not exist")


class NoUpdateRequired(StackupError):  # noqa: N818
    """Raised when an update would not change anything."""

    def __init__(self, stack_name: str, message: str | None = None) -> None:
        self.stack_name = stack_name
        super().__init__(message or f"No updates are to be performed on {stack_name}")


class InvalidStateError(StackupError):
    """
    Raised when a transition is not valid from the stack's current status.

    For example, cancelling an update when no update is in progress.
    """

    def __init__(self, stack_name: str, message: str | None = None) -> None:
        self.stack_name = stack_name
        super().__init__(message or f"Stack {stack_name} is not in a valid state")


class StackUpdateError(StackupError):
    """
    Raised when a mutating operation finishes in a failure status.

    Attributes:
        operation: Operation that failed ("create", "update", "delete", "cancel")
        stack_name: Stack the operation ran against
        status: Terminal status reported by CloudFormation (None if gone)
    """

    def __init__(self, operation: str, stack_name: str, status: str | None) -> None:
        self.operation = operation
        self.stack_name = stack_name
        self.status = status
        super().__init__(f"Stack {stack_name} {operation} failed (status: {status or 'NONE'})")


class StackWaitTimeout(StackupError):  # noqa: N818
    """Raised when polling exceeds the configured timeout."""

    def __init__(self, stack_name: str, timeout: float, status: str | None) -> None:
        self.stack_name = stack_name
        self.timeout = timeout
        self.status = status
        super().__init__(
            f"Timed out after {timeout:g}s waiting for stack {stack_name} "
            f"(last status: {status or 'NONE'})"
        )


# ---------------------------------------------------------------------------
# Service Exceptions
# ---------------------------------------------------------------------------


class ServiceError(StackupError):
    """
    Raised for provider failures that stackup does not recognize.

    Attributes:
        code: Provider error code (e.g. "ValidationError"), if known
        message: Provider error message
    """

    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if code else message)


# ---------------------------------------------------------------------------
# Usage Exceptions
# ---------------------------------------------------------------------------


class UsageError(StackupError):
    """Raised when the caller asks for something that cannot be done."""

    pass


class ValidationError(StackupError):
    """
    Raised when a configuration value is invalid.

    Attributes:
        field: Name of the invalid field
        value: The rejected value
        reason: Why the value was rejected
    """

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")
