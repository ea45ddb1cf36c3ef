"""
StarRecord Exceptions

Hard failures raised by the model layer. Soft failures (validation,
uniqueness, permissions) never raise; they are collected on the model's
error stack and signalled with a ``False`` return value.
"""

from typing import Any, Callable, Optional


class StarRecordError(Exception):
    """Base exception for all StarRecord errors"""
    pass


class InvalidOperationError(StarRecordError):
    """Raised when an operation is called in the wrong persistence state,
    i.e. ``create()`` on a persisted model or ``delete()`` on a new one."""
    pass


class UnknownPropertyError(StarRecordError, AttributeError):
    """Raised when reading a property that is neither declared nor
    backed by an accessor"""
    pass


class MassAssignmentError(StarRecordError):
    """Raised when mass assigning a protected or non-permitted property"""
    pass


class NotFoundError(StarRecordError):
    """Raised when a requested model could not be found"""
    pass


class DriverMissingError(StarRecordError):
    """Raised when a storage driver is needed but has not been set"""
    pass


class DriverError(StarRecordError):
    """
    Wraps any exception raised inside a storage driver.

    The original exception is available both as ``original`` and through
    the standard ``__cause__`` chain.
    """

    def __init__(self, message: str, original: Optional[BaseException] = None):
        super().__init__(message)
        self.original = original


def call_driver(operation: str, model_name: str, method: Callable, *args) -> Any:
    """Call a storage driver method, wrapping anything it raises in a DriverError"""
    try:
        return method(*args)
    except DriverError:
        raise
    except Exception as e:
        raise DriverError(f"{operation} failed for {model_name}: {e}", e) from e


__all__ = [
    "StarRecordError", "InvalidOperationError", "UnknownPropertyError",
    "MassAssignmentError", "NotFoundError", "DriverMissingError", "DriverError",
    "call_driver"
]
