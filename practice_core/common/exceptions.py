"""
Common Exception Classes

This module defines the exceptions raised inside the package. None of them
cross the public surface of the migration manager or the recommendation
engine; they are converted into structured results there.
"""

from typing import Optional, Any


class BaseError(Exception):
    """Base class for all custom exceptions."""

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception


class ValidationError(BaseError):
    """Exception raised for malformed or missing record fields."""

    def __init__(self, message: str, errors: Optional[dict] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of field name to problem description
        """
        super().__init__(f"Validation error: {message}")
        self.errors = errors or {}


class IntegrityError(BaseError):
    """Exception raised when a stored snapshot does not match its checksum."""

    def __init__(self, message: str, expected: Optional[str] = None, actual: Optional[str] = None):
        """
        Initialize the integrity error.

        Args:
            message: Error message
            expected: Checksum stored alongside the snapshot
            actual: Checksum recomputed from the snapshot
        """
        super().__init__(f"Integrity error: {message}")
        self.expected = expected
        self.actual = actual


class StorageError(BaseError):
    """Exception raised when a storage get/set/remove fails."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        original_exception: Optional[Exception] = None
    ):
        """
        Initialize the storage error.

        Args:
            message: Error message
            key: Storage key involved in the failed operation
            original_exception: Original backend exception
        """
        super().__init__(f"Storage error: {message}", original_exception)
        self.key = key


class ConfigurationError(BaseError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[Any] = None):
        """
        Initialize the configuration error.

        Args:
            message: Error message
            config_key: The configuration key that caused the error
        """
        super().__init__(f"Configuration error: {message}")
        self.config_key = config_key
