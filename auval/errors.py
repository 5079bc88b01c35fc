"""
Error types and error codes for the auval policy engine.
Provides structured error handling across all packages.
"""

from enum import Enum
from typing import Dict, Any, Optional


class ErrorCode(str, Enum):
    """Standard error codes used across auval."""
    INVALID_DEFINITION = "invalid_definition"
    FETCH_FAILED = "fetch_failed"
    INVALID_RESULT = "invalid_result"
    CONFIGURATION_ERROR = "configuration_error"
    INTERNAL_ERROR = "internal_error"

    def __str__(self) -> str:
        return self.value


# Error code constants for easy import
INVALID_DEFINITION = ErrorCode.INVALID_DEFINITION
FETCH_FAILED = ErrorCode.FETCH_FAILED
INVALID_RESULT = ErrorCode.INVALID_RESULT
CONFIGURATION_ERROR = ErrorCode.CONFIGURATION_ERROR
INTERNAL_ERROR = ErrorCode.INTERNAL_ERROR


class AuvalError(Exception):
    """Base exception for all auval errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            'error': self.error_code.value,
            'message': self.message,
            'details': self.details
        }

        if self.cause:
            result['cause'] = str(self.cause)

        return result

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"


class PolicyDefinitionError(AuvalError):
    """Raised when a rule, fetcher or catalog is malformed at construction time."""

    def __init__(
        self,
        message: str,
        definition_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, INVALID_DEFINITION, details)
        self.definition_id = definition_id

        if definition_id:
            self.details['definition_id'] = definition_id


class FetchError(AuvalError):
    """
    Raised when a fetcher fails while building the authorization context.

    No rule is evaluated once a fetch has failed.
    """

    def __init__(
        self,
        message: str,
        fetcher_id: Optional[str] = None,
        attribute: Optional[str] = None,
        reason: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message, FETCH_FAILED, details, cause)
        self.fetcher_id = fetcher_id
        self.attribute = attribute
        self.reason = reason

        if fetcher_id:
            self.details['fetcher_id'] = fetcher_id
        if attribute:
            self.details['attribute'] = attribute
        if reason is not None:
            self.details['reason'] = str(reason)


class InvalidResultError(AuvalError):
    """Raised when a rule or fetcher body returns a value of an unsupported shape."""

    def __init__(
        self,
        message: str,
        definition_id: Optional[str] = None,
        value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, INVALID_RESULT, details)
        self.definition_id = definition_id
        self.value = value

        if definition_id:
            self.details['definition_id'] = definition_id
        if value is not None:
            self.details['value'] = repr(value)


class ConfigurationError(AuvalError):
    """Raised when there's a configuration error."""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, CONFIGURATION_ERROR, details)
        self.config_key = config_key
        self.config_value = config_value

        if config_key:
            self.details['config_key'] = config_key
        if config_value is not None:
            self.details['config_value'] = str(config_value)
