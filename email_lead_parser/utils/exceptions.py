"""
Custom exceptions and error handling utilities for the lead parser.

Exceptions are raised inside components and converted into result objects at
the parser and batch boundaries, so callers of the public API only ever see
data.
"""
from typing import Optional, Dict, Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standardized error codes for different failure types."""

    # Configuration errors
    CONFIG_INVALID = "CONFIG_INVALID"

    # Raw message errors
    EMAIL_PARSE_FAILED = "EMAIL_PARSE_FAILED"
    EMAIL_EMPTY = "EMAIL_EMPTY"

    # Lead parsing errors
    NO_SUITABLE_PARSER = "NO_SUITABLE_PARSER"
    EXTRACTION_FAILED = "EXTRACTION_FAILED"

    # Monitoring errors
    METRICS_PUBLISH_FAILED = "METRICS_PUBLISH_FAILED"

    # System errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class LeadParserException(Exception):
    """Base exception for all lead parser errors."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause


class ConfigurationError(LeadParserException):
    """Raised when a configuration value is invalid."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIG_INVALID,
            cause=cause
        )


class EmailProcessingError(LeadParserException):
    """Raised when a raw message cannot be turned into an EmailMessage."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EMAIL_PARSE_FAILED,
        message_id: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            details={'message_id': message_id} if message_id else {},
            cause=cause
        )


class LeadParsingError(LeadParserException):
    """Raised when lead extraction fails."""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.EXTRACTION_FAILED,
        parser_name: Optional[str] = None,
        message_id: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        details = {}
        if parser_name:
            details['parser_name'] = parser_name
        if message_id:
            details['message_id'] = message_id

        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
            cause=cause
        )


class MetricsError(LeadParserException):
    """Raised when metrics cannot be published."""

    def __init__(
        self,
        message: str,
        namespace: Optional[str] = None,
        cause: Optional[Exception] = None
    ):
        super().__init__(
            message=message,
            error_code=ErrorCode.METRICS_PUBLISH_FAILED,
            details={'namespace': namespace} if namespace else {},
            cause=cause
        )


def handle_exception(
    exception: Exception,
    context: Optional[Dict[str, Any]] = None,
    default_error_code: ErrorCode = ErrorCode.UNKNOWN_ERROR
) -> LeadParserException:
    """
    Convert any exception to a LeadParserException with proper context.

    Args:
        exception: The original exception
        context: Additional context information
        default_error_code: Error code used when the exception is not one of ours

    Returns:
        LeadParserException: Wrapped exception with proper error code
    """
    if isinstance(exception, LeadParserException):
        return exception

    if default_error_code == ErrorCode.EXTRACTION_FAILED:
        context = context or {}
        return LeadParsingError(
            message=f"Extraction failed: {exception}",
            parser_name=context.get('parser_name'),
            message_id=context.get('message_id'),
            cause=exception
        )

    return LeadParserException(
        message=f"Unexpected error: {exception}",
        error_code=default_error_code,
        details=context or {},
        cause=exception
    )
