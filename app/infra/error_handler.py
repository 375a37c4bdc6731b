"""Error types for provider, tool and model failures."""

from typing import Optional, Tuple
from enum import Enum


class ErrorCategory(str, Enum):
    """Categories of errors for better handling."""
    NETWORK = "network"  # Connection issues, timeouts
    API_ERROR = "api_error"  # Remote service returned an error response
    AUTH_ERROR = "auth_error"  # Authentication/authorization failures
    VALIDATION = "validation"  # Tool argument validation errors
    CONFIGURATION = "configuration"  # Missing keys or endpoints
    UNKNOWN = "unknown"  # Unknown errors


class ChatError(Exception):
    """Base exception for chat pipeline errors."""
    def __init__(self, message: str, category: ErrorCategory):
        self.message = message
        self.category = category
        super().__init__(message)


class ProviderConnectionError(ChatError):
    """A tool provider could not be reached during the handshake."""
    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message, ErrorCategory.NETWORK)


class ToolValidationError(ChatError):
    """Tool arguments rejected before any remote call is issued."""
    def __init__(self, message: str, tool_name: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(message, ErrorCategory.VALIDATION)


class TransportFormatError(ChatError):
    """Remote response body could not be parsed as JSON."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, ErrorCategory.API_ERROR)


class ToolOperationError(ChatError):
    """Remote tool operation reported a failure."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message, ErrorCategory.API_ERROR)


class ModelAPIError(ChatError):
    """Hosted model rejected or failed the completion request."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        category = ErrorCategory.AUTH_ERROR if status_code in (401, 403) else ErrorCategory.API_ERROR
        super().__init__(message, category)


class ConfigurationError(ChatError):
    """Required configuration is missing."""
    def __init__(self, message: str):
        super().__init__(message, ErrorCategory.CONFIGURATION)


def classify_error(error: Exception) -> Tuple[ErrorCategory, Optional[int]]:
    """
    Classify an error into a category for logs and metrics.

    Args:
        error: The exception to classify

    Returns:
        Tuple of (category, status_code if known)
    """
    if isinstance(error, ChatError):
        return error.category, getattr(error, "status_code", None)

    error_str = str(error).lower()
    error_type = type(error).__name__

    # Network errors
    if any(keyword in error_str for keyword in ['connection', 'timeout', 'network', 'dns', 'refused']):
        return ErrorCategory.NETWORK, None

    if error_type in ['ConnectError', 'ConnectionError', 'TimeoutError', 'ReadTimeout']:
        return ErrorCategory.NETWORK, None

    # Auth errors
    if any(keyword in error_str for keyword in ['unauthorized', 'forbidden', '401', '403']):
        return ErrorCategory.AUTH_ERROR, None

    return ErrorCategory.UNKNOWN, None


def describe_error(error: Exception) -> str:
    """Human readable message for an exception, used in-band."""
    if isinstance(error, ChatError):
        return error.message
    return str(error) or type(error).__name__
