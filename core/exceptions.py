"""
Custom exceptions for the Catalog Admin Console.

This module defines application-specific exceptions that provide
clear error messages and context for different types of failures.
"""

from typing import Optional, Any


class AdminConsoleError(Exception):
    """Base exception for all Catalog Admin Console errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class ConfigurationError(AdminConsoleError):
    """Raised when there are issues with configuration loading or validation."""

    def __init__(self, message: str, config_file: Optional[str] = None, field: Optional[str] = None):
        context = {}
        if config_file:
            context['config_file'] = config_file
        if field:
            context['field'] = field
        super().__init__(message, context)


class ValidationError(AdminConsoleError):
    """Raised when a listing intent carries malformed input."""

    def __init__(self, message: str, field: Optional[str] = None, value: Optional[Any] = None):
        context = {}
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = str(value)
        super().__init__(message, context)


class TransportError(AdminConsoleError):
    """
    Raised when the backend cannot be reached or answers with a failure.

    This is the only error kind surfaced by resource fetches and mutations.
    Client and server errors are not distinguished here; the status code is
    recorded for display only.
    """

    def __init__(self, message: str, operation: Optional[str] = None,
                 url: Optional[str] = None, status_code: Optional[int] = None):
        context = {}
        if operation:
            context['operation'] = operation
        if url:
            context['url'] = url
        if status_code is not None:
            context['status_code'] = status_code
        super().__init__(message, context)
        self.operation = operation
        self.url = url
        self.status_code = status_code
