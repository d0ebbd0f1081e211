"""
Core infrastructure module for the Catalog Admin Console.

This module provides the foundational components including configuration management,
logging setup, and custom exceptions.
"""

from .config import ApiConfig, ListingConfig, LoggingConfig, Config
from .exceptions import AdminConsoleError, ConfigurationError, TransportError, ValidationError
from .logging_config import setup_logging, setup_logging_from_config

__all__ = [
    # Configuration
    'ApiConfig',
    'ListingConfig',
    'LoggingConfig',
    'Config',

    # Exceptions
    'AdminConsoleError',
    'ConfigurationError',
    'TransportError',
    'ValidationError',

    # Logging
    'setup_logging',
    'setup_logging_from_config',
]

# Version info
__version__ = "1.0.0"
