"""
Configuration management for the Catalog Admin Console.

This module provides a split configuration system that separates concerns
into focused configuration classes loaded from a single TOML file.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

import toml

from .exceptions import ConfigurationError

API_BASE_URL_ENV = 'ADMIN_API_BASE_URL'


@dataclass
class ApiConfig:
    """Configuration for the backend the admin console talks to."""

    base_url: str = 'http://localhost:8000'
    timeout_seconds: float = 10.0

    def validate(self) -> List[str]:
        """Validate the API configuration and return any errors."""
        errors = []

        if not self.base_url:
            errors.append("base_url cannot be empty")
        elif not self.base_url.startswith(('http://', 'https://')):
            errors.append("base_url must start with http:// or https://")

        if self.timeout_seconds <= 0:
            errors.append("timeout_seconds must be positive")

        return errors


@dataclass
class ListingConfig:
    """Configuration for the product listing."""

    page_size: int = 10
    reset_page_on_filter_change: bool = True

    # Category names offered as one-click shortcuts in the filter panel
    quick_filter_categories: List[str] = field(default_factory=lambda: [
        'Totes', 'Backpacks', 'Travel Bags', 'Hip Bags', 'Laptop Sleeves'
    ])

    def validate(self) -> List[str]:
        """Validate the listing configuration and return any errors."""
        errors = []

        if self.page_size <= 0:
            errors.append("page_size must be positive")

        if len(set(name.lower() for name in self.quick_filter_categories)) != len(self.quick_filter_categories):
            errors.append("quick_filter_categories must not contain duplicates")

        return errors


@dataclass
class LoggingConfig:
    """Configuration for log output."""

    level: str = 'INFO'
    log_file: Optional[str] = None
    log_dir: str = 'logs'

    def validate(self) -> List[str]:
        """Validate the logging configuration and return any errors."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if self.level.upper() not in valid_levels:
            return [f"level must be one of {valid_levels}"]
        return []


@dataclass
class Config:
    """Main configuration class that combines all configuration sections."""

    config_file_path: str = "config.toml"

    api: ApiConfig = field(default_factory=ApiConfig)
    listing: ListingConfig = field(default_factory=ListingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """Load configuration when an instance is created."""
        self.load_config()
        self._apply_environment()

    def save_config(self) -> None:
        """Save current configuration to TOML file."""
        config_data = {
            'api': {
                'base_url': self.api.base_url,
                'timeout_seconds': self.api.timeout_seconds,
            },
            'listing': {
                'page_size': self.listing.page_size,
                'reset_page_on_filter_change': self.listing.reset_page_on_filter_change,
                'quick_filter_categories': list(self.listing.quick_filter_categories),
            },
            'logging': {
                'level': self.logging.level,
                'log_dir': self.logging.log_dir,
            },
        }
        # TOML has no null; an unset log file is simply left out
        if self.logging.log_file:
            config_data['logging']['log_file'] = self.logging.log_file

        try:
            with open(self.config_file_path, 'w') as f:
                toml.dump(config_data, f)
            logging.info(f"Configuration saved to {self.config_file_path}")
        except Exception as e:
            error_msg = f"Error saving configuration: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

    def load_config(self) -> None:
        """Load configuration from TOML file."""
        try:
            with open(self.config_file_path) as f:
                config_data = toml.load(f)

            if 'api' in config_data:
                api_config = config_data['api']
                self.api.base_url = api_config.get('base_url', self.api.base_url)
                self.api.timeout_seconds = float(api_config.get('timeout_seconds', self.api.timeout_seconds))

            if 'listing' in config_data:
                listing_config = config_data['listing']
                self.listing.page_size = int(listing_config.get('page_size', self.listing.page_size))
                self.listing.reset_page_on_filter_change = listing_config.get(
                    'reset_page_on_filter_change', self.listing.reset_page_on_filter_change
                )
                self.listing.quick_filter_categories = list(
                    listing_config.get('quick_filter_categories', self.listing.quick_filter_categories)
                )

            if 'logging' in config_data:
                logging_config = config_data['logging']
                self.logging.level = logging_config.get('level', self.logging.level)
                self.logging.log_file = logging_config.get('log_file', self.logging.log_file)
                self.logging.log_dir = logging_config.get('log_dir', self.logging.log_dir)

            logging.info(f"Configuration loaded from {self.config_file_path}")

        except FileNotFoundError:
            logging.info(f"{self.config_file_path} not found. Creating with default values.")
            self.save_config()
        except toml.TomlDecodeError as e:
            error_msg = f"Error decoding {self.config_file_path}: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)
        except (TypeError, ValueError) as e:
            error_msg = f"Invalid value in {self.config_file_path}: {e}"
            logging.error(error_msg)
            raise ConfigurationError(error_msg, config_file=self.config_file_path)

        errors = self.validate()
        if errors:
            raise ConfigurationError(
                f"Invalid configuration: {'; '.join(errors)}",
                config_file=self.config_file_path
            )

    def _apply_environment(self) -> None:
        """Environment overrides win over the file and are never saved back."""
        base_url = os.environ.get(API_BASE_URL_ENV)
        if base_url:
            self.api.base_url = base_url
            logging.debug(f"API base URL taken from {API_BASE_URL_ENV}")

    def validate(self) -> List[str]:
        """Validate all configuration sections and return any errors."""
        errors = []
        errors.extend(self.api.validate())
        errors.extend(self.listing.validate())
        errors.extend(self.logging.validate())
        return errors
