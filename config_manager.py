"""
Centralized configuration manager to avoid multiple Config instances.

Only configuration is shared process-wide; listing state always belongs to an
AdminSession.
"""
from typing import Optional

from core.config import Config

# Global config instance - loaded once
_config_instance: Optional[Config] = None


def get_config(config_file_path: Optional[str] = None) -> Config:
    """Get the global config instance, creating it only once."""
    global _config_instance
    if _config_instance is None:
        if config_file_path:
            _config_instance = Config(config_file_path=config_file_path)
        else:
            _config_instance = Config()
    return _config_instance


def refresh_config(config_file_path: Optional[str] = None) -> Config:
    """Force a refresh of the global config instance."""
    global _config_instance
    _config_instance = None
    return get_config(config_file_path)
