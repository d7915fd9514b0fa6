"""
Configuration access for Nova.

The process-wide configuration is loaded once from config/config.yaml
(or CONFIG_PATH) with environment variable interpolation.
"""

from .config_loader import load_app_config, reset_config_cache
from .models import AppConfig


def get_config(reload: bool = False) -> AppConfig:
    """Get the application configuration."""
    return load_app_config(reload=reload)


# Global config instance
config = get_config()

__all__ = ["config", "get_config", "reset_config_cache"]
