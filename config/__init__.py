"""
Configuration module.

Exports:
    settings: Application settings instance
    get_settings: Function to get settings (for dependency injection)
    STANDARD_TARGET_FIELDS: The fixed target field catalog
"""

from config.settings import settings, get_settings, Settings
from config.catalog import (
    STANDARD_TARGET_FIELDS,
    CATEGORY_TARGET,
    required_field_names,
)

__all__ = [
    # Settings
    "settings",
    "get_settings",
    "Settings",

    # Catalog
    "STANDARD_TARGET_FIELDS",
    "CATEGORY_TARGET",
    "required_field_names",
]
