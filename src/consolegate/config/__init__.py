"""Configuration management for consolegate.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides for deployment-specific
values like the listen address.
"""

from consolegate.config.settings import Settings, load_settings

__all__ = ["Settings", "load_settings"]
