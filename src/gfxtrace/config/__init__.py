"""Configuration management for gfxtrace.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides.
"""

from gfxtrace.config.settings import Settings, TraceDefaults, load_settings, save_defaults

__all__ = ["Settings", "TraceDefaults", "load_settings", "save_defaults"]
