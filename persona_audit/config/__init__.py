"""
Configuration management for persona-audit.

Loads settings from environment variables (.env supported) and the JSON
pipeline config. Exposes a single source of truth for run configuration.
"""

from persona_audit.config.settings import (  # noqa: F401
    NotifierSettings,
    Settings,
    build_notifier,
    get_settings,
    load_pipeline_config,
    pipeline_config_from_dict,
)

__all__ = [
    "NotifierSettings",
    "Settings",
    "build_notifier",
    "get_settings",
    "load_pipeline_config",
    "pipeline_config_from_dict",
]
