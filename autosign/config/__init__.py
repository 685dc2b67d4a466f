"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: FileConfigProvider, ConfigProvider, merge_layers(), generate_default_config()
Hidden: Config file discovery, file format, defaults

Validators only see the section named after them.
"""

from .provider import (
    DEFAULT_VALIDATION_ORDER,
    ConfigProvider,
    FileConfigProvider,
    GeneralConfig,
    deep_merge,
    generate_default_config,
    merge_layers,
    overrides_from_env,
)

__all__ = [
    "DEFAULT_VALIDATION_ORDER",
    "ConfigProvider",
    "FileConfigProvider",
    "GeneralConfig",
    "deep_merge",
    "generate_default_config",
    "merge_layers",
    "overrides_from_env",
]
