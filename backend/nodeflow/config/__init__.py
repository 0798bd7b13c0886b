"""
Configuration — registered dataclass config groups.

Importing this package registers every built-in group so that
``get_config("comfy")`` / ``get_config("logging")`` resolve.
"""

from nodeflow.config.base import (
    BaseConfig,
    ConfigField,
    FieldType,
    get_config,
    get_config_class,
    list_configs,
    register_config,
    reset_configs,
)
from nodeflow.config.sub_config.general.comfy_config import ComfyConfig
from nodeflow.config.sub_config.general.logging_config import LoggingConfig

__all__ = [
    "BaseConfig",
    "ConfigField",
    "FieldType",
    "get_config",
    "get_config_class",
    "list_configs",
    "register_config",
    "reset_configs",
    "ComfyConfig",
    "LoggingConfig",
]
