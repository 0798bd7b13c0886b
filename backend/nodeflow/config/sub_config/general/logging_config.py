"""
Logging Configuration.

Controls the level and line format of the ``nodeflow`` loggers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from nodeflow.config.base import BaseConfig, ConfigField, FieldType, register_config
from nodeflow.config.sub_config.general.env_utils import env_sync, read_env_defaults

LEVEL_OPTIONS = [
    {"value": "DEBUG", "label": "Debug"},
    {"value": "INFO", "label": "Info"},
    {"value": "WARNING", "label": "Warning"},
    {"value": "ERROR", "label": "Error"},
]

DEFAULT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


@register_config
@dataclass
class LoggingConfig(BaseConfig):
    """Log level and format."""

    log_level: str = "INFO"
    log_format: str = DEFAULT_FORMAT

    _ENV_MAP = {
        "log_level": "NODEFLOW_LOG_LEVEL",
        "log_format": "NODEFLOW_LOG_FORMAT",
    }

    @classmethod
    def get_default_instance(cls) -> "LoggingConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "logging"

    @classmethod
    def get_display_name(cls) -> str:
        return "Logging"

    @classmethod
    def get_description(cls) -> str:
        return "Log level and line format."

    @classmethod
    def get_icon(cls) -> str:
        return "logs"

    @classmethod
    def get_i18n(cls) -> Dict[str, Dict[str, Any]]:
        return {
            "ko": {
                "display_name": "로깅",
                "description": "로그 레벨 및 출력 형식.",
                "fields": {
                    "log_level": {"label": "로그 레벨"},
                    "log_format": {"label": "로그 형식"},
                },
            }
        }

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="log_level",
                field_type=FieldType.SELECT,
                label="Log Level",
                default="INFO",
                options=LEVEL_OPTIONS,
                apply_change=env_sync("NODEFLOW_LOG_LEVEL"),
            ),
            ConfigField(
                name="log_format",
                field_type=FieldType.STRING,
                label="Log Format",
                description="logging.Formatter format string",
                default=DEFAULT_FORMAT,
                apply_change=env_sync("NODEFLOW_LOG_FORMAT"),
            ),
        ]
