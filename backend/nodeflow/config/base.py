"""
Config Base — dataclass configuration objects with field metadata.

Every configuration group is a ``@dataclass`` subclass of ``BaseConfig``
registered with ``@register_config``. Defaults come from environment
variables listed in the class's ``_ENV_MAP``; field metadata describes
each value for settings UIs.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from logging import getLogger
from typing import Any, Callable, Dict, List, Optional, Type, TypeVar

logger = getLogger(__name__)


class FieldType(str, Enum):
    STRING = "string"
    PASSWORD = "password"
    NUMBER = "number"
    BOOLEAN = "boolean"
    SELECT = "select"
    URL = "url"


@dataclass
class ConfigField:
    """Metadata for a single configuration value."""
    name: str
    field_type: FieldType
    label: str
    description: str = ""
    default: Any = None
    required: bool = False
    placeholder: str = ""
    group: str = "general"
    secure: bool = False
    options: List[Dict[str, Any]] = field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    apply_change: Optional[Callable[[Any, Any], None]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for the frontend."""
        return {
            "name": self.name,
            "type": self.field_type.value,
            "label": self.label,
            "description": self.description,
            "default": self.default,
            "required": self.required,
            "placeholder": self.placeholder,
            "group": self.group,
            "secure": self.secure,
            "options": self.options,
            "min": self.min_value,
            "max": self.max_value,
        }


@dataclass
class BaseConfig:
    """Base class for a registered configuration group."""

    @classmethod
    def get_default_instance(cls) -> "BaseConfig":
        return cls()

    @classmethod
    def get_config_name(cls) -> str:
        raise NotImplementedError

    @classmethod
    def get_display_name(cls) -> str:
        return cls.get_config_name()

    @classmethod
    def get_description(cls) -> str:
        return ""

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_icon(cls) -> str:
        return "settings"

    @classmethod
    def get_i18n(cls) -> Dict[str, Dict[str, Any]]:
        return {}

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return []

    def to_dict(self, include_secure: bool = False) -> Dict[str, Any]:
        """Field values; secure fields are masked unless requested."""
        data = asdict(self)
        if not include_secure:
            for meta in self.get_fields_metadata():
                if meta.secure and data.get(meta.name):
                    data[meta.name] = "********"
        return data

    def update(self, **changes: Any) -> None:
        """Set values and fire each field's ``apply_change`` hook."""
        metadata = {m.name: m for m in self.get_fields_metadata()}
        for name, value in changes.items():
            if name not in self.__dataclass_fields__:
                raise KeyError(f"Unknown config field '{name}' for {self.get_config_name()}")
            old = getattr(self, name)
            setattr(self, name, value)
            meta = metadata.get(name)
            if meta and meta.apply_change and old != value:
                meta.apply_change(old, value)


# ── Registry ──

C = TypeVar("C", bound=Type[BaseConfig])

_registry: Dict[str, Type[BaseConfig]] = {}
_instances: Dict[str, BaseConfig] = {}


def register_config(cls: C) -> C:
    """Class decorator: make a config group discoverable by name."""
    name = cls.get_config_name()
    if name in _registry and _registry[name] is not cls:
        logger.warning(f"Config '{name}' re-registered by {cls.__name__}")
    _registry[name] = cls
    return cls


def get_config_class(name: str) -> Optional[Type[BaseConfig]]:
    return _registry.get(name)


def get_config(name: str) -> BaseConfig:
    """Return the process-wide instance of a config group.

    Raises:
        KeyError: If no config group of that name is registered.
    """
    if name not in _instances:
        cls = get_config_class(name)
        if cls is None:
            raise KeyError(f"Unknown config '{name}'")
        _instances[name] = cls.get_default_instance()
    return _instances[name]


def list_configs() -> List[Type[BaseConfig]]:
    return list(_registry.values())


def reset_configs() -> None:
    """Drop cached instances so the next ``get_config`` re-reads the env."""
    _instances.clear()
