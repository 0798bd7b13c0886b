"""
Log setup — attach one stream handler to the ``nodeflow`` logger tree.

Modules log through ``getLogger(__name__)``; this only decides where
those records go and at what level.
"""

from __future__ import annotations

import logging
from typing import Optional

from nodeflow.config import LoggingConfig, get_config

_ROOT_LOGGER = "nodeflow"
_HANDLER_NAME = "nodeflow-stream"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Configure the ``nodeflow`` logger.

    ``level`` overrides ``LoggingConfig.log_level``. Calling this more
    than once replaces the handler instead of stacking a second one.
    """
    config: LoggingConfig = get_config("logging")
    resolved = (level or config.log_level or "INFO").upper()

    root = logging.getLogger(_ROOT_LOGGER)
    root.setLevel(resolved)

    for handler in list(root.handlers):
        if handler.get_name() == _HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(config.log_format))
    root.addHandler(handler)

    root.debug(f"Logging configured at {resolved}")
    return root
