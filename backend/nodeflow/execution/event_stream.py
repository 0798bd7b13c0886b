"""
Event Stream — the engine's WebSocket event channel.

Yields raw text frames; binary preview frames are skipped. Reconnecting
after a drop is left to the caller, and the monitor snapshot is stale
until the next ``status`` / ``execution_start`` arrives.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import Any, AsyncIterator, Optional

import websockets

from nodeflow.config import ComfyConfig, get_config

logger = getLogger(__name__)


class ComfyEventStream:
    """Async iterator over one WebSocket connection to the engine.

    Usage::

        stream = ComfyEventStream()
        async with stream.connect():
            async for frame in stream:
                monitor.apply(frame)
    """

    def __init__(self, config: Optional[ComfyConfig] = None, client_id: Optional[str] = None) -> None:
        self._config: ComfyConfig = config or get_config("comfy")
        self._client_id = client_id
        self._connection: Optional[Any] = None

    @property
    def url(self) -> str:
        url = self._config.ws_url
        if self._client_id:
            url = url.rsplit("clientId=", 1)[0] + f"clientId={self._client_id}"
        return url

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @asynccontextmanager
    async def connect(self) -> AsyncIterator["ComfyEventStream"]:
        url = self.url
        logger.info(f"Connecting to event stream: {url}")
        async with websockets.connect(url, max_size=None) as connection:
            self._connection = connection
            try:
                yield self
            finally:
                self._connection = None
                logger.info(f"Event stream closed: {url}")

    def __aiter__(self) -> AsyncIterator[str]:
        return self._frames()

    async def _frames(self) -> AsyncIterator[str]:
        if self._connection is None:
            raise RuntimeError("Event stream is not connected; use 'async with stream.connect()'")
        async for message in self._connection:
            if isinstance(message, (bytes, bytearray)):
                continue
            yield message
