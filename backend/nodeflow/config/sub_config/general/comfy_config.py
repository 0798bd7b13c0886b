"""
Engine Connection Configuration.

Controls where the remote execution engine lives (HTTP API and event
WebSocket), request timeout, and the client identity used to route
execution events back to this process.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, List

from nodeflow.config.base import BaseConfig, ConfigField, FieldType, register_config
from nodeflow.config.sub_config.general.env_utils import env_sync, read_env_defaults

DEFAULT_BASE_URL = "http://localhost:8188"


@register_config
@dataclass
class ComfyConfig(BaseConfig):
    """Remote engine endpoints and client identity."""

    api_base_url: str = DEFAULT_BASE_URL
    ws_base_url: str = DEFAULT_BASE_URL
    request_timeout: float = 30.0
    client_id: str = ""
    comfy_user: str = ""
    workflows_dir: str = "workflows"

    _ENV_MAP = {
        "api_base_url": "COMFY_API_BASE_URL",
        "ws_base_url": "COMFY_WS_BASE_URL",
        "request_timeout": "COMFY_REQUEST_TIMEOUT",
        "client_id": "COMFY_CLIENT_ID",
        "comfy_user": "COMFY_USER",
        "workflows_dir": "COMFY_WORKFLOWS_DIR",
    }

    def __post_init__(self) -> None:
        self.api_base_url = (self.api_base_url or DEFAULT_BASE_URL).strip().rstrip("/")
        self.ws_base_url = (self.ws_base_url or DEFAULT_BASE_URL).strip().rstrip("/")
        if not self.client_id:
            self.client_id = uuid.uuid4().hex

    @property
    def ws_url(self) -> str:
        """Event stream URL, with the scheme switched to ws/wss."""
        base = self.ws_base_url
        if base.startswith("https://"):
            base = "wss://" + base[len("https://"):]
        elif base.startswith("http://"):
            base = "ws://" + base[len("http://"):]
        return f"{base}/ws?clientId={self.client_id}"

    @classmethod
    def get_default_instance(cls) -> "ComfyConfig":
        defaults = read_env_defaults(cls._ENV_MAP, cls.__dataclass_fields__)
        return cls(**defaults)

    @classmethod
    def get_config_name(cls) -> str:
        return "comfy"

    @classmethod
    def get_display_name(cls) -> str:
        return "Execution Engine"

    @classmethod
    def get_description(cls) -> str:
        return "Engine HTTP / WebSocket endpoints, timeout and client identity."

    @classmethod
    def get_category(cls) -> str:
        return "general"

    @classmethod
    def get_icon(cls) -> str:
        return "server"

    @classmethod
    def get_i18n(cls) -> Dict[str, Dict[str, Any]]:
        return {
            "ko": {
                "display_name": "실행 엔진",
                "description": "엔진 HTTP / WebSocket 주소, 타임아웃 및 클라이언트 ID.",
                "groups": {
                    "connection": "연결 설정",
                    "identity": "클라이언트",
                },
                "fields": {
                    "api_base_url": {
                        "label": "API 주소",
                        "description": "워크플로 조회·저장 및 실행 요청에 사용할 HTTP 주소",
                    },
                    "ws_base_url": {
                        "label": "WebSocket 주소",
                        "description": "실행 이벤트 스트림 주소",
                    },
                    "request_timeout": {
                        "label": "요청 타임아웃",
                        "description": "HTTP 요청 타임아웃 (초)",
                    },
                },
            }
        }

    @classmethod
    def get_fields_metadata(cls) -> List[ConfigField]:
        return [
            ConfigField(
                name="api_base_url",
                field_type=FieldType.URL,
                label="API Base URL",
                description="HTTP address used to fetch, save and queue workflows",
                default=DEFAULT_BASE_URL,
                required=True,
                placeholder=DEFAULT_BASE_URL,
                group="connection",
                apply_change=env_sync("COMFY_API_BASE_URL"),
            ),
            ConfigField(
                name="ws_base_url",
                field_type=FieldType.URL,
                label="WebSocket Base URL",
                description="Address of the execution event stream",
                default=DEFAULT_BASE_URL,
                placeholder=DEFAULT_BASE_URL,
                group="connection",
                apply_change=env_sync("COMFY_WS_BASE_URL"),
            ),
            ConfigField(
                name="request_timeout",
                field_type=FieldType.NUMBER,
                label="Request Timeout",
                description="HTTP request timeout in seconds",
                default=30.0,
                min_value=1,
                max_value=600,
                group="connection",
                apply_change=env_sync("COMFY_REQUEST_TIMEOUT"),
            ),
            ConfigField(
                name="client_id",
                field_type=FieldType.STRING,
                label="Client ID",
                description="Identity sent with submissions so events reach this client",
                group="identity",
            ),
            ConfigField(
                name="comfy_user",
                field_type=FieldType.STRING,
                label="User",
                description="Value of the Comfy-User header for userdata requests",
                group="identity",
                apply_change=env_sync("COMFY_USER"),
            ),
            ConfigField(
                name="workflows_dir",
                field_type=FieldType.STRING,
                label="Workflows Directory",
                description="Userdata directory holding saved workflows",
                default="workflows",
                group="connection",
                apply_change=env_sync("COMFY_WORKFLOWS_DIR"),
            ),
        ]
