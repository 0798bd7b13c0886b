"""
Comfy Client — async HTTP access to the remote engine.

Wraps the engine endpoints this package consumes:

    list / fetch / save    — ``/api/userdata`` workflow files
    node catalog           — ``/api/object_info``
    submit / interrupt     — ``/prompt`` and ``/interrupt``

Every call returns an ``ApiResult``; transport and HTTP failures are
reported as ``ok=False`` results, never raised. Nothing is retried.
"""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from nodeflow.config import ComfyConfig, get_config
from nodeflow.workflow.errors import ApiResult, IssueKind, WorkflowParseError
from nodeflow.workflow.prompt_compiler import PromptCompiler
from nodeflow.workflow.workflow_model import WorkflowDocument, WorkflowFileInfo

logger = getLogger(__name__)


class ComfyClient:
    """Client for the remote engine's HTTP API.

    Usage::

        async with ComfyClient() as client:
            listing = await client.list_workflows()
            doc = await client.get_workflow("alpaca.json")
    """

    def __init__(
        self,
        config: Optional[ComfyConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._config: ComfyConfig = config or get_config("comfy")
        self._http = httpx.AsyncClient(
            base_url=self._config.api_base_url,
            timeout=self._config.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ComfyClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def client_id(self) -> str:
        return self._config.client_id

    # ========================================================================
    # Workflow files
    # ========================================================================

    async def list_workflows(self) -> ApiResult:
        """List saved workflow files (``WorkflowFileInfo`` items)."""
        result = await self._request(
            "GET",
            "/api/userdata",
            action="fetch workflows",
            params={
                "dir": self._config.workflows_dir,
                "recurse": "true",
                "split": "false",
                "full_info": "true",
            },
        )
        if not result.ok:
            return result

        if not isinstance(result.data, list):
            return ApiResult.failure("Invalid response format: expected an array", IssueKind.PARSE)
        try:
            files = [WorkflowFileInfo.model_validate(item) for item in result.data]
        except ValidationError:
            return ApiResult.failure("Invalid workflow file info structure", IssueKind.PARSE)
        return ApiResult.success(files)

    async def get_workflow(self, path: str) -> ApiResult:
        """Fetch and validate one workflow document by its file path."""
        if not path or not isinstance(path, str):
            return ApiResult.failure("Invalid path: path must be a non-empty string")

        result = await self._request(
            "GET", self._userdata_url(path), action="fetch workflow",
        )
        if not result.ok:
            return result
        try:
            return ApiResult.success(WorkflowDocument.parse(result.data))
        except WorkflowParseError as e:
            return ApiResult.failure(str(e), IssueKind.PARSE)

    async def get_all_workflows(self) -> ApiResult:
        """List files and fetch every document concurrently.

        Any single failure fails the whole call.
        """
        listing = await self.list_workflows()
        if not listing.ok:
            return listing

        files: List[WorkflowFileInfo] = listing.data
        fetched = await asyncio.gather(*(self.get_workflow(f.path) for f in files))

        workflows = []
        for info, doc in zip(files, fetched):
            if not doc.ok:
                return ApiResult.failure(
                    f"Failed to fetch workflow {info.path}: {doc.error}", doc.kind or IssueKind.NETWORK,
                )
            workflows.append({"file_info": info, "definition": doc.data})
        return ApiResult.success(workflows)

    async def save_workflow(self, path: str, document: WorkflowDocument) -> ApiResult:
        """Overwrite a workflow file with ``document``."""
        if not path or not isinstance(path, str):
            return ApiResult.failure("Invalid path: path must be a non-empty string")

        url = self._userdata_url(path)
        logger.info(f"Saving workflow {path} ({document.id}) to {url}")
        result = await self._request(
            "POST",
            url,
            action="save workflow",
            params={"overwrite": "true", "full_info": "true"},
            content=document.to_json(),
            headers={
                "Content-Type": "text/plain;charset=UTF-8",
                "Comfy-User": self._config.comfy_user,
            },
            expect_json=False,
        )
        if result.ok:
            logger.info(f"Workflow saved: {path}")
        return ApiResult(ok=result.ok, error=result.error, kind=result.kind)

    # ========================================================================
    # Node catalog
    # ========================================================================

    async def get_object_info(self) -> ApiResult:
        """Node type definitions keyed by node type."""
        result = await self._request("GET", "/api/object_info", action="fetch object info")
        if result.ok and not isinstance(result.data, dict):
            return ApiResult.failure("Invalid response format: expected an object", IssueKind.PARSE)
        return result

    # ========================================================================
    # Execution
    # ========================================================================

    async def queue_prompt(self, document: WorkflowDocument) -> ApiResult:
        """Submit a workflow for execution.

        On success ``data`` is ``{"prompt_id": ..., "number": ...}``.
        A prompt the engine rejects (HTTP 400 with node errors) fails the result.
        """
        payload = PromptCompiler(document).build_submission(self.client_id)
        result = await self._request(
            "POST", "/prompt", action="queue prompt", json=payload,
        )
        if not result.ok:
            return result

        body = result.data if isinstance(result.data, dict) else {}
        prompt_id = body.get("prompt_id")
        if not prompt_id:
            return ApiResult.failure("Invalid response format: missing prompt_id", IssueKind.PARSE)
        if body.get("node_errors"):
            logger.warning(f"Prompt {prompt_id} queued with node errors: {body['node_errors']}")

        logger.info(f"Prompt queued: {prompt_id} (workflow {document.id})")
        return ApiResult.success({"prompt_id": prompt_id, "number": body.get("number")})

    async def interrupt(self, prompt_id: Optional[str] = None) -> ApiResult:
        """Ask the engine to cancel the running prompt.

        Advisory only: execution state changes when the matching
        ``execution_interrupted`` event arrives.
        """
        payload: Dict[str, Any] = {"prompt_id": prompt_id} if prompt_id else {}
        logger.info(f"Requesting interrupt (prompt={prompt_id or 'current'})")
        result = await self._request(
            "POST", "/interrupt", action="interrupt", json=payload, expect_json=False,
        )
        return ApiResult(ok=result.ok, error=result.error, kind=result.kind)

    # ========================================================================
    # Internal helpers
    # ========================================================================

    def _userdata_url(self, path: str) -> str:
        full_path = f"{self._config.workflows_dir}/{path}"
        return f"/api/userdata/{quote(full_path, safe='')}"

    async def _request(
        self,
        method: str,
        url: str,
        action: str,
        expect_json: bool = True,
        **kwargs: Any,
    ) -> ApiResult:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Failed to {action}: {e}")
            return ApiResult.failure(str(e) or f"Failed to {action}")

        if response.is_error:
            detail = response.text.strip()
            message = f"Failed to {action}: {response.status_code} {response.reason_phrase}"
            if detail:
                message = f"{message} {detail}"
            logger.error(message)
            return ApiResult.failure(message)

        if not expect_json:
            return ApiResult.success(response.text)
        try:
            return ApiResult.success(response.json())
        except ValueError as e:
            logger.error(f"Failed to {action}: invalid JSON response ({e})")
            return ApiResult.failure(f"Invalid response format: {e}", IssueKind.PARSE)
