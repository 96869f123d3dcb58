from __future__ import annotations

from functools import lru_cache
import logging
from typing import Any, Dict, Optional

import httpx

from ..core.config import settings
from ..schemas.prompts import PromptPayload


UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"
INVALID_RESPONSE_MESSAGE = "Invalid response from server"


class BackendError(RuntimeError):
    """Raised when the prompt backend cannot satisfy a request.

    ``message`` is safe to show to the user as-is. ``status_code`` is None
    when no HTTP response was received.
    """

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


log = logging.getLogger("studio.integrations.backend")


def extract_error_message(body: Any, fallback: str) -> str:
    """Pick a readable message from an error body.

    Precedence: ``message``, then ``error.message``, then ``error`` when it is
    a string, then ``fallback``.
    """
    if not isinstance(body, dict):
        return fallback
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    error = body.get("error")
    if isinstance(error, dict):
        nested = error.get("message")
        if isinstance(nested, str) and nested.strip():
            return nested
    elif isinstance(error, str) and error.strip():
        return error
    return fallback


class BackendClient:
    """Synchronous JSON client for the prompt backend.

    One method per remote call the UI makes; no retries. The base URL is
    passed in by the caller.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_s: float = 30.0,
        verify_ssl: bool = True,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout_s, verify=verify_ssl, transport=transport)

    def _request(
        self,
        method: str,
        path: str,
        *,
        fallback: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {"Accept": "application/json"}
        if payload is not None:
            headers["Content-Type"] = "application/json"
        log.debug("%s %s", method, url)
        try:
            resp = self.client.request(method, url, headers=headers, json=payload)
        except httpx.HTTPError as exc:
            log.error("Prompt backend request failed for %s %s: %s", method, url, exc)
            raise BackendError(UNEXPECTED_ERROR_MESSAGE) from exc
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = extract_error_message(body, fallback)
            log.error(
                "Prompt backend returned %s for %s %s: %s", resp.status_code, method, url, resp.text
            )
            raise BackendError(message, status_code=resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            log.error("Prompt backend sent a non-JSON body for %s %s", method, url)
            raise BackendError(INVALID_RESPONSE_MESSAGE, status_code=resp.status_code) from exc

    # --- Settings & LLM systems -------------------------------------------------
    def list_settings(self) -> list[dict[str, Any]]:
        return self._request("GET", "/settings", fallback="Failed to fetch settings") or []

    def save_setting(self, setting: Dict[str, Any]) -> dict[str, Any]:
        data = self._request("POST", "/settings", payload=setting, fallback="Failed to save setting")
        if not isinstance(data, dict) or not data.get("key"):
            raise BackendError(INVALID_RESPONSE_MESSAGE)
        return data

    def list_llm_systems(self) -> list[dict[str, Any]]:
        return self._request("GET", "/llm-systems", fallback="Failed to fetch LLM systems") or []

    # --- Projects -------------------------------------------------------------
    def list_projects(self) -> list[dict[str, Any]]:
        return self._request("GET", "/projects", fallback="Failed to fetch projects") or []

    def get_project(self, project_id: int) -> dict[str, Any]:
        return self._request("GET", f"/projects/{project_id}", fallback="Failed to fetch project details")

    def create_project(self, project: Dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/projects", payload=project, fallback="Failed to create project")

    def update_project(self, project_id: int, project: Dict[str, Any]) -> dict[str, Any]:
        return self._request(
            "PUT", f"/projects/{project_id}", payload=project, fallback="Failed to update project"
        )

    def delete_project(self, project_id: int) -> None:
        self._request("DELETE", f"/projects/{project_id}", fallback="Failed to delete project")

    # --- Prompts --------------------------------------------------------------
    def list_project_prompts(self, project_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/prompts/project/{project_id}", fallback="Failed to fetch prompts") or []

    def create_prompt(self, payload: PromptPayload) -> dict[str, Any]:
        return self._request("POST", "/prompts", payload=payload.to_body(), fallback="Failed to create prompt")

    def update_prompt(self, prompt_id: int, payload: PromptPayload) -> dict[str, Any]:
        return self._request(
            "PUT", f"/prompts/{prompt_id}", payload=payload.to_body(), fallback="Failed to update prompt"
        )

    def delete_prompt(self, prompt_id: int) -> None:
        self._request("DELETE", f"/prompts/{prompt_id}", fallback="Failed to delete prompt")

    def list_prompt_versions(self, prompt_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/prompts/{prompt_id}/versions", fallback="Failed to fetch versions") or []

    # --- Runs -----------------------------------------------------------------
    def run_prompt(self, payload: Dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/runs", payload=payload, fallback="Failed to run prompt")

    def list_prompt_runs(self, prompt_id: int) -> list[dict[str, Any]]:
        return self._request("GET", f"/runs/{prompt_id}/list", fallback="Failed to fetch runs") or []

    def close(self) -> None:
        self.client.close()


@lru_cache
def get_backend_client() -> BackendClient:
    return BackendClient(
        base_url=settings.backend_url,
        timeout_s=settings.backend_timeout_s,
        verify_ssl=settings.backend_verify_ssl,
    )
