from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from ..integrations.backend_client import BackendError
from ..schemas.prompts import PromptPayload


log = logging.getLogger("studio.services.prompt_submission")


class PromptWriter(Protocol):
    def create_prompt(self, payload: PromptPayload) -> dict[str, Any]:  # pragma: no cover - interface
        ...

    def update_prompt(self, prompt_id: int, payload: PromptPayload) -> dict[str, Any]:  # pragma: no cover - interface
        ...


@dataclass(frozen=True)
class SubmissionResult:
    ok: bool
    record: dict[str, Any] | None = None
    error: str | None = None


class PromptSubmitter:
    """Sends a validated prompt payload to the backend.

    Creates when ``prompt_id`` is None, updates otherwise. Backend failures
    come back as a failed result carrying a displayable message.
    """

    def __init__(self, client: PromptWriter):
        self.client = client

    def submit(self, payload: PromptPayload, *, prompt_id: int | None = None) -> SubmissionResult:
        action = "create" if prompt_id is None else "update"
        try:
            if prompt_id is None:
                record = self.client.create_prompt(payload)
            else:
                record = self.client.update_prompt(prompt_id, payload)
        except BackendError as exc:
            log.warning(
                "Prompt %s failed (name=%s, status=%s): %s", action, payload.name, exc.status_code, exc.message
            )
            return SubmissionResult(ok=False, error=exc.message)
        log.info(
            "Prompt %sd (name=%s, project=%s, id=%s)",
            action,
            payload.name,
            payload.project_id,
            (record or {}).get("id") if isinstance(record, dict) else None,
        )
        return SubmissionResult(ok=True, record=record if isinstance(record, dict) else None)
