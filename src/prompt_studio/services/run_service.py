from __future__ import annotations

import base64
import json
import logging
from typing import Any, Mapping

from ..integrations.backend_client import BackendClient
from ..schemas.prompts import PromptVersion
from ..schemas.runs import (
    PromptRunRequest,
    PromptRunResponse,
    RenderedOutput,
    RunComparisonResponse,
    RunComparisonSide,
    RunRecord,
    RunRequest,
    RunResponse,
)
from ..schemas.settings import LLMSystem


log = logging.getLogger("studio.services.runs")


class RunError(ValueError):
    """Raised when a run cannot be prepared from the user's selection."""


def available_models(version: PromptVersion, systems: list[LLMSystem]) -> list[str]:
    """Models offered for ``version``: multimodal defaults only when it takes an image."""
    models: list[str] = []
    for system in systems:
        if version.has_image_variable:
            candidates = [system.default_multimodal] if system.default_multimodal else []
        else:
            candidates = system.models()
        for model in candidates:
            if model not in models:
                models.append(model)
    return models


def default_model(version: PromptVersion, systems: list[LLMSystem]) -> str | None:
    default_system = next((system for system in systems if system.is_default), None)
    if default_system is None:
        return None
    if version.has_image_variable:
        return default_system.default_multimodal or None
    return default_system.default_model


def build_run_request(
    version: PromptVersion,
    inputs: Mapping[str, str | bytes],
    *,
    model: str,
    structured_output: bool = False,
    markdown_mode: bool = False,
) -> RunRequest:
    missing = [var.name for var in version.variables if var.required and var.name not in inputs]
    if missing:
        raise RunError(f"Missing value for variables: {', '.join(missing)}")
    input_variables: dict[str, str] = {}
    for var in version.variables:
        if var.name not in inputs:
            continue
        value = inputs[var.name]
        if isinstance(value, bytes):
            value = base64.b64encode(value).decode("ascii")
        input_variables[var.name] = value
    return RunRequest(
        prompt_id=version.prompt_id,
        project_id=version.project_id,
        input_variables=input_variables,
        model=model,
        structured_output=structured_output,
        markdown_mode=markdown_mode,
        version=None if version.is_current else version.version,
    )


def render_output(
    result: RunResponse | RunRecord,
    *,
    structured_output: bool,
    markdown_mode: bool = False,
    has_image: bool = False,
) -> RenderedOutput:
    """Shape a run output for display: parsed JSON, markdown or plain text."""
    if structured_output:
        if has_image:
            return RenderedOutput(kind="json", body=result.model_dump(mode="json"))
        try:
            return RenderedOutput(kind="json", body=json.loads(result.output))
        except ValueError:
            log.warning("Structured run output is not valid JSON; showing it as text.")
            return RenderedOutput(kind="text", body=result.output)
    return RenderedOutput(kind="markdown" if markdown_mode else "text", body=result.output)


def run_label(run: RunRecord) -> str:
    return f"Run {run.id} - V{run.version} ({run.created_at:%Y-%m-%d %H:%M:%S})"


class RunService:
    def __init__(self, client: BackendClient):
        self.client = client

    def list_versions(self, prompt_id: int) -> list[PromptVersion]:
        return [PromptVersion.model_validate(item) for item in self.client.list_prompt_versions(prompt_id)]

    def list_llm_systems(self) -> list[LLMSystem]:
        return [LLMSystem.model_validate(item) for item in self.client.list_llm_systems()]

    def list_runs(self, prompt_id: int) -> list[RunRecord]:
        return [RunRecord.model_validate(item) for item in self.client.list_prompt_runs(prompt_id)]

    def run(self, prompt_id: int, request: PromptRunRequest) -> PromptRunResponse:
        versions = self.list_versions(prompt_id)
        if not versions:
            raise RunError("No prompt version found")
        if request.version is None:
            version = versions[0]
        else:
            version = next((item for item in versions if item.version == request.version), None)
            if version is None:
                raise RunError("Version not found")
        model = request.model or default_model(version, self.list_llm_systems())
        if not model:
            raise RunError("No model selected and no default LLM system configured")

        run_request = build_run_request(
            version,
            request.inputs,
            model=model,
            structured_output=request.structured_output,
            markdown_mode=request.markdown_mode,
        )
        log.info(
            "Running prompt %s (version=%s, model=%s, structured=%s)",
            prompt_id,
            version.version,
            model,
            request.structured_output,
        )
        data: Any = self.client.run_prompt(run_request.model_dump(mode="json", exclude_none=True))
        result = RunResponse.model_validate(data)
        rendered = render_output(
            result,
            structured_output=request.structured_output,
            markdown_mode=request.markdown_mode,
            has_image=version.has_image_variable,
        )
        return PromptRunResponse(request=run_request, result=result, rendered=rendered)

    def compare(
        self,
        prompt_id: int,
        *,
        left_id: int | None = None,
        right_id: int | None = None,
    ) -> RunComparisonResponse:
        """Side-by-side view of two runs, defaulting to the two most recent."""
        runs = self.list_runs(prompt_id)
        labels = {run.id: run_label(run) for run in runs}
        if left_id is None and right_id is None and len(runs) >= 2:
            left_id, right_id = runs[0].id, runs[1].id
        by_id = {run.id: run for run in runs}
        for requested in (left_id, right_id):
            if requested is not None and requested not in by_id:
                raise RunError(f"Run not found: {requested}")
        return RunComparisonResponse(
            runs=runs,
            labels=labels,
            left=self._side(by_id[left_id]) if left_id is not None else None,
            right=self._side(by_id[right_id]) if right_id is not None else None,
        )

    def _side(self, run: RunRecord) -> RunComparisonSide:
        has_image = bool(run.run_metadata and run.run_metadata.has_images)
        return RunComparisonSide(
            run=run,
            label=run_label(run),
            rendered=render_output(run, structured_output=run.structured_output, has_image=has_image),
        )
