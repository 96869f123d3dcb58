from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class RunMetadata(BaseModel):
    structured_output: bool = False
    has_images: bool = False
    timestamp: datetime | None = None


class RunRequest(BaseModel):
    prompt_id: int
    project_id: int
    input_variables: dict[str, str] = Field(default_factory=dict)
    model: str = Field(..., min_length=1)
    structured_output: bool = False
    markdown_mode: bool = False
    version: str | None = None


class RunResponse(BaseModel):
    output: str
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None
    latency_ms: float | None = None
    structured_output: bool | None = None
    run_metadata: RunMetadata | None = None


class RunRecord(BaseModel):
    id: int
    prompt_id: int
    project_id: int
    input_variables: dict[str, str] = Field(default_factory=dict)
    model: str
    structured_output: bool = False
    version: int
    output: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    latency_ms: float = 0
    run_metadata: RunMetadata | None = None
    created_at: datetime
    updated_at: datetime | None = None


class RenderedOutput(BaseModel):
    kind: Literal["json", "markdown", "text"]
    body: Any


class PromptRunRequest(BaseModel):
    """Run request as sent by the run page; model and version are optional."""

    inputs: dict[str, str] = Field(default_factory=dict)
    version: str | None = None
    model: str | None = None
    structured_output: bool = False
    markdown_mode: bool = False


class PromptRunResponse(BaseModel):
    request: RunRequest
    result: RunResponse
    rendered: RenderedOutput


class RunComparisonSide(BaseModel):
    run: RunRecord
    label: str
    rendered: RenderedOutput


class RunComparisonResponse(BaseModel):
    runs: list[RunRecord]
    labels: dict[int, str] = Field(default_factory=dict)
    left: RunComparisonSide | None = None
    right: RunComparisonSide | None = None
