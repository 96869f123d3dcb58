from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.templates import extract_variables


VariableType = Literal["string", "image"]

NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_.\-]*$"
DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
IMAGE_EXCLUSIVE_MESSAGE = "Image type can only be used with a single variable"


class PromptVariable(BaseModel):
    name: str
    type: VariableType = "string"
    description: str = ""
    required: bool = True
    default: str | None = None
    example: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, v: Any) -> Any:
        # Records written by older clients use "IMAGE"/"STRING"
        if isinstance(v, str):
            return v.strip().lower()
        return v


class Prompt(BaseModel):
    id: int
    name: str
    description: str | None = None
    content: str = ""
    project_id: int | None = None
    variables: list[PromptVariable] = Field(default_factory=list)
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    status: str = "draft"
    output_schema: Any = None
    has_structured_output: bool | None = None
    version_count: int | None = None
    current_version: int | None = None

    @property
    def structured(self) -> bool:
        if self.has_structured_output is not None:
            return self.has_structured_output
        return self.output_schema is not None


class PromptVersion(BaseModel):
    version: str
    content: str
    variables: list[PromptVariable] = Field(default_factory=list)
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    created_at: datetime | None = None
    prompt_id: int
    prompt_name: str | None = None
    prompt_description: str | None = None
    project_id: int
    output_schema: Any = None
    is_current: bool = False

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_text(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @property
    def has_image_variable(self) -> bool:
        return any(var.type == "image" for var in self.variables)


@dataclass
class PromptDraft:
    """Mutable prompt being authored in a wizard; never sent as-is."""

    name: str = ""
    description: str = ""
    content: str = ""
    variables: list[PromptVariable] = field(default_factory=list)
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: float = DEFAULT_TEMPERATURE
    has_structured_output: bool = False
    output_schema: Any = None
    status: str = "draft"

    @classmethod
    def from_prompt(cls, prompt: Prompt) -> "PromptDraft":
        return cls(
            name=prompt.name,
            description=prompt.description or "",
            content=prompt.content,
            variables=[var.model_copy() for var in prompt.variables],
            max_tokens=prompt.max_tokens,
            temperature=prompt.temperature,
            has_structured_output=prompt.structured,
            output_schema=prompt.output_schema,
            status=prompt.status,
        )


class PromptPayload(BaseModel):
    """Create/update body for ``/prompts``; enforces the submit-time invariants.

    Content only has to be non-empty here: short templates such as
    ``Hi {user}`` are accepted and the backend applies its own minimum.
    """

    name: str = Field(..., min_length=3, max_length=100, pattern=NAME_PATTERN)
    description: str | None = Field(None, max_length=500)
    content: str = Field(..., min_length=1, max_length=10000)
    project_id: int
    variables: list[PromptVariable] = Field(default_factory=list)
    max_tokens: int = Field(DEFAULT_MAX_TOKENS, ge=1, le=8000)
    temperature: float = Field(DEFAULT_TEMPERATURE, ge=0.0, le=1.0)
    status: str = "draft"
    has_structured_output: bool = False
    output_schema: Any = None

    @model_validator(mode="after")
    def _check_variables(self) -> "PromptPayload":
        placeholders = extract_variables(self.content)
        names = [var.name for var in self.variables]
        if any(var.type == "image" for var in self.variables) and (len(names) > 1 or len(placeholders) > 1):
            raise ValueError(IMAGE_EXCLUSIVE_MESSAGE)
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate variables: {', '.join(duplicates)}")
        missing = [name for name in placeholders if name not in names]
        if missing:
            raise ValueError(f"Missing configuration for variables: {', '.join(missing)}")
        unknown = [name for name in names if name not in placeholders]
        if unknown:
            raise ValueError(f"Variables not found in content: {', '.join(unknown)}")
        if self.has_structured_output and self.output_schema is None:
            raise ValueError("An output schema is required for structured output")
        return self

    @classmethod
    def from_draft(cls, draft: PromptDraft, *, project_id: int) -> "PromptPayload":
        return cls(
            name=draft.name,
            description=draft.description or None,
            content=draft.content,
            project_id=project_id,
            variables=list(draft.variables),
            max_tokens=draft.max_tokens,
            temperature=draft.temperature,
            status=draft.status,
            has_structured_output=draft.has_structured_output,
            output_schema=draft.output_schema if draft.has_structured_output else None,
        )

    def to_body(self) -> dict[str, Any]:
        body = self.model_dump(mode="json", exclude={"variables"})
        body["variables"] = [var.model_dump(mode="json", exclude_none=True) for var in self.variables]
        return body
