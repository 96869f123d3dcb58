from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .prompts import Prompt, PromptVariable, VariableType


class WizardOpenRequest(BaseModel):
    project_id: int
    # Existing prompt record for edit mode; omitted in create mode
    seed: Prompt | None = None


class WizardDraftUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str | None = None
    description: str | None = None
    content: str | None = None
    max_tokens: int | None = Field(None, ge=1, le=8000)
    temperature: float | None = Field(None, ge=0.0, le=1.0)
    has_structured_output: bool | None = None
    schema_text: str | None = None


class VariableUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")
    description: str | None = None
    type: VariableType | None = None


class DraftView(BaseModel):
    name: str
    description: str
    content: str
    variables: list[PromptVariable]
    max_tokens: int
    temperature: float
    has_structured_output: bool
    status: str
    schema_text: str


class StepView(BaseModel):
    number: int
    total: int
    role: Literal["basic", "configuration", "variable", "output_schema"]
    title: str
    action_label: str
    can_go_back: bool
    variable_name: str | None = None
    variable_is_first: bool | None = None


class WizardStateResponse(BaseModel):
    id: str
    mode: Literal["create", "edit"]
    status: Literal["open", "completed", "cancelled"]
    project_id: int
    prompt_id: int | None = None
    extracted_variables: list[str] = Field(default_factory=list)
    step: StepView | None = None
    draft: DraftView | None = None
    error: str | None = None
    schema_error: str | None = None
    submitting: bool = False
    record: dict[str, Any] | None = None

    @classmethod
    def from_wizard(cls, wizard_id: str, wizard) -> "WizardStateResponse":
        step = None
        draft = None
        if wizard.status == "open" and wizard.draft is not None:
            info = wizard.current_step
            names = wizard.variable_names
            step = StepView(
                number=info.number,
                total=info.total,
                role=info.role,
                title=wizard.title,
                action_label=wizard.action_label,
                can_go_back=info.number > 1,
                variable_name=names[info.variable_index] if info.variable_index is not None else None,
                variable_is_first=(info.variable_index == 0) if info.variable_index is not None else None,
            )
            draft = DraftView(
                name=wizard.draft.name,
                description=wizard.draft.description,
                content=wizard.draft.content,
                variables=list(wizard.draft.variables),
                max_tokens=wizard.draft.max_tokens,
                temperature=wizard.draft.temperature,
                has_structured_output=wizard.draft.has_structured_output,
                status=wizard.draft.status,
                schema_text=wizard.schema_text,
            )
        return cls(
            id=wizard_id,
            mode=wizard.mode,
            status=wizard.status,
            project_id=wizard.project_id,
            prompt_id=wizard.prompt_id,
            extracted_variables=wizard.variable_names,
            step=step,
            draft=draft,
            error=wizard.error,
            schema_error=wizard.schema_error,
            submitting=wizard.submitting,
            record=wizard.record,
        )
