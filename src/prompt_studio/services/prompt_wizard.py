from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Literal

from pydantic import ValidationError

from ..core.templates import extract_variables
from ..schemas.prompts import (
    IMAGE_EXCLUSIVE_MESSAGE,
    Prompt,
    PromptDraft,
    PromptPayload,
    PromptVariable,
    VariableType,
)
from .prompt_submission import PromptSubmitter
from .wizard_steps import StepInfo, describe_step, total_steps


log = logging.getLogger("studio.services.prompt_wizard")


WizardMode = Literal["create", "edit"]
WizardStatus = Literal["open", "completed", "cancelled"]

REQUIRED_BASICS_MESSAGE = "Name and content are required"
INVALID_SCHEMA_MESSAGE = "Invalid JSON format"
SUBMIT_FALLBACK_MESSAGE = "Failed to create prompt"

_EDITABLE_FIELDS = {
    "name",
    "description",
    "content",
    "max_tokens",
    "temperature",
    "has_structured_output",
}


class WizardError(ValueError):
    """Raised for operations the wizard cannot perform in its current state."""


class WizardBusyError(WizardError):
    """Raised when a submission is requested while another one is in flight."""


def describe_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        msg = str(err.get("msg", ""))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, ") :]
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)


class PromptWizard:
    """Multi-step prompt authoring form.

    Steps: basic info, generation settings, one step per template variable,
    and an output schema step when structured output is enabled. The step
    count is always derived from the current draft. Nothing reaches the
    backend before the final ``next()``.
    """

    def __init__(
        self,
        *,
        project_id: int,
        submitter: PromptSubmitter,
        seed: Prompt | None = None,
        draft: PromptDraft | None = None,
        on_completed: Callable[[], None] | None = None,
    ):
        self.project_id = project_id
        self.mode: WizardMode = "edit" if seed is not None else "create"
        self.prompt_id: int | None = seed.id if seed is not None else None
        if seed is not None:
            self.draft: PromptDraft | None = PromptDraft.from_prompt(seed)
        else:
            self.draft = draft or PromptDraft()
        self.schema_text = ""
        if self.draft.output_schema is not None:
            self.schema_text = json.dumps(self.draft.output_schema, indent=2)
        self.step = 1
        self.error: str | None = None
        self.schema_error: str | None = None
        self.status: WizardStatus = "open"
        self.record: dict[str, Any] | None = None
        self._submitter = submitter
        self._on_completed = on_completed
        self._submit_lock = threading.Lock()

    # --- Derived state ----------------------------------------------------------
    @property
    def variable_names(self) -> list[str]:
        return extract_variables(self.draft.content) if self.draft is not None else []

    @property
    def total_steps(self) -> int:
        draft = self._require_draft()
        return total_steps(len(self.variable_names), draft.has_structured_output)

    @property
    def current_step(self) -> StepInfo:
        draft = self._require_draft()
        return describe_step(self.step, len(self.variable_names), draft.has_structured_output)

    @property
    def submitting(self) -> bool:
        return self._submit_lock.locked()

    @property
    def title(self) -> str:
        role = self.current_step.role
        if role == "basic":
            return "Create New Prompt" if self.mode == "create" else "Edit Prompt"
        if role == "configuration":
            return "Configure Settings"
        if role == "variable":
            return "Configure Variables"
        return "Define Output Schema"

    @property
    def action_label(self) -> str:
        if not self.current_step.is_last:
            return "Next"
        return "Create" if self.mode == "create" else "Save"

    # --- Field edits ------------------------------------------------------------
    def update(self, **changes: Any) -> None:
        """Apply field edits from step 1 or 2, or the schema text."""
        draft = self._require_draft()
        self._require_idle()
        unknown = set(changes) - _EDITABLE_FIELDS - {"schema_text"}
        if unknown:
            raise WizardError(f"Unknown draft fields: {', '.join(sorted(unknown))}")
        if "schema_text" in changes:
            self.schema_text = changes.pop("schema_text") or ""
            self.schema_error = None
        for key, value in changes.items():
            setattr(draft, key, value)
        if "content" in changes or "has_structured_output" in changes:
            self._reconcile()

    def set_variable(
        self,
        index: int,
        *,
        description: str | None = None,
        type: VariableType | None = None,
    ) -> None:
        """Configure the variable shown on the ``index``-th variable step.

        Only the first variable's type can be chosen. Choosing ``image``
        keeps that variable alone in the draft.
        """
        draft = self._require_draft()
        self._require_idle()
        names = self.variable_names
        if not 0 <= index < len(names):
            raise WizardError(f"No variable at index {index}")
        if type is not None and index != 0:
            raise WizardError("Only the first variable's type can be chosen")
        name = names[index]
        existing = self._find_variable(name)

        if type == "image":
            kept_description = description
            if kept_description is None:
                kept_description = existing.description if existing is not None else ""
            draft.variables = [
                PromptVariable(name=name, type="image", description=kept_description, required=True)
            ]
            if len(names) > 1:
                self.error = IMAGE_EXCLUSIVE_MESSAGE
                log.info("Image variable selected with %d variables in template", len(names))
            return

        if existing is None:
            inherited: VariableType = self._first_variable_type() if index else "string"
            existing = PromptVariable(name=name, type=inherited, required=True)
            draft.variables.append(existing)
            self._sort_variables(names)
        if type == "string":
            existing.type = "string"
        if description is not None:
            existing.description = description
        existing.required = True

    # --- Transitions ------------------------------------------------------------
    def back(self) -> None:
        self._require_draft()
        self._require_idle()
        if self.step <= 1:
            raise WizardError("Already on the first step")
        self.step -= 1
        log.debug("Wizard back to step %d/%d", self.step, self.total_steps)

    def next(self) -> WizardStatus:
        """Validate the current step and advance, or submit on the last step."""
        draft = self._require_draft()
        self._require_idle()
        info = self.current_step
        if info.role == "basic":
            if not draft.name.strip() or not draft.content.strip():
                self.error = REQUIRED_BASICS_MESSAGE
                return self.status
        elif info.role == "variable":
            name = self.variable_names[info.variable_index or 0]
            variable = self._find_variable(name)
            if variable is None or not variable.description.strip():
                self.error = f"A description is required for variable '{name}'"
                return self.status

        if info.is_last:
            self._submit()
            return self.status

        self.error = None
        self.step += 1
        log.debug("Wizard advanced to step %d/%d (%s)", self.step, info.total, self.current_step.role)
        return self.status

    def cancel(self) -> None:
        self._require_draft()
        self._close("cancelled")

    # --- Internals --------------------------------------------------------------
    def _submit(self) -> None:
        if not self._submit_lock.acquire(blocking=False):
            raise WizardBusyError("A submission is already in progress")
        try:
            draft = self._require_draft()
            if draft.has_structured_output:
                try:
                    draft.output_schema = json.loads(self.schema_text)
                except json.JSONDecodeError:
                    self.schema_error = INVALID_SCHEMA_MESSAGE
                    return
                self.schema_error = None
            try:
                payload = PromptPayload.from_draft(draft, project_id=self.project_id)
            except ValidationError as exc:
                self.error = describe_validation_error(exc)
                return
            self.error = None
            result = self._submitter.submit(payload, prompt_id=self.prompt_id)
        finally:
            self._submit_lock.release()

        if self.status != "open":
            # Closed while the request was in flight; the result is dropped.
            log.info("Discarding submission result for a closed wizard (ok=%s)", result.ok)
            return
        if not result.ok:
            self.error = result.error or SUBMIT_FALLBACK_MESSAGE
            return
        self.record = result.record
        self._close("completed")
        if self._on_completed is not None:
            self._on_completed()

    def _close(self, status: WizardStatus) -> None:
        self.status = status
        self.draft = None
        self.schema_text = ""
        self.error = None
        self.schema_error = None
        log.debug("Wizard closed (%s)", status)

    def _reconcile(self) -> None:
        draft = self._require_draft()
        names = self.variable_names
        before = len(draft.variables)
        draft.variables = [var for var in draft.variables if var.name in names]
        self._sort_variables(names)
        if len(draft.variables) != before:
            log.debug("Dropped %d stale variable(s)", before - len(draft.variables))
        total = self.total_steps
        if self.step > total:
            self.step = total

    def _sort_variables(self, names: list[str]) -> None:
        order = {name: idx for idx, name in enumerate(names)}
        draft = self._require_draft()
        draft.variables.sort(key=lambda var: order.get(var.name, len(order)))

    def _find_variable(self, name: str) -> PromptVariable | None:
        for var in self._require_draft().variables:
            if var.name == name:
                return var
        return None

    def _first_variable_type(self) -> VariableType:
        names = self.variable_names
        first = self._find_variable(names[0]) if names else None
        return first.type if first is not None else "string"

    def _require_idle(self) -> None:
        if self.submitting:
            raise WizardBusyError("A submission is already in progress")

    def _require_draft(self) -> PromptDraft:
        if self.status != "open" or self.draft is None:
            raise WizardError(f"Wizard is {self.status}")
        return self.draft
