from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from ....integrations.backend_client import BackendClient, get_backend_client
from ....schemas.wizard import (
    VariableUpdate,
    WizardDraftUpdate,
    WizardOpenRequest,
    WizardStateResponse,
)
from ....services.prompt_submission import PromptSubmitter
from ....services.prompt_wizard import PromptWizard, WizardError
from ....services.wizard_registry import (
    WizardLimitError,
    WizardNotFoundError,
    WizardRegistry,
    get_wizard_registry,
)


router = APIRouter(prefix="/wizards")


def _get(registry: WizardRegistry, wizard_id: str) -> PromptWizard:
    try:
        return registry.get(wizard_id)
    except WizardNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.args[0]) from exc


def _state(registry: WizardRegistry, wizard_id: str, wizard: PromptWizard) -> WizardStateResponse:
    state = WizardStateResponse.from_wizard(wizard_id, wizard)
    registry.release_if_closed(wizard_id)
    return state


@router.post("", response_model=WizardStateResponse, status_code=status.HTTP_201_CREATED)
def open_wizard(  # type: ignore[valid-type]
    payload: WizardOpenRequest,
    client: BackendClient = Depends(get_backend_client),
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    try:
        wizard_id, wizard = registry.open(
            project_id=payload.project_id,
            submitter=PromptSubmitter(client),
            seed=payload.seed,
        )
    except WizardLimitError as exc:
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)


@router.get("/{wizard_id}", response_model=WizardStateResponse)
def get_wizard(  # type: ignore[valid-type]
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    return _state(registry, wizard_id, _get(registry, wizard_id))


@router.patch("/{wizard_id}/draft", response_model=WizardStateResponse)
def update_draft(  # type: ignore[valid-type]
    wizard_id: str,
    payload: WizardDraftUpdate,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    wizard = _get(registry, wizard_id)
    try:
        wizard.update(**payload.model_dump(exclude_unset=True, exclude_none=True))
    except WizardError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)


@router.put("/{wizard_id}/variables/{index}", response_model=WizardStateResponse)
def update_variable(  # type: ignore[valid-type]
    wizard_id: str,
    index: int,
    payload: VariableUpdate,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    wizard = _get(registry, wizard_id)
    try:
        wizard.set_variable(index, description=payload.description, type=payload.type)
    except WizardError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)


@router.post("/{wizard_id}/next", response_model=WizardStateResponse)
def next_step(  # type: ignore[valid-type]
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    wizard = _get(registry, wizard_id)
    try:
        wizard.next()
    except WizardError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)


@router.post("/{wizard_id}/back", response_model=WizardStateResponse)
def previous_step(  # type: ignore[valid-type]
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    wizard = _get(registry, wizard_id)
    try:
        wizard.back()
    except WizardError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)


@router.delete("/{wizard_id}", response_model=WizardStateResponse)
def cancel_wizard(  # type: ignore[valid-type]
    wizard_id: str,
    registry: WizardRegistry = Depends(get_wizard_registry),
) -> WizardStateResponse:
    wizard = _get(registry, wizard_id)
    try:
        wizard.cancel()
    except WizardError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return _state(registry, wizard_id, wizard)
