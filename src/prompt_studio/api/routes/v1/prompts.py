from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ....integrations.backend_client import BackendClient, BackendError, get_backend_client
from ....schemas.prompts import PromptVersion
from ....schemas.runs import PromptRunRequest, PromptRunResponse, RunComparisonResponse, RunRecord
from ....services.run_service import RunError, RunService, available_models
from .projects import backend_http_error


router = APIRouter(prefix="/prompts")


def _service(client: BackendClient) -> RunService:
    return RunService(client)


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prompt(  # type: ignore[valid-type]
    prompt_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> Response:
    try:
        client.delete_prompt(prompt_id)
    except BackendError as exc:
        raise backend_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{prompt_id}/versions", response_model=list[PromptVersion])
def list_versions(  # type: ignore[valid-type]
    prompt_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> list[PromptVersion]:
    try:
        return _service(client).list_versions(prompt_id)
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.get("/{prompt_id}/versions/{version}/models", response_model=list[str])
def list_version_models(  # type: ignore[valid-type]
    prompt_id: int,
    version: str,
    client: BackendClient = Depends(get_backend_client),
) -> list[str]:
    service = _service(client)
    try:
        versions = service.list_versions(prompt_id)
        selected = next((item for item in versions if item.version == version), None)
        if selected is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Version not found")
        return available_models(selected, service.list_llm_systems())
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.get("/{prompt_id}/runs", response_model=list[RunRecord])
def list_runs(  # type: ignore[valid-type]
    prompt_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> list[RunRecord]:
    try:
        return _service(client).list_runs(prompt_id)
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.post("/{prompt_id}/runs", response_model=PromptRunResponse)
def run_prompt(  # type: ignore[valid-type]
    prompt_id: int,
    payload: PromptRunRequest,
    client: BackendClient = Depends(get_backend_client),
) -> PromptRunResponse:
    try:
        return _service(client).run(prompt_id, payload)
    except RunError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.get("/{prompt_id}/compare", response_model=RunComparisonResponse)
def compare_runs(  # type: ignore[valid-type]
    prompt_id: int,
    left: int | None = None,
    right: int | None = None,
    client: BackendClient = Depends(get_backend_client),
) -> RunComparisonResponse:
    try:
        return _service(client).compare(prompt_id, left_id=left, right_id=right)
    except RunError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except BackendError as exc:
        raise backend_http_error(exc) from exc
