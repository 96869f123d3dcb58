from __future__ import annotations

from fastapi import APIRouter, Depends, status

from ....integrations.backend_client import BackendClient, BackendError, get_backend_client
from ....schemas.settings import LLMSystem, Setting, SettingRequest
from .projects import backend_http_error


router = APIRouter()


@router.get("/settings", response_model=list[Setting])
def list_settings(  # type: ignore[valid-type]
    client: BackendClient = Depends(get_backend_client),
) -> list[Setting]:
    try:
        return [Setting.model_validate(item) for item in client.list_settings()]
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.post("/settings", response_model=Setting, status_code=status.HTTP_201_CREATED)
def save_setting(  # type: ignore[valid-type]
    payload: SettingRequest,
    client: BackendClient = Depends(get_backend_client),
) -> Setting:
    try:
        return Setting.model_validate(client.save_setting(payload.model_dump()))
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.get("/llm-systems", response_model=list[LLMSystem])
def list_llm_systems(  # type: ignore[valid-type]
    client: BackendClient = Depends(get_backend_client),
) -> list[LLMSystem]:
    try:
        return [LLMSystem.model_validate(item) for item in client.list_llm_systems()]
    except BackendError as exc:
        raise backend_http_error(exc) from exc
