from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from ....integrations.backend_client import BackendClient, BackendError, get_backend_client
from ....schemas.projects import Project, ProjectRequest
from ....schemas.prompts import Prompt


router = APIRouter(prefix="/projects")


def backend_http_error(exc: BackendError) -> HTTPException:
    return HTTPException(
        status_code=exc.status_code or status.HTTP_502_BAD_GATEWAY,
        detail=exc.message,
    )


@router.get("", response_model=list[Project])
def list_projects(  # type: ignore[valid-type]
    client: BackendClient = Depends(get_backend_client),
) -> list[Project]:
    try:
        return [Project.model_validate(item) for item in client.list_projects()]
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.get("/{project_id}", response_model=Project)
def get_project(  # type: ignore[valid-type]
    project_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> Project:
    try:
        return Project.model_validate(client.get_project(project_id))
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.post("", response_model=Project, status_code=status.HTTP_201_CREATED)
def create_project(  # type: ignore[valid-type]
    payload: ProjectRequest,
    client: BackendClient = Depends(get_backend_client),
) -> Project:
    try:
        return Project.model_validate(client.create_project(payload.model_dump(mode="json")))
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.put("/{project_id}", response_model=Project)
def update_project(  # type: ignore[valid-type]
    project_id: int,
    payload: ProjectRequest,
    client: BackendClient = Depends(get_backend_client),
) -> Project:
    try:
        return Project.model_validate(client.update_project(project_id, payload.model_dump(mode="json")))
    except BackendError as exc:
        raise backend_http_error(exc) from exc


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(  # type: ignore[valid-type]
    project_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> Response:
    try:
        client.delete_project(project_id)
    except BackendError as exc:
        raise backend_http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{project_id}/prompts", response_model=list[Prompt])
def list_project_prompts(  # type: ignore[valid-type]
    project_id: int,
    client: BackendClient = Depends(get_backend_client),
) -> list[Prompt]:
    try:
        return [Prompt.model_validate(item) for item in client.list_project_prompts(project_id)]
    except BackendError as exc:
        raise backend_http_error(exc) from exc
