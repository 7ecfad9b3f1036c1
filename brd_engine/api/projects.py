"""API endpoints for projects and their saved BRDs."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException

from brd_engine.api.deps import get_user_id, to_http_exception
from brd_engine.core.errors import BrdEngineError
from brd_engine.core.logging import get_logger
from brd_engine.core.schemas_projects import (
    BrdListResponse,
    BrdResponse,
    CreateProjectRequest,
    ProjectListResponse,
    ProjectResponse,
    ProjectStatsResponse,
    UpdateProjectRequest,
)
from brd_engine.db import projects as projects_db

logger = get_logger(__name__)

router = APIRouter()


@router.post("", status_code=201)
async def create_project(
    request: CreateProjectRequest,
    user_id: str = Depends(get_user_id),
) -> ProjectResponse:
    """Create a project owned by the caller."""
    try:
        project = projects_db.create_project(user_id, request.name, request.description)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return ProjectResponse(**project)


@router.get("")
async def list_projects(user_id: str = Depends(get_user_id)) -> ProjectListResponse:
    projects = projects_db.list_projects(user_id)
    return ProjectListResponse(
        projects=[ProjectResponse(**p) for p in projects],
        total=len(projects),
    )


@router.get("/{project_id}")
async def get_project(project_id: UUID, user_id: str = Depends(get_user_id)) -> ProjectResponse:
    try:
        project = projects_db.require_project(str(project_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return ProjectResponse(**project)


@router.patch("/{project_id}")
async def update_project(
    project_id: UUID,
    request: UpdateProjectRequest,
    user_id: str = Depends(get_user_id),
) -> ProjectResponse:
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        project = projects_db.update_project(str(project_id), user_id, updates)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return ProjectResponse(**project)


@router.delete("/{project_id}")
async def delete_project(project_id: UUID, user_id: str = Depends(get_user_id)) -> dict:
    try:
        projects_db.delete_project(str(project_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return {"success": True}


@router.get("/{project_id}/stats")
async def get_project_stats(
    project_id: UUID,
    user_id: str = Depends(get_user_id),
) -> ProjectStatsResponse:
    """Document, chunk, conversation and BRD counts."""
    try:
        projects_db.require_project(str(project_id), user_id)
        stats = projects_db.get_project_stats(str(project_id))
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return ProjectStatsResponse(**stats)


@router.get("/{project_id}/brds")
async def list_project_brds(
    project_id: UUID,
    user_id: str = Depends(get_user_id),
) -> BrdListResponse:
    """Saved BRDs of a project, newest first."""
    try:
        projects_db.require_project(str(project_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    brds = projects_db.list_brds(str(project_id))
    return BrdListResponse(brds=[BrdResponse(**b) for b in brds], total=len(brds))
