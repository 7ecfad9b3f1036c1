"""API endpoints for BRD generation and export."""

import asyncio
import time
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from brd_engine.api.deps import get_user_id, to_http_exception
from brd_engine.chains.generate_brd import generate_business_requirement_document
from brd_engine.core.brd_docx import DEFAULT_TITLE, DOCX_CONTENT_TYPE, render_docx
from brd_engine.core.errors import BrdEngineError, NoDocumentsError, NotFoundError
from brd_engine.core.logging import get_logger
from brd_engine.core.schemas_brd import BrdPreviewResponse, GenerateBrdRequest
from brd_engine.db import projects as projects_db

logger = get_logger(__name__)

router = APIRouter()


async def _generate_markdown(project_id: str, user_id: str, action: str) -> str:
    try:
        projects_db.require_project(project_id, user_id)
        return await asyncio.to_thread(generate_business_requirement_document, project_id, user_id)
    except (NotFoundError, NoDocumentsError) as e:
        raise to_http_exception(e) from e
    except BrdEngineError as e:
        raise to_http_exception(e, prefix=f"Failed to {action}") from e
    except Exception as e:
        logger.exception(f"Unexpected error during BRD generation for {project_id}")
        raise HTTPException(status_code=500, detail=f"Failed to {action}: {e}") from e


def _save(project_id: str, title: str, markdown: str) -> str:
    try:
        brd = projects_db.save_brd(project_id, title, markdown, markdown)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return str(brd["id"])


@router.post("/generate-brd")
async def generate_brd(
    request: GenerateBrdRequest,
    user_id: str = Depends(get_user_id),
) -> Response:
    """Generate a BRD for a project and return it as a DOCX download.

    Raises:
        HTTPException 400: If the project has no processed documents
        HTTPException 404: If the project does not exist for this user
        HTTPException 502: If generation fails
    """
    project_id = str(request.project_id)
    markdown = await _generate_markdown(project_id, user_id, "generate BRD")

    headers = {"Content-Disposition": f'attachment; filename="BRD_{int(time.time() * 1000)}.docx"'}
    if request.save:
        headers["X-Brd-Id"] = _save(project_id, request.title, markdown)

    content = render_docx(markdown, title=request.title)
    return Response(content=content, media_type=DOCX_CONTENT_TYPE, headers=headers)


@router.get("/generate-brd")
async def preview_brd(
    project_id: UUID = Query(..., description="Project UUID"),
    save: bool = Query(default=False, description="Persist the generated BRD"),
    user_id: str = Depends(get_user_id),
) -> BrdPreviewResponse:
    """Generate a BRD and return the markdown for preview."""
    markdown = await _generate_markdown(str(project_id), user_id, "generate BRD preview")

    brd_id = _save(str(project_id), DEFAULT_TITLE, markdown) if save else None
    return BrdPreviewResponse(markdown=markdown, brd_id=brd_id)
