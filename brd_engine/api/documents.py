"""API endpoints for document upload, listing and processing."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile

from brd_engine.api.deps import get_user_id, to_http_exception
from brd_engine.core.config import get_settings
from brd_engine.core.document_processing import CONTENT_TYPES, require_file_type
from brd_engine.core.errors import (
    BrdEngineError,
    FileTooLargeError,
    MissingFieldError,
    StorageServiceError,
)
from brd_engine.core.logging import get_logger
from brd_engine.core.pipeline import ProcessingResult, process_document, reprocess_document
from brd_engine.core.schemas_documents import (
    CreateDocumentRequest,
    DocumentListResponse,
    DocumentResponse,
    ProcessDocumentResponse,
    UploadUrlRequest,
    UploadUrlResponse,
)
from brd_engine.db import documents as documents_db
from brd_engine.db import projects as projects_db
from brd_engine.db import storage, vectors

logger = get_logger(__name__)

router = APIRouter()


def _processing_response(result: ProcessingResult) -> ProcessDocumentResponse:
    """Return the success body or raise the HTTP error matching the failure."""
    if result.success:
        return ProcessDocumentResponse(document_id=result.document_id, chunks_count=result.chunk_count)

    if isinstance(result.exception, BrdEngineError):
        raise to_http_exception(result.exception, prefix="Failed to process document")
    raise HTTPException(status_code=500, detail=f"Failed to process document: {result.error}")


def _remove_orphaned_file(storage_path: str) -> None:
    """Delete an uploaded file whose document record could not be written."""
    try:
        storage.delete_file(storage_path)
    except StorageServiceError as e:
        logger.warning(f"Failed to remove orphaned upload {storage_path}: {e}")


@router.post("/upload", status_code=201)
async def upload_document(
    file: UploadFile = File(...),
    project_id: UUID = Form(...),
    user_id: str = Depends(get_user_id),
) -> DocumentResponse:
    """Upload a file into a project's knowledge base.

    The document is created unprocessed; call /documents/{id}/process to index it.
    If the record cannot be created the uploaded file is removed again.

    Raises:
        HTTPException 400: If the file is empty, too large, or of an unsupported type
        HTTPException 404: If the project does not exist for this user
        HTTPException 422: If project_id is not a UUID
        HTTPException 502: If blob storage or the database fails
    """
    settings = get_settings()

    try:
        if not file.filename:
            raise MissingFieldError("file")

        file_type = require_file_type(file.filename)

        if file.size is not None and file.size > settings.MAX_UPLOAD_BYTES:
            raise FileTooLargeError(file.size, settings.MAX_UPLOAD_BYTES)

        file_bytes = await file.read()
        if not file_bytes:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(file_bytes) > settings.MAX_UPLOAD_BYTES:
            raise FileTooLargeError(len(file_bytes), settings.MAX_UPLOAD_BYTES)

        projects_db.require_project(str(project_id), user_id)

        storage_path = storage.generate_storage_path(user_id, file.filename)
        storage.upload_file(
            storage_path,
            file_bytes,
            file.content_type or CONTENT_TYPES[file_type],
        )
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    try:
        doc = documents_db.create_document(
            project_id=str(project_id),
            user_id=user_id,
            filename=file.filename,
            file_type=file_type.value,
            storage_path=storage_path,
            file_size=len(file_bytes),
        )
    except BrdEngineError as e:
        _remove_orphaned_file(storage_path)
        raise to_http_exception(e) from e

    logger.info(f"Document uploaded: {doc['id']} ({file.filename})")
    return DocumentResponse(**doc)


@router.post("/upload-url")
async def create_upload_url(
    request: UploadUrlRequest,
    user_id: str = Depends(get_user_id),
) -> UploadUrlResponse:
    """Sign a direct-to-storage upload for large files."""
    try:
        file_type = require_file_type(request.filename)
        projects_db.require_project(str(request.project_id), user_id)

        storage_path = storage.generate_storage_path(user_id, request.filename)
        upload_url = storage.create_upload_url(storage_path)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    return UploadUrlResponse(storage_path=storage_path, upload_url=upload_url, file_type=file_type.value)


@router.post("/create", status_code=201)
async def create_document(
    request: CreateDocumentRequest,
    user_id: str = Depends(get_user_id),
) -> DocumentResponse:
    """Register a file that was uploaded straight to blob storage.

    The storage path must lie in the caller's own folder, as issued by
    /documents/upload-url.
    """
    try:
        file_type = require_file_type(request.filename)
        storage_path = storage.require_owned_path(user_id, request.storage_path)
        projects_db.require_project(str(request.project_id), user_id)

        doc = documents_db.create_document(
            project_id=str(request.project_id),
            user_id=user_id,
            filename=request.filename,
            file_type=file_type.value,
            storage_path=storage_path,
            file_size=request.file_size,
        )
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    return DocumentResponse(**doc)


@router.get("")
async def list_documents(
    project_id: UUID | None = Query(default=None),
    user_id: str = Depends(get_user_id),
) -> DocumentListResponse:
    """List the caller's documents, newest first."""
    docs = documents_db.list_documents(
        user_id=user_id,
        project_id=str(project_id) if project_id else None,
    )
    return DocumentListResponse(
        documents=[DocumentResponse(**d) for d in docs],
        total=len(docs),
    )


@router.get("/{document_id}")
async def get_document(document_id: UUID, user_id: str = Depends(get_user_id)) -> DocumentResponse:
    try:
        doc = documents_db.require_document(str(document_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e
    return DocumentResponse(**doc)


@router.delete("/{document_id}")
async def delete_document(document_id: UUID, user_id: str = Depends(get_user_id)) -> dict:
    """Delete a document with its chunks and raw file.

    Chunks are removed first and the raw file last; a raw file that is already
    gone does not fail the request.
    """
    try:
        doc = documents_db.require_document(str(document_id), user_id)
        vectors.delete_chunks_by_document(str(document_id))
        documents_db.delete_document(str(document_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    try:
        storage.delete_file(doc["storage_path"])
    except StorageServiceError as e:
        logger.warning(f"Failed to delete file from storage: {e}")

    return {"success": True, "message": "Document deleted successfully"}


@router.post("/{document_id}/process")
async def process_document_endpoint(
    document_id: UUID,
    user_id: str = Depends(get_user_id),
) -> ProcessDocumentResponse:
    """Extract, chunk, embed and index an unprocessed document.

    Raises:
        HTTPException 400: If the document is already processed
        HTTPException 404: If the document does not exist for this user
        HTTPException 422: If no text could be extracted
        HTTPException 502: If transcription, embedding or storage fails
    """
    try:
        result = await process_document(str(document_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    return _processing_response(result)


@router.post("/{document_id}/reprocess")
async def reprocess_document_endpoint(
    document_id: UUID,
    user_id: str = Depends(get_user_id),
) -> ProcessDocumentResponse:
    """Discard existing chunks and process the document again."""
    try:
        result = await reprocess_document(str(document_id), user_id)
    except BrdEngineError as e:
        raise to_http_exception(e) from e

    return _processing_response(result)
