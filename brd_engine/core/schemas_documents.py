"""Pydantic schemas for document upload and processing."""

from uuid import UUID

from pydantic import BaseModel, Field


class CreateDocumentRequest(BaseModel):
    """Register a file that is already in blob storage."""

    project_id: UUID = Field(..., description="Owning project UUID")
    filename: str = Field(..., min_length=1, description="Original filename")
    storage_path: str = Field(..., min_length=1, description="Path inside the documents bucket")
    file_size: int | None = Field(None, ge=0, description="File size in bytes")


class UploadUrlRequest(BaseModel):
    project_id: UUID = Field(..., description="Owning project UUID")
    filename: str = Field(..., min_length=1, description="Original filename")


class UploadUrlResponse(BaseModel):
    """Where a client should upload a file before calling /documents/create."""

    storage_path: str
    upload_url: str
    file_type: str


class DocumentResponse(BaseModel):
    """Response schema for a document record."""

    id: str
    project_id: str
    filename: str
    file_type: str
    storage_path: str
    file_size: int | None = None
    processed: bool = False
    error: str | None = None
    uploaded_at: str | None = None
    processed_at: str | None = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    total: int


class ProcessDocumentResponse(BaseModel):
    """Successful pipeline run."""

    success: bool = True
    document_id: str
    chunks_count: int = Field(..., description="Chunks written to the vector index")
    message: str = "Document processed successfully"
