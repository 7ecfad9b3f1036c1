"""Error taxonomy for the ingestion, retrieval and generation pipeline.

Validation errors are raised before any side effect and are user-correctable.
Extraction errors are recorded on the Document that produced them. Service
errors wrap failures of external collaborators (OpenAI, Anthropic, Supabase)
and are never retried internally. Precondition errors signal an action the
user must take first.
"""


class BrdEngineError(Exception):
    """Base class for all BRD Engine errors."""


# Validation


class ValidationFailedError(BrdEngineError):
    """Request rejected before any processing started."""


class UnsupportedFileTypeError(ValidationFailedError):
    """Filename extension does not map to a supported format."""

    def __init__(self, filename: str):
        super().__init__(
            f"Unsupported file type: {filename}. "
            "Supported: PDF, DOCX, TXT, CSV, XLSX, Audio (MP3, WAV, M4A, OGG, WEBM)"
        )
        self.filename = filename


class FileTooLargeError(ValidationFailedError):
    """Upload exceeds MAX_UPLOAD_BYTES."""

    def __init__(self, size: int, limit: int):
        limit_mb = limit / (1024 * 1024)
        size_mb = size / (1024 * 1024)
        super().__init__(f"File size ({size_mb:.1f} MB) exceeds {limit_mb:.0f}MB limit")
        self.size = size
        self.limit = limit


class MissingFieldError(ValidationFailedError):
    """A required request field is missing or empty."""

    def __init__(self, field_name: str):
        super().__init__(f"Missing required field: {field_name}")
        self.field_name = field_name


# Lookup


class NotFoundError(BrdEngineError):
    """Entity does not exist or is not owned by the caller."""


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: str):
        super().__init__(f"Project not found: {project_id}")


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id: str):
        super().__init__(f"Document not found: {document_id}")


class ConversationNotFoundError(NotFoundError):
    def __init__(self, conversation_id: str):
        super().__init__(f"Conversation not found: {conversation_id}")


class DocumentAlreadyProcessedError(BrdEngineError):
    """Process was requested for a document that already has chunks."""

    def __init__(self, document_id: str):
        super().__init__(f"Document already processed: {document_id}")


# Extraction


class ExtractionError(BrdEngineError):
    """Raised when text extraction fails (corrupt or unsupported content)."""

    def __init__(self, message: str, extractor: str | None = None):
        super().__init__(message)
        self.extractor = extractor


class EmptyContentError(ExtractionError):
    """Extraction succeeded but produced no usable text."""

    def __init__(self, filename: str):
        super().__init__(f"No text extracted from document: {filename}")
        self.filename = filename


# External services


class ServiceError(BrdEngineError):
    """An external collaborator failed."""


class EmbeddingServiceError(ServiceError):
    pass


class TranscriptionServiceError(ServiceError):
    pass


class GenerationServiceError(ServiceError):
    pass


class StorageServiceError(ServiceError):
    pass


# Preconditions


class NoDocumentsError(BrdEngineError):
    """No processed documents exist for the requested scope."""

    def __init__(self) -> None:
        super().__init__(
            "No processed documents found. Process documents before generating a BRD."
        )
