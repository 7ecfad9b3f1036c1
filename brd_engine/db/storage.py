"""Blob storage for raw uploaded files (Supabase Storage)."""

import re
import time

from brd_engine.core.config import get_settings
from brd_engine.core.errors import StorageServiceError, ValidationFailedError
from brd_engine.core.logging import get_logger
from brd_engine.db.supabase_client import get_supabase

logger = get_logger(__name__)

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-zA-Z0-9.-]")


def user_folder(user_id: str) -> str:
    """Top-level storage folder holding a user's files."""
    folder = _UNSAFE_FILENAME_CHARS.sub("_", user_id)
    # A folder named "." or ".." would resolve outside the user's prefix
    if not folder.strip("."):
        folder = folder.replace(".", "_")
    return folder


def generate_storage_path(user_id: str, filename: str) -> str:
    """Build `<user folder>/<millis>_<sanitized filename>`."""
    timestamp = int(time.time() * 1000)
    sanitized = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    return f"{user_folder(user_id)}/{timestamp}_{sanitized}"


def require_owned_path(user_id: str, storage_path: str) -> str:
    """Reject a client-supplied path outside the caller's storage folder.

    Raises:
        ValidationFailedError: If the path is not a file under the user's folder
    """
    folder, _, rest = storage_path.partition("/")
    segments = rest.split("/")
    if folder != user_folder(user_id) or not rest or any(s in ("", ".", "..") for s in segments):
        raise ValidationFailedError(f"Invalid storage path: {storage_path}")
    return storage_path


def upload_file(storage_path: str, file_bytes: bytes, content_type: str) -> str:
    """
    Upload raw bytes to the documents bucket.

    Returns:
        The storage path written

    Raises:
        StorageServiceError: If the upload fails
    """
    bucket = get_settings().STORAGE_BUCKET
    supabase = get_supabase()

    try:
        supabase.storage.from_(bucket).upload(
            path=storage_path,
            file=file_bytes,
            file_options={"content-type": content_type, "cache-control": "3600", "upsert": "false"},
        )
    except Exception as e:
        logger.error(f"Failed to upload to storage: {e}")
        raise StorageServiceError(f"Failed to upload file: {e}") from e

    logger.info(f"Uploaded {len(file_bytes)} bytes to {bucket}/{storage_path}")
    return storage_path


def create_upload_url(storage_path: str) -> str:
    """Signed URL that lets a client upload directly to `storage_path`.

    Raises:
        StorageServiceError: If signing fails
    """
    bucket = get_settings().STORAGE_BUCKET
    supabase = get_supabase()

    try:
        response = supabase.storage.from_(bucket).create_signed_upload_url(storage_path)
    except Exception as e:
        logger.error(f"Failed to sign upload URL for {storage_path}: {e}")
        raise StorageServiceError(f"Failed to create upload URL: {e}") from e

    signed_url = response.get("signed_url") or response.get("signedUrl")
    if not signed_url:
        raise StorageServiceError("Storage returned no signed upload URL")
    return signed_url


def download_file(storage_path: str) -> bytes:
    """Download raw bytes from the documents bucket.

    Raises:
        StorageServiceError: If the download fails
    """
    bucket = get_settings().STORAGE_BUCKET
    supabase = get_supabase()

    try:
        return supabase.storage.from_(bucket).download(storage_path)
    except Exception as e:
        logger.error(f"Failed to download {storage_path}: {e}")
        raise StorageServiceError(f"Failed to download file: {e}") from e


def delete_file(storage_path: str) -> None:
    """Remove a file from the documents bucket.

    Raises:
        StorageServiceError: If the removal fails
    """
    bucket = get_settings().STORAGE_BUCKET
    supabase = get_supabase()

    try:
        supabase.storage.from_(bucket).remove([storage_path])
    except Exception as e:
        logger.error(f"Failed to delete {storage_path}: {e}")
        raise StorageServiceError(f"Failed to delete file: {e}") from e
