"""Shared Supabase client for the relational store and blob storage."""

from functools import lru_cache

from supabase import Client, ClientOptions, create_client

from brd_engine.core.config import get_settings
from brd_engine.core.errors import StorageServiceError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """
    Get the service-role Supabase client (cached singleton).

    Returns:
        Client used for tables, the match RPC and the documents bucket

    Raises:
        StorageServiceError: If the client cannot be created
    """
    settings = get_settings()
    options = ClientOptions(
        postgrest_client_timeout=settings.SUPABASE_TIMEOUT_SECONDS,
        storage_client_timeout=settings.SUPABASE_TIMEOUT_SECONDS,
    )

    try:
        client = create_client(
            settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY, options=options
        )
    except Exception as e:
        raise StorageServiceError(f"Failed to initialize Supabase client: {e}") from e

    logger.info(f"Connected Supabase client for {settings.SUPABASE_URL}")
    return client
