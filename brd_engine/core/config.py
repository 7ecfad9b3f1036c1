"""Configuration management for BRD Engine."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file (only if accessible)
try:
    load_dotenv()
except (PermissionError, OSError):
    # In sandboxed environments, .env might not be accessible
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # Supabase configuration (required)
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_SERVICE_ROLE_KEY: str = Field(..., description="Supabase service role key")
    STORAGE_BUCKET: str = Field(default="documents", description="Bucket for raw uploads")
    SUPABASE_TIMEOUT_SECONDS: int = Field(
        default=60, description="Timeout for Supabase table and storage calls"
    )

    # OpenAI configuration (required: embeddings + transcription)
    OPENAI_API_KEY: str = Field(..., description="OpenAI API key")

    # Anthropic configuration (chat + BRD generation)
    ANTHROPIC_API_KEY: str | None = Field(default=None, description="Anthropic API key")

    # Environment
    BRD_ENGINE_ENV: str = Field(default="dev", description="Environment: dev, staging, prod")

    # Embedding configuration
    EMBEDDING_MODEL: str = Field(
        default="text-embedding-3-small", description="OpenAI embedding model"
    )
    EMBEDDING_DIM: int = Field(default=1536, description="Embedding vector dimension")

    # Audio transcription
    TRANSCRIPTION_MODEL: str = Field(default="whisper-1", description="Speech-to-text model")
    TRANSCRIPTION_LANGUAGE: str = Field(default="en", description="Transcription language")

    # Upload limits
    MAX_UPLOAD_BYTES: int = Field(
        default=100 * 1024 * 1024, description="Max file upload size in bytes"
    )

    # Chunking (token sizes approximated with CHARS_PER_TOKEN)
    CHUNK_SIZE_TOKENS: int = Field(default=800, description="Target chunk size in tokens")
    CHUNK_OVERLAP_TOKENS: int = Field(default=200, description="Overlap between chunks in tokens")
    CHARS_PER_TOKEN: int = Field(default=4, description="Characters per token estimate")

    # Retrieval
    RAG_TOP_K: int = Field(default=8, description="Chunks to retrieve per chat query")
    RAG_MATCH_THRESHOLD: float = Field(
        default=0.7, description="Minimum cosine similarity for a retrieved chunk"
    )

    # Chat generation
    CHAT_MODEL: str = Field(default="claude-3-5-haiku-20241022", description="Model for chat")
    CHAT_MAX_TOKENS: int = Field(default=4096, description="Max tokens per chat answer")
    CHAT_HISTORY_LIMIT: int = Field(
        default=20, description="Conversation messages sent with each chat turn"
    )

    # BRD generation
    BRD_MODEL: str = Field(default="claude-sonnet-4-20250514", description="Model for BRDs")
    BRD_MAX_TOKENS: int = Field(default=8192, description="Max tokens for a generated BRD")
    BRD_MAX_CONTENT_TOKENS: int = Field(
        default=80000, description="Token budget for aggregated document content"
    )

    @property
    def chunk_size_chars(self) -> int:
        return self.CHUNK_SIZE_TOKENS * self.CHARS_PER_TOKEN

    @property
    def chunk_overlap_chars(self) -> int:
        return self.CHUNK_OVERLAP_TOKENS * self.CHARS_PER_TOKEN

    @property
    def brd_max_content_chars(self) -> int:
        return self.BRD_MAX_CONTENT_TOKENS * self.CHARS_PER_TOKEN


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings instance

    Raises:
        ValidationError: If required environment variables are missing
    """
    return Settings()
