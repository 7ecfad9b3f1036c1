"""Audio transcription via OpenAI Whisper."""

import asyncio

from openai import OpenAI

from brd_engine.core.config import get_settings
from brd_engine.core.errors import TranscriptionServiceError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


def _get_client() -> OpenAI:
    """Get OpenAI client instance."""
    settings = get_settings()
    return OpenAI(api_key=settings.OPENAI_API_KEY)


def transcribe_audio(audio_bytes: bytes, filename: str) -> str:
    """
    Transcribe an audio file to text.

    Args:
        audio_bytes: Raw audio content
        filename: Original filename (the extension tells the API the codec)

    Returns:
        Transcript text

    Raises:
        TranscriptionServiceError: If the transcription call fails
    """
    settings = get_settings()
    client = _get_client()

    try:
        response = client.audio.transcriptions.create(
            file=(filename, audio_bytes),
            model=settings.TRANSCRIPTION_MODEL,
            language=settings.TRANSCRIPTION_LANGUAGE,
        )
    except Exception as e:
        logger.error(f"Failed to transcribe {filename}: {e}")
        raise TranscriptionServiceError(f"Failed to transcribe audio file: {e}") from e

    logger.info(
        f"Transcribed {filename} using {settings.TRANSCRIPTION_MODEL}",
        extra={"model": settings.TRANSCRIPTION_MODEL, "chars": len(response.text or "")},
    )
    return response.text or ""


async def transcribe_audio_async(audio_bytes: bytes, filename: str) -> str:
    """Async wrapper around transcribe_audio using thread pool."""
    return await asyncio.to_thread(transcribe_audio, audio_bytes, filename)
