"""Audio extractor: the transcript is the document text."""

from brd_engine.core import transcription
from brd_engine.core.document_processing.base import (
    BaseExtractor,
    ExtractorRegistry,
    FileType,
)


class AudioExtractor(BaseExtractor):
    """Delegates to the speech-to-text service.

    TranscriptionServiceError propagates unchanged so the pipeline records a
    service failure rather than a format error.
    """

    file_type = FileType.AUDIO

    async def extract(self, file_bytes: bytes, filename: str) -> str:
        return await transcription.transcribe_audio_async(file_bytes, filename)


ExtractorRegistry.register(AudioExtractor())
