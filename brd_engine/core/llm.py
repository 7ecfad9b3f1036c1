"""Anthropic client helpers for one-shot completions and streamed replies."""

from collections.abc import AsyncGenerator

from anthropic import Anthropic, AsyncAnthropic

from brd_engine.core.config import get_settings
from brd_engine.core.errors import GenerationServiceError
from brd_engine.core.logging import get_logger

logger = get_logger(__name__)


def _get_client() -> Anthropic:
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise GenerationServiceError("ANTHROPIC_API_KEY is not configured")
    return Anthropic(api_key=settings.ANTHROPIC_API_KEY)


def _get_async_client() -> AsyncAnthropic:
    settings = get_settings()
    if not settings.ANTHROPIC_API_KEY:
        raise GenerationServiceError("ANTHROPIC_API_KEY is not configured")
    return AsyncAnthropic(api_key=settings.ANTHROPIC_API_KEY)


def complete(
    messages: list[dict[str, str]],
    system_prompt: str,
    model: str,
    max_tokens: int,
) -> str:
    """
    Run a single non-streaming completion and return its text.

    Args:
        messages: Anthropic-format message list
        system_prompt: System prompt
        model: Model name
        max_tokens: Response token ceiling

    Returns:
        Concatenated text blocks of the response

    Raises:
        GenerationServiceError: If the API call fails or returns no text
    """
    client = _get_client()

    try:
        response = client.messages.create(
            model=model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=messages,
        )
    except Exception as e:
        logger.error(f"Generation request failed: {e}")
        raise GenerationServiceError(str(e)) from e

    text = "".join(block.text for block in response.content if block.type == "text")
    if not text:
        raise GenerationServiceError("Generation returned no text content")

    usage = getattr(response, "usage", None)
    logger.info(
        f"Completed generation with {model}",
        extra={
            "model": model,
            "input_tokens": getattr(usage, "input_tokens", 0),
            "output_tokens": getattr(usage, "output_tokens", 0),
        },
    )
    return text


async def stream_completion(
    messages: list[dict[str, str]],
    system_prompt: str,
    model: str,
    max_tokens: int,
) -> AsyncGenerator[str, None]:
    """Yield text fragments as the model produces them.

    Raises:
        GenerationServiceError: If the stream cannot be opened or breaks mid-way
    """
    client = _get_async_client()

    try:
        async with client.messages.stream(
            model=model,
            max_tokens=max_tokens,
            system=system_prompt,
            messages=messages,
        ) as stream:
            async for event in stream:
                if getattr(event, "type", None) == "content_block_delta":
                    delta_text = getattr(event.delta, "text", None)
                    if delta_text:
                        yield delta_text
    except GenerationServiceError:
        raise
    except Exception as e:
        logger.error(f"Streaming generation failed: {e}")
        raise GenerationServiceError(str(e)) from e
