"""LLM API client utilities."""

from __future__ import annotations

import logging
from typing import Dict, List

from openai import (
    AsyncOpenAI,
    APIConnectionError,
    RateLimitError,
    AuthenticationError,
    PermissionDeniedError,
    APIStatusError,
)

from .errors import BackendError, ErrorType, classify_status, describe_error
from .languages import language_name

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


def classify_error(error: Exception) -> ErrorType:
    """把 OpenAI SDK 的异常映射到统一的错误分类。"""
    if isinstance(error, RateLimitError):
        return ErrorType.RATE_LIMIT
    elif isinstance(error, APIConnectionError):
        return ErrorType.CONNECTION
    elif isinstance(error, (AuthenticationError, PermissionDeniedError)):
        return ErrorType.AUTH
    elif isinstance(error, APIStatusError):
        return classify_status(getattr(error, "status_code", 0) or 0)
    else:
        return ErrorType.UNKNOWN


def build_translation_messages(
    text: str,
    source_lang: str,
    target_lang: str,
) -> List[Dict[str, str]]:
    """Build the chat messages for a single-string translation."""
    system_prompt = (
        f"You are a professional software localizer. Translate the user's text from "
        f"{language_name(source_lang)} to {language_name(target_lang)}. "
        "Keep placeholders such as {name}, {{name}}, ${name}, %s and HTML tags exactly as they are. "
        "Output only the translation, no explanation."
    )
    return [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": text},
    ]


async def call_llm_async(
    client: AsyncOpenAI,
    model: str,
    messages: List[Dict[str, str]],
    temperature: float = 0.3,
) -> str:
    """
    Make one async call to the chat completions API.

    Args:
        client: AsyncOpenAI client instance
        model: Model name to use
        messages: List of message dictionaries
        temperature: Sampling temperature

    Returns:
        Response content, stripped

    Raises:
        BackendError: classified failure; never retried here
    """
    try:
        response = await client.chat.completions.create(
            model=model,
            messages=messages,
            temperature=temperature,
        )
    except Exception as e:
        error_type = classify_error(e)
        logger.debug(f"LLM call failed ({error_type.value}): {e}")
        raise BackendError(describe_error(error_type, "llm", str(e)), "llm", error_type) from e

    content = response.choices[0].message.content if response.choices else None
    if not content or not content.strip():
        raise BackendError("Empty response from LLM", "llm")
    return content.strip()


def create_client(
    api_key: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = 60.0,
) -> AsyncOpenAI:
    """
    Create an AsyncOpenAI client.

    SDK-level retries are disabled; retry policy belongs to the caller.
    """
    return AsyncOpenAI(
        api_key=api_key,
        base_url=base_url,
        timeout=timeout,
        max_retries=0,
    )
