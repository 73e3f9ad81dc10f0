"""Tests for the LLM client and the llm backend."""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from openai import (
    APIConnectionError,
    APIStatusError,
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
)

from multilingual.backends import LLMBackend, create_backend
from multilingual.dispatcher import TranslationDispatcher
from multilingual.errors import BackendError, ErrorType
from multilingual.llm_client import (
    build_translation_messages,
    call_llm_async,
    classify_error,
)

REQUEST = httpx.Request("POST", "https://llm.test/v1/chat/completions")


def status_error(cls, status):
    response = httpx.Response(status, request=REQUEST)
    return cls(f"status {status}", response=response, body=None)


def completion(content):
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def stub_client(create):
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


class TestClassifyError:

    def test_rate_limit(self):
        assert classify_error(status_error(RateLimitError, 429)) is ErrorType.RATE_LIMIT

    @pytest.mark.parametrize("cls,status", [
        (AuthenticationError, 401),
        (PermissionDeniedError, 403),
    ])
    def test_auth(self, cls, status):
        assert classify_error(status_error(cls, status)) is ErrorType.AUTH

    @pytest.mark.parametrize("status,expected", [
        (456, ErrorType.QUOTA),
        (502, ErrorType.SERVER),
        (418, ErrorType.UNKNOWN),
    ])
    def test_status(self, status, expected):
        assert classify_error(status_error(APIStatusError, status)) is expected

    def test_connection(self):
        assert classify_error(APIConnectionError(request=REQUEST)) is ErrorType.CONNECTION

    def test_other(self):
        assert classify_error(ValueError("boom")) is ErrorType.UNKNOWN


class TestCallLlm:

    @pytest.mark.asyncio
    async def test_content_stripped(self):
        create = AsyncMock(return_value=completion("  Hola  \n"))
        messages = build_translation_messages("Hello", "en", "es")

        result = await call_llm_async(stub_client(create), "test-model", messages)

        assert result == "Hola"
        assert create.await_args.kwargs["model"] == "test-model"
        assert create.await_args.kwargs["messages"][1] == {"role": "user", "content": "Hello"}

    @pytest.mark.asyncio
    async def test_empty_content(self):
        create = AsyncMock(return_value=completion("   "))
        with pytest.raises(BackendError, match="Empty response"):
            await call_llm_async(stub_client(create), "m", [])

    @pytest.mark.asyncio
    async def test_no_choices(self):
        create = AsyncMock(return_value=SimpleNamespace(choices=[]))
        with pytest.raises(BackendError):
            await call_llm_async(stub_client(create), "m", [])

    @pytest.mark.asyncio
    async def test_exception_wrapped(self):
        create = AsyncMock(side_effect=status_error(RateLimitError, 429))
        with pytest.raises(BackendError) as exc_info:
            await call_llm_async(stub_client(create), "m", [])

        assert exc_info.value.error_type is ErrorType.RATE_LIMIT
        assert str(exc_info.value) == "LLM rate limit exceeded. Please try again later."

    def test_prompt_names_languages(self):
        system = build_translation_messages("Hi {name}", "en", "de")[0]["content"]
        assert "{name}" in system
        assert "Output only the translation" in system


class TestLlmBackend:

    def test_requires_credential(self):
        assert LLMBackend.requires_credential
        assert LLMBackend.credential_env == ("OPENAI_API_KEY",)

    @pytest.mark.asyncio
    async def test_translate_one(self):
        create = AsyncMock(return_value=completion("Bonjour"))
        backend = create_backend("llm", "sk-test", model="tiny", llm_client=stub_client(create))

        assert await backend.translate_one("Hello", "fr", "en") == "Bonjour"
        assert create.await_args.kwargs["model"] == "tiny"

    @pytest.mark.asyncio
    async def test_failure_through_dispatcher(self):
        create = AsyncMock(side_effect=status_error(AuthenticationError, 401))
        backend = LLMBackend("sk-test", llm_client=stub_client(create))
        dispatcher = TranslationDispatcher(backend=backend, rate_limit_delay_ms=0)

        result = await dispatcher.translate("Hello", "fr", "en")

        assert not result.success
        assert result.error == "LLM API key is invalid or expired"
