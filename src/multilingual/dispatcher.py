"""Backend dispatch: cache, translation memory, batching and pacing."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

from .backends import NO_BACKEND, Backend, create_backend
from .cache import TranslationCache
from .memory import TranslationMemory
from .models import TranslationResult
from .text_utils import sanitize_error

logger = logging.getLogger(__name__)

# 记忆库命中必须达到该相似度才会跳过后端调用
MEMORY_ACCEPT_THRESHOLD = 0.95
DEFAULT_BATCH_SIZE = 50
DEFAULT_DELAY_MS = 100

ProgressCallback = Callable[[int, int], None]
SleepFunc = Callable[[float], Awaitable[Any]]

CANCELLED_ERROR = "Cancelled"
MISSING_ERROR = "Missing from response"


class TranslationDispatcher:
    """
    Routes strings to a backend.

    Per string: session cache, then source == target, then translation
    memory (similarity >= 0.95), then the backend. Successful backend output
    is written through to both cache and memory. Backend exceptions become
    failed results; only configuration errors propagate.
    """

    def __init__(
        self,
        backend: Union[str, Backend] = NO_BACKEND,
        credential: Optional[str] = None,
        cache: Optional[TranslationCache] = None,
        memory: Optional[TranslationMemory] = None,
        rate_limit_delay_ms: int = DEFAULT_DELAY_MS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        backend_options: Union[Dict[str, Any], Callable[[str], Dict[str, Any]], None] = None,
        sleep: Optional[SleepFunc] = None,
    ):
        self.default_backend = backend
        self.credential = credential
        self.cache = cache if cache is not None else TranslationCache()
        self.memory = memory
        self.rate_limit_delay_ms = rate_limit_delay_ms
        self.batch_size = batch_size
        self.backend_options = backend_options or {}
        self._sleep = sleep or asyncio.sleep
        self._instances: Dict[str, Backend] = {}

    @classmethod
    def from_config(cls, config, memory: Optional[TranslationMemory] = None) -> "TranslationDispatcher":
        return cls(
            backend=config.backend,
            credential=config.credential,
            memory=memory,
            rate_limit_delay_ms=config.rate_limit_delay_ms,
            batch_size=config.batch_size,
            backend_options=config.backend_options,
        )

    def resolve(self, backend: Union[str, Backend, None] = None) -> Optional[Backend]:
        """
        Return the backend instance for ``backend`` (None means "copy source").

        Raises:
            ConfigurationError: unknown backend or missing credential
        """
        backend = backend if backend is not None else self.default_backend
        if isinstance(backend, Backend):
            return backend
        if backend == NO_BACKEND:
            return None
        if backend not in self._instances:
            options = (
                self.backend_options(backend)
                if callable(self.backend_options)
                else dict(self.backend_options)
            )
            self._instances[backend] = create_backend(backend, self.credential, **options)
        return self._instances[backend]

    async def _pause(self) -> None:
        if self.rate_limit_delay_ms > 0:
            await self._sleep(self.rate_limit_delay_ms / 1000)

    def _lookup(
        self, text: str, target_lang: str, source_lang: str, backend_name: str
    ) -> Optional[TranslationResult]:
        cached = self.cache.get(source_lang, text, target_lang)
        if cached is not None:
            return TranslationResult.ok(cached, backend_name, cached=True)

        if source_lang == target_lang or not text.strip():
            return TranslationResult.ok(text, backend_name)

        if self.memory is not None:
            match = self.memory.lookup(
                text, target_lang, source_lang, threshold=MEMORY_ACCEPT_THRESHOLD
            )
            if match is not None:
                logger.debug(f"Memory hit ({match.similarity:.2f}) for '{text[:40]}'")
                self.cache.set(source_lang, text, target_lang, match.translation)
                return TranslationResult.ok(match.translation, backend_name, cached=True)

        return None

    def _remember(
        self, text: str, translated: str, target_lang: str, source_lang: str, backend_name: str
    ) -> None:
        self.cache.set(source_lang, text, target_lang, translated)
        if self.memory is not None:
            self.memory.add(text, translated, source_lang, target_lang, backend_name)

    def _failure(self, impl: Backend, error: Exception) -> TranslationResult:
        message = sanitize_error(impl.describe_error(error))
        return TranslationResult.failed(message, impl.name)

    async def _call_backend(
        self, impl: Backend, text: str, target_lang: str, source_lang: str
    ) -> TranslationResult:
        try:
            translated = await impl.translate_one(text, target_lang, source_lang)
        except Exception as e:
            result = self._failure(impl, e)
            logger.debug(f"{impl.name} failed for '{text[:40]}': {result.error}")
            return result

        if not translated:
            return TranslationResult.failed(f"Empty response from {impl.name}", impl.name)

        self._remember(text, translated, target_lang, source_lang, impl.name)
        return TranslationResult.ok(translated, impl.name)

    async def translate(
        self,
        text: str,
        target_lang: str,
        source_lang: str,
        backend: Union[str, Backend, None] = None,
    ) -> TranslationResult:
        """Translate a single string."""
        impl = self.resolve(backend)
        name = impl.name if impl is not None else NO_BACKEND

        early = self._lookup(text, target_lang, source_lang, name)
        if early is not None:
            return early
        if impl is None:
            return TranslationResult.ok(text, NO_BACKEND)

        return await self._call_backend(impl, text, target_lang, source_lang)

    async def translate_batch(
        self,
        texts: Sequence[str],
        target_lang: str,
        source_lang: str,
        backend: Union[str, Backend, None] = None,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, TranslationResult]:
        """
        Translate many strings.

        Returns:
            Mapping from each distinct input text to its result
        """
        impl = self.resolve(backend)
        name = impl.name if impl is not None else NO_BACKEND

        results: Dict[str, TranslationResult] = {}
        pending: List[str] = []
        for text in dict.fromkeys(texts):
            early = self._lookup(text, target_lang, source_lang, name)
            if early is not None:
                results[text] = early
            else:
                pending.append(text)

        if pending:
            logger.debug(
                f"{len(results)} of {len(results) + len(pending)} strings resolved "
                f"without calling {name}"
            )

        if impl is None:
            for text in pending:
                results[text] = TranslationResult.ok(text, NO_BACKEND)
        elif impl.supports_batch:
            await self._dispatch_batches(
                impl, pending, target_lang, source_lang, results, on_progress, cancel_event
            )
        else:
            await self._dispatch_sequential(
                impl, pending, target_lang, source_lang, results, on_progress, cancel_event
            )

        return results

    async def _dispatch_batches(
        self,
        impl: Backend,
        pending: List[str],
        target_lang: str,
        source_lang: str,
        results: Dict[str, TranslationResult],
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        size = max(1, min(self.batch_size, impl.max_batch_size))
        chunks = [pending[i:i + size] for i in range(0, len(pending), size)]
        done = 0

        for n, chunk in enumerate(chunks):
            if cancel_event is not None and cancel_event.is_set():
                for text in chunk:
                    results[text] = TranslationResult.failed(CANCELLED_ERROR, impl.name)
                continue

            if n > 0:
                await self._pause()

            logger.debug(f"{impl.name} batch {n + 1}/{len(chunks)} ({len(chunk)} strings)")
            try:
                translated = await impl.translate_batch(chunk, target_lang, source_lang)
            except Exception as e:
                failure = self._failure(impl, e)
                logger.warning(f"{impl.name} batch {n + 1} failed: {failure.error}")
                for text in chunk:
                    results[text] = failure
            else:
                # 假设返回顺序与请求一致
                for i, text in enumerate(chunk):
                    if i < len(translated) and translated[i]:
                        self._remember(text, translated[i], target_lang, source_lang, impl.name)
                        results[text] = TranslationResult.ok(translated[i], impl.name)
                    else:
                        results[text] = TranslationResult.failed(MISSING_ERROR, impl.name)

            done += len(chunk)
            if on_progress:
                on_progress(done, len(pending))

    async def _dispatch_sequential(
        self,
        impl: Backend,
        pending: List[str],
        target_lang: str,
        source_lang: str,
        results: Dict[str, TranslationResult],
        on_progress: Optional[ProgressCallback],
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        for i, text in enumerate(pending):
            if cancel_event is not None and cancel_event.is_set():
                for remaining in pending[i:]:
                    results[remaining] = TranslationResult.failed(CANCELLED_ERROR, impl.name)
                break

            # 离线后端不需要限速
            if i > 0 and impl.is_network:
                await self._pause()

            results[text] = await self._call_backend(impl, text, target_lang, source_lang)
            if on_progress:
                on_progress(i + 1, len(pending))
