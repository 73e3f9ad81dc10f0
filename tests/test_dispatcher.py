"""Tests for the backend dispatcher."""

import asyncio
from urllib.parse import parse_qs

import httpx
import pytest

from multilingual.backends import Backend, DeepLBackend
from multilingual.cache import TranslationCache
from multilingual.dispatcher import TranslationDispatcher
from multilingual.errors import BackendError, ConfigurationError
from multilingual.memory import TranslationMemory


class FakeBackend(Backend):
    """Sequential network backend that records every call."""

    name = "fake"
    is_network = True

    def __init__(self, fail_on=()):
        super().__init__()
        self.calls = []
        self.fail_on = set(fail_on)

    async def translate_one(self, text, target_lang, source_lang):
        self.calls.append(text)
        if text in self.fail_on:
            raise BackendError("FAKE service temporarily unavailable", self.name)
        return f"{text}-{target_lang}"


class FakeBatchBackend(Backend):
    name = "fakebatch"
    supports_batch = True
    max_batch_size = 50
    is_network = True

    def __init__(self, fail_batch=None, drop_last=False):
        super().__init__()
        self.batches = []
        self.fail_batch = fail_batch
        self.drop_last = drop_last

    async def translate_batch(self, texts, target_lang, source_lang):
        self.batches.append(list(texts))
        if self.fail_batch == len(self.batches):
            raise BackendError("FAKEBATCH quota exceeded. Please check your plan limits.", self.name)
        result = [f"{t}-{target_lang}" for t in texts]
        return result[:-1] if self.drop_last else result


class OfflineBackend(FakeBackend):
    name = "offline"
    is_network = False


class SleepRecorder:

    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def make_dispatcher(backend, **kwargs):
    sleep = SleepRecorder()
    dispatcher = TranslationDispatcher(backend=backend, sleep=sleep, **kwargs)
    return dispatcher, sleep


class TestTranslate:

    @pytest.mark.asyncio
    async def test_backend_called(self):
        backend = FakeBackend()
        dispatcher, _ = make_dispatcher(backend)

        result = await dispatcher.translate("Hello", "es", "en")
        assert result.success
        assert result.text == "Hello-es"
        assert result.backend == "fake"
        assert not result.cached

    @pytest.mark.asyncio
    async def test_cache_hit(self):
        backend = FakeBackend()
        dispatcher, _ = make_dispatcher(backend)

        await dispatcher.translate("Hello", "es", "en")
        second = await dispatcher.translate("Hello", "es", "en")

        assert backend.calls == ["Hello"]
        assert second.cached
        assert second.text == "Hello-es"

    @pytest.mark.asyncio
    async def test_same_language_short_circuit(self):
        backend = FakeBackend()
        dispatcher, _ = make_dispatcher(backend)

        result = await dispatcher.translate("Hello", "en", "en")
        assert result.success
        assert result.text == "Hello"
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_memory_hit_skips_backend(self):
        memory = TranslationMemory()
        memory.add("Hello world", "Hola mundo", "en", "es", "deepl")
        backend = FakeBackend()
        dispatcher, _ = make_dispatcher(backend, memory=memory)

        result = await dispatcher.translate("hello world", "es", "en")
        assert result.text == "Hola mundo"
        assert result.cached
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_weak_memory_match_still_calls_backend(self):
        memory = TranslationMemory()
        memory.add("hello world", "hola mundo", "en", "es", "deepl")
        backend = FakeBackend()
        dispatcher, _ = make_dispatcher(backend, memory=memory)

        # 0.91 is enough for a lookup but not to skip the backend
        result = await dispatcher.translate("hello wrld", "es", "en")
        assert result.text == "hello wrld-es"
        assert backend.calls == ["hello wrld"]

    @pytest.mark.asyncio
    async def test_write_through(self):
        memory = TranslationMemory()
        cache = TranslationCache()
        dispatcher, _ = make_dispatcher(FakeBackend(), memory=memory, cache=cache)

        await dispatcher.translate("Save", "de", "en")
        assert cache.get("en", "Save", "de") == "Save-de"
        assert memory.lookup("Save", "de", "en").translation == "Save-de"

    @pytest.mark.asyncio
    async def test_failure_is_a_result(self):
        memory = TranslationMemory()
        dispatcher, _ = make_dispatcher(FakeBackend(fail_on={"Boom"}), memory=memory)

        result = await dispatcher.translate("Boom", "es", "en")
        assert not result.success
        assert result.error == "FAKE service temporarily unavailable"
        assert len(memory) == 0

    @pytest.mark.asyncio
    async def test_none_copies_source(self):
        dispatcher, _ = make_dispatcher("none")
        result = await dispatcher.translate("Hello", "es", "en")
        assert result.success
        assert result.text == "Hello"

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        dispatcher, _ = make_dispatcher("deepl")
        with pytest.raises(ConfigurationError):
            await dispatcher.translate("Hello", "es", "en")

    @pytest.mark.asyncio
    async def test_unknown_backend(self):
        dispatcher, _ = make_dispatcher("babelfish")
        with pytest.raises(ConfigurationError):
            await dispatcher.translate_batch(["Hello"], "es", "en")

    @pytest.mark.asyncio
    async def test_registry_lookup_once(self):
        dispatcher, _ = make_dispatcher("dictionary")
        assert dispatcher.resolve() is dispatcher.resolve("dictionary")
        result = await dispatcher.translate("Hello", "es", "en")
        assert result.text == "Hola"


class TestBatchDispatch:

    @pytest.mark.asyncio
    async def test_120_items_three_batches(self):
        backend = FakeBatchBackend()
        dispatcher, sleep = make_dispatcher(backend)
        texts = [f"string {i}" for i in range(120)]

        results = await dispatcher.translate_batch(texts, "fr", "en")

        assert [len(b) for b in backend.batches] == [50, 50, 20]
        assert sleep.delays == [0.1, 0.1]
        assert all(results[t].text == f"{t}-fr" for t in texts)

    @pytest.mark.asyncio
    async def test_batch_size_configurable(self):
        backend = FakeBatchBackend()
        dispatcher, _ = make_dispatcher(backend, batch_size=10)
        await dispatcher.translate_batch([f"s{i}" for i in range(25)], "fr", "en")
        assert [len(b) for b in backend.batches] == [10, 10, 5]

    @pytest.mark.asyncio
    async def test_failed_batch_marks_every_item(self):
        backend = FakeBatchBackend(fail_batch=2)
        dispatcher, _ = make_dispatcher(backend, batch_size=2)
        texts = ["a", "b", "c", "d", "e"]

        results = await dispatcher.translate_batch(texts, "fr", "en")

        assert results["a"].success and results["b"].success
        assert not results["c"].success and not results["d"].success
        assert results["c"].error == results["d"].error
        assert "quota exceeded" in results["c"].error
        assert results["e"].success

    @pytest.mark.asyncio
    async def test_short_response(self):
        backend = FakeBatchBackend(drop_last=True)
        dispatcher, _ = make_dispatcher(backend)

        results = await dispatcher.translate_batch(["a", "b"], "fr", "en")
        assert results["a"].text == "a-fr"
        assert not results["b"].success

    @pytest.mark.asyncio
    async def test_cached_items_not_sent(self):
        backend = FakeBatchBackend()
        dispatcher, _ = make_dispatcher(backend)

        await dispatcher.translate_batch(["a", "b"], "fr", "en")
        await dispatcher.translate_batch(["a", "b", "c"], "fr", "en")
        assert backend.batches == [["a", "b"], ["c"]]

    @pytest.mark.asyncio
    async def test_duplicates_sent_once(self):
        backend = FakeBatchBackend()
        dispatcher, _ = make_dispatcher(backend)

        results = await dispatcher.translate_batch(["a", "a", "b"], "fr", "en")
        assert backend.batches == [["a", "b"]]
        assert set(results) == {"a", "b"}


class TestSequentialDispatch:

    @pytest.mark.asyncio
    async def test_delay_between_network_calls(self):
        backend = FakeBackend()
        dispatcher, sleep = make_dispatcher(backend, rate_limit_delay_ms=250)

        await dispatcher.translate_batch(["a", "b", "c"], "es", "en")
        assert backend.calls == ["a", "b", "c"]
        assert sleep.delays == [0.25, 0.25]

    @pytest.mark.asyncio
    async def test_offline_no_delay(self):
        backend = OfflineBackend()
        dispatcher, sleep = make_dispatcher(backend)

        await dispatcher.translate_batch(["a", "b", "c"], "es", "en")
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_item_failure_not_fatal(self):
        backend = FakeBackend(fail_on={"b"})
        dispatcher, _ = make_dispatcher(backend)

        results = await dispatcher.translate_batch(["a", "b", "c"], "es", "en")
        assert results["a"].success
        assert not results["b"].success
        assert results["c"].success

    @pytest.mark.asyncio
    async def test_cancellation_stops_calls(self):
        cancel = asyncio.Event()

        class CancellingBackend(FakeBackend):
            async def translate_one(self, text, target_lang, source_lang):
                cancel.set()
                return await super().translate_one(text, target_lang, source_lang)

        backend = CancellingBackend()
        dispatcher, _ = make_dispatcher(backend)

        results = await dispatcher.translate_batch(["a", "b", "c"], "es", "en", cancel_event=cancel)
        assert backend.calls == ["a"]
        assert results["a"].success
        assert results["b"].error == "Cancelled"
        assert results["c"].error == "Cancelled"

    @pytest.mark.asyncio
    async def test_progress(self):
        progress = []
        dispatcher, _ = make_dispatcher(OfflineBackend())

        await dispatcher.translate_batch(
            ["a", "b"], "es", "en", on_progress=lambda done, total: progress.append((done, total))
        )
        assert progress == [(1, 2), (2, 2)]


class TestHTTPErrorClassification:

    @staticmethod
    def deepl_dispatcher(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        dispatcher, _ = make_dispatcher(DeepLBackend("key:fx", client=client))
        return dispatcher, client

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,expected", [
        (401, "DEEPL API key is invalid or expired"),
        (403, "DEEPL API key is invalid or expired"),
        (429, "DEEPL rate limit exceeded. Please try again later."),
        (456, "DEEPL quota exceeded. Please check your plan limits."),
        (500, "DEEPL service temporarily unavailable"),
        (503, "DEEPL service temporarily unavailable"),
    ])
    async def test_status_codes(self, status, expected):
        dispatcher, client = self.deepl_dispatcher(lambda request: httpx.Response(status))
        async with client:
            results = await dispatcher.translate_batch(["Hello", "World"], "de", "en")

        assert results["Hello"].error == expected
        assert results["World"].error == expected

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher, client = self.deepl_dispatcher(handler)
        async with client:
            result = await dispatcher.translate("Hello", "de", "en")

        assert result.error == "Network error: Unable to reach DEEPL API"

    @pytest.mark.asyncio
    async def test_passthrough_message(self):
        dispatcher, client = self.deepl_dispatcher(
            lambda request: httpx.Response(400, json={"message": "Value for 'target_lang' not supported."})
        )
        async with client:
            result = await dispatcher.translate("Hello", "xx", "en")

        assert result.error == "Value for 'target_lang' not supported."

    @pytest.mark.asyncio
    async def test_deepl_batches_over_http(self):
        requests = []

        def handler(request):
            texts = parse_qs(request.content.decode())["text"]
            requests.append(texts)
            return httpx.Response(200, json={"translations": [{"text": t[::-1]} for t in texts]})

        dispatcher, client = self.deepl_dispatcher(handler)
        texts = [f"item {i}" for i in range(120)]
        async with client:
            results = await dispatcher.translate_batch(texts, "de", "en")

        assert [len(r) for r in requests] == [50, 50, 20]
        assert results["item 7"].text == "7 meti"
