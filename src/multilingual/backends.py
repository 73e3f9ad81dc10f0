"""
Translation backends.

Every backend satisfies one contract: ``translate_one`` (and, for batch
capable services, ``translate_batch``) returning plain strings and raising
on failure. The dispatcher turns results and exceptions into
``TranslationResult`` objects.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Type
from urllib.parse import quote

import httpx

from . import languages
from .dictionary import (
    PhraseDictionary,
    find_local_dictionary,
    get_builtin_dictionary,
    load_dictionary,
)
from .errors import BackendError, ConfigurationError, ErrorType, classify_http_error
from .llm_client import (
    DEFAULT_BASE_URL,
    DEFAULT_MODEL,
    build_translation_messages,
    call_llm_async,
    create_client,
)
from .text_utils import protect
from .transforms import TRANSFORMS

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

DEFAULT_LIBRETRANSLATE_INSTANCES = [
    "https://libretranslate.de",
    "https://translate.terraprint.co",
    "https://trans.zillyhuhn.com",
    "https://libretranslate.pussthecat.org",
]

DEFAULT_LINGVA_INSTANCES = [
    "https://lingva.ml",
    "https://translate.plausibility.cloud",
    "https://lingva.lunar.icu",
]

DEFAULT_ARGOS_ENDPOINT = "https://translate.argosopentech.com"
MYMEMORY_URL = "https://api.mymemory.translated.net/get"
GOOGLE_URL = "https://translation.googleapis.com/language/translate/v2"
DEEPL_FREE_URL = "https://api-free.deepl.com/v2"
DEEPL_PRO_URL = "https://api.deepl.com/v2"


class Backend:
    """Base class for every translation strategy."""

    name: str = ""
    description: str = ""
    supports_batch: bool = False
    max_batch_size: int = 1
    requires_credential: bool = False
    is_network: bool = False
    credential_env: Sequence[str] = ()

    def __init__(self, credential: Optional[str] = None, **options: Any):
        self.credential = credential
        self.options = options

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        raise NotImplementedError

    async def translate_batch(
        self, texts: Sequence[str], target_lang: str, source_lang: str
    ) -> List[str]:
        """One request for ``texts``; results are positional."""
        raise NotImplementedError(f"{self.name} does not support batch translation")

    def describe_error(self, error: Exception) -> str:
        _, message = classify_http_error(error, self.name)
        return message

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


# ---------------------------------------------------------------------------
# Network backends
# ---------------------------------------------------------------------------

class HTTPBackend(Backend):
    """Backend talking to an HTTP API through httpx."""

    is_network = True

    def __init__(self, credential: Optional[str] = None, **options: Any):
        super().__init__(credential, **options)
        self._client: Optional[httpx.AsyncClient] = options.get("client")
        self.timeout: float = options.get("timeout") or DEFAULT_TIMEOUT

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        if self._client is not None:
            resp = await self._client.request(method, url, timeout=self.timeout, **kwargs)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.request(method, url, **kwargs)
        resp.raise_for_status()
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError(f"Invalid response from {self.name}", self.name) from e

    async def _get(self, url: str, **kwargs: Any) -> Any:
        return await self._request("GET", url, **kwargs)

    async def _post(self, url: str, **kwargs: Any) -> Any:
        return await self._request("POST", url, **kwargs)


class FailoverBackend(HTTPBackend):
    """
    Backend served by several interchangeable instances.

    Instances are tried in order until one succeeds; the last error is
    raised if all of them fail. A credential is treated as a custom
    instance URL.
    """

    default_instances: Sequence[str] = ()

    def __init__(self, credential: Optional[str] = None, **options: Any):
        super().__init__(credential, **options)
        if credential:
            self.instances: List[str] = [credential.rstrip("/")]
        else:
            configured = options.get("instances") or self.default_instances
            self.instances = [url.rstrip("/") for url in configured]

    async def _translate_on(
        self, instance: str, text: str, target_lang: str, source_lang: str
    ) -> str:
        raise NotImplementedError

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        last_error: Optional[Exception] = None

        for instance in self.instances:
            try:
                return await self._translate_on(instance, text, target_lang, source_lang)
            except Exception as e:
                logger.debug(f"{self.name} instance {instance} failed: {e}")
                last_error = e

        if last_error is not None:
            raise last_error
        raise BackendError(f"All {self.name} instances failed", self.name)


class DeepLBackend(HTTPBackend):
    name = "deepl"
    description = "DeepL API (free keys end with ':fx')"
    supports_batch = True
    max_batch_size = 50
    requires_credential = True
    credential_env = ("DEEPL_API_KEY",)

    @property
    def base_url(self) -> str:
        if self.credential and self.credential.endswith(":fx"):
            return DEEPL_FREE_URL
        return DEEPL_PRO_URL

    async def translate_batch(
        self, texts: Sequence[str], target_lang: str, source_lang: str
    ) -> List[str]:
        data = await self._post(
            f"{self.base_url}/translate",
            data={
                "text": list(texts),
                "source_lang": languages.to_deepl(source_lang),
                "target_lang": languages.to_deepl(target_lang),
            },
            headers={"Authorization": f"DeepL-Auth-Key {self.credential}"},
        )
        translations = data.get("translations") if isinstance(data, dict) else None
        if not isinstance(translations, list):
            raise BackendError("Invalid response from DeepL", self.name)
        return [str(item.get("text", "")) for item in translations]

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        results = await self.translate_batch([text], target_lang, source_lang)
        if not results or not results[0]:
            raise BackendError("Invalid response from DeepL", self.name)
        return results[0]


class GoogleBackend(HTTPBackend):
    name = "google"
    description = "Google Cloud Translation API"
    requires_credential = True
    credential_env = ("GOOGLE_TRANSLATE_API_KEY",)

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        data = await self._post(
            GOOGLE_URL,
            json={
                "q": text,
                "source": languages.to_google(source_lang),
                "target": languages.to_google(target_lang),
                "format": "text",
            },
            params={"key": self.credential},
        )
        try:
            return data["data"]["translations"][0]["translatedText"]
        except (KeyError, IndexError, TypeError) as e:
            raise BackendError("Invalid response from Google Translate", self.name) from e


class LibreTranslateBackend(FailoverBackend):
    name = "libretranslate"
    description = "LibreTranslate public or self-hosted instances (free)"
    default_instances = DEFAULT_LIBRETRANSLATE_INSTANCES

    async def _translate_on(
        self, instance: str, text: str, target_lang: str, source_lang: str
    ) -> str:
        data = await self._post(
            f"{instance}/translate",
            json={
                "q": text,
                "source": languages.to_libretranslate(source_lang),
                "target": languages.to_libretranslate(target_lang),
                "format": "text",
            },
        )
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not translated:
            raise BackendError(f"Invalid response from LibreTranslate at {instance}", self.name)
        return translated


class LingvaBackend(FailoverBackend):
    name = "lingva"
    description = "Lingva Translate instances (free)"
    default_instances = DEFAULT_LINGVA_INSTANCES

    async def _translate_on(
        self, instance: str, text: str, target_lang: str, source_lang: str
    ) -> str:
        source = languages.to_lingva(source_lang)
        target = languages.to_lingva(target_lang)
        data = await self._get(f"{instance}/api/v1/{source}/{target}/{quote(text, safe='')}")
        translated = data.get("translation") if isinstance(data, dict) else None
        if not translated:
            raise BackendError(f"Invalid response from Lingva at {instance}", self.name)
        return translated


class MyMemoryBackend(HTTPBackend):
    name = "mymemory"
    description = "MyMemory (free, an email credential raises the daily quota)"

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        params = {"q": text, "langpair": f"{source_lang}|{target_lang}"}
        if self.credential and "@" in self.credential:
            params["de"] = self.credential

        data = await self._get(self.options.get("endpoint") or MYMEMORY_URL, params=params)
        translated = (data.get("responseData") or {}).get("translatedText") if isinstance(data, dict) else None
        if not translated:
            raise BackendError("Invalid response from MyMemory", self.name)
        # MyMemory 会把错误信息放在译文字段里
        if "MYMEMORY WARNING" in translated or "QUOTA EXCEEDED" in translated:
            raise BackendError(
                "MyMemory quota exceeded. Register for higher limits.", self.name, ErrorType.QUOTA
            )
        return translated


class ArgosBackend(HTTPBackend):
    name = "argos"
    description = "Argos Translate over the LibreTranslate protocol (free)"

    @property
    def endpoint(self) -> str:
        return (self.credential or self.options.get("endpoint") or DEFAULT_ARGOS_ENDPOINT).rstrip("/")

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        data = await self._post(
            f"{self.endpoint}/translate",
            json={"q": text, "source": source_lang, "target": target_lang},
        )
        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not translated:
            raise BackendError("Invalid response from Argos Translate", self.name)
        return translated


class LLMBackend(Backend):
    name = "llm"
    description = "OpenAI-compatible chat completion model"
    requires_credential = True
    is_network = True
    credential_env = ("OPENAI_API_KEY",)

    def __init__(self, credential: Optional[str] = None, **options: Any):
        super().__init__(credential, **options)
        self.model: str = options.get("model") or DEFAULT_MODEL
        self._client = options.get("llm_client") or create_client(
            credential or "",
            base_url=options.get("base_url") or DEFAULT_BASE_URL,
            timeout=options.get("timeout") or 60.0,
        )

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        messages = build_translation_messages(text, source_lang, target_lang)
        return await call_llm_async(self._client, self.model, messages)


# ---------------------------------------------------------------------------
# Offline backends
# ---------------------------------------------------------------------------

class DictionaryBackend(Backend):
    name = "dictionary"
    description = "Built-in phrase dictionaries (offline)"

    def _dictionary(self, source_lang: str, target_lang: str) -> Optional[PhraseDictionary]:
        return get_builtin_dictionary(source_lang, target_lang)

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        dictionary = self._dictionary(source_lang, target_lang)
        if not dictionary:
            return text
        protected = protect(text)
        return protected.restore(dictionary.translate(protected.masked))


class LocalDictionaryBackend(DictionaryBackend):
    name = "local"
    description = "Project dictionaries in .multilingual/dictionaries (offline)"

    def __init__(self, credential: Optional[str] = None, **options: Any):
        super().__init__(credential, **options)
        self.dictionaries_dir = Path(options.get("dictionaries_dir") or ".multilingual/dictionaries")
        self._loaded: Dict[tuple, Optional[PhraseDictionary]] = {}

    def _dictionary(self, source_lang: str, target_lang: str) -> Optional[PhraseDictionary]:
        key = (source_lang, target_lang)
        if key not in self._loaded:
            path = find_local_dictionary(self.dictionaries_dir, source_lang, target_lang)
            local = load_dictionary(path) if path else None
            # 本地词典不存在或为空时退回内置词典
            self._loaded[key] = local or get_builtin_dictionary(source_lang, target_lang)
        return self._loaded[key]


class TransformBackend(Backend):
    """Wraps a pure text transform from ``transforms``."""

    transform: Callable[[str], str]

    async def translate_one(self, text: str, target_lang: str, source_lang: str) -> str:
        return type(self).transform(text)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

BACKENDS: Dict[str, Type[Backend]] = {
    cls.name: cls
    for cls in (
        DeepLBackend,
        GoogleBackend,
        LLMBackend,
        LibreTranslateBackend,
        LingvaBackend,
        MyMemoryBackend,
        ArgosBackend,
        DictionaryBackend,
        LocalDictionaryBackend,
    )
}

_TRANSFORM_DESCRIPTIONS = {
    "pseudo": "Pseudo-localization for UI testing",
    "piglatin": "Pig Latin",
    "emoji": "Emoji substitution",
    "leet": "L33t speak",
    "reverse": "Reversed text (RTL testing)",
    "mirror": "Upside-down text",
    "uppercase": "UPPERCASE",
    "lowercase": "lowercase",
    "morse": "Morse code",
    "nato": "NATO phonetic alphabet",
}

for _name, _func in TRANSFORMS.items():
    BACKENDS[_name] = type(
        f"{_name.capitalize()}Backend",
        (TransformBackend,),
        {
            "name": _name,
            "description": _TRANSFORM_DESCRIPTIONS.get(_name, _name),
            "transform": staticmethod(_func),
        },
    )

# "none" 表示不翻译，直接复制原文
NO_BACKEND = "none"


def available_backends() -> List[str]:
    return list(BACKENDS)


def get_backend_class(name: str) -> Type[Backend]:
    try:
        return BACKENDS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown translation backend '{name}'. Available: {', '.join(BACKENDS)}"
        ) from None


def create_backend(name: str, credential: Optional[str] = None, **options: Any) -> Backend:
    """
    Look up and instantiate a backend.

    Raises:
        ConfigurationError: unknown backend, or a metered backend without credential
    """
    cls = get_backend_class(name)
    if cls.requires_credential and not credential:
        env_hint = " or ".join(list(cls.credential_env) + ["MULTILINGUAL_API_KEY"])
        raise ConfigurationError(
            f"{name} requires an API key. Set {env_hint} or pass --credential"
        )
    return cls(credential, **options)
