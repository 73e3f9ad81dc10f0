"""Session-scoped translation cache."""

from __future__ import annotations

from typing import Dict, Optional, Tuple


class TranslationCache:
    """Memoises backend output per (source_lang, text, target_lang) for one run."""

    def __init__(self):
        self._store: Dict[Tuple[str, str, str], str] = {}

    def get(self, source_lang: str, text: str, target_lang: str) -> Optional[str]:
        return self._store.get((source_lang, text, target_lang))

    def set(self, source_lang: str, text: str, target_lang: str, translation: str) -> None:
        self._store[(source_lang, text, target_lang)] = translation

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: Tuple[str, str, str]) -> bool:
        return key in self._store

    def stats(self) -> Dict[str, object]:
        languages = sorted({target for _, _, target in self._store})
        return {"entries": len(self._store), "languages": languages}
