"""Translation memory: a durable, fuzzy-searchable log of past translations."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

from .models import MemoryMatch, TranslationMemoryEntry

logger = logging.getLogger(__name__)

MEMORY_VERSION = "1.0"
DEFAULT_LOOKUP_THRESHOLD = 0.85


def levenshtein_distance(a: str, b: str) -> int:
    """Classic DP edit distance; insert, delete and substitute all cost 1."""
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    # 只保留上一行，O(min) 内存
    previous = list(range(len(a) + 1))
    for i, cb in enumerate(b, 1):
        current = [i]
        for j, ca in enumerate(a, 1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(min(previous[j - 1], current[j - 1], previous[j]) + 1)
        previous = current
    return previous[-1]


def calculate_similarity(a: str, b: str) -> float:
    """``1 - distance / max(len)``; 1.0 for identical strings, 0.0 if either is empty."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return 1 - levenshtein_distance(a, b) / max(len(a), len(b))


def _normalize(text: str) -> str:
    return text.strip().lower()


class TranslationMemory:
    """
    In-memory translation memory backed by a JSON file.

    The file is read once on construction and only written by ``flush()``;
    entries added since the last flush are lost if the process dies.
    """

    def __init__(self, path: Optional[Path] = None, best_match: bool = False):
        self.path = path
        # 原工具返回第一个达到阈值的条目，而非最相似的条目；best_match 可切换
        self.best_match = best_match
        self._entries: List[TranslationMemoryEntry] = []
        self._dirty = False
        if path is not None:
            self.load()

    @property
    def entries(self) -> List[TranslationMemoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def load(self) -> None:
        """Load entries from disk; missing or corrupt files give an empty memory."""
        self._entries = []
        self._dirty = False

        if self.path is None or not self.path.exists():
            return

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
            self._entries = [
                TranslationMemoryEntry.from_dict(item) for item in data.get("entries", [])
            ]
            logger.debug(f"Loaded {len(self._entries)} translation memory entries from {self.path}")
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to load translation memory, starting empty: {e}")
            self._entries = []

    def flush(self) -> bool:
        """
        Write the memory to disk.

        Returns:
            True if successful
        """
        if self.path is None:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8") as f:
                json.dump(self.export(), f, ensure_ascii=False, indent=2)
            self._dirty = False
            logger.debug(f"Translation memory saved to {self.path}")
            return True
        except OSError as e:
            logger.error(f"Failed to save translation memory: {e}")
            return False

    @property
    def dirty(self) -> bool:
        return self._dirty

    def _exists(self, source: str, source_lang: str, target_lang: str) -> bool:
        return any(
            e.source == source and e.source_lang == source_lang and e.target_lang == target_lang
            for e in self._entries
        )

    def add(
        self,
        source: str,
        target: str,
        source_lang: str,
        target_lang: str,
        backend: str,
    ) -> bool:
        """
        Record a translation; first write wins.

        Returns:
            True if a new entry was stored
        """
        if self._exists(source, source_lang, target_lang):
            return False
        self._entries.append(
            TranslationMemoryEntry(
                source=source,
                target=target,
                source_lang=source_lang,
                target_lang=target_lang,
                backend=backend,
            )
        )
        self._dirty = True
        return True

    def lookup(
        self,
        text: str,
        target_lang: str,
        source_lang: str,
        threshold: float = DEFAULT_LOOKUP_THRESHOLD,
    ) -> Optional[MemoryMatch]:
        """
        Fuzzy lookup for ``text`` in the (source_lang, target_lang) pair.

        Returns the first entry in insertion order whose similarity reaches
        ``threshold``, or the closest one when ``best_match`` is set.
        """
        query = _normalize(text)
        best: Optional[MemoryMatch] = None

        for entry in self._entries:
            if entry.source_lang != source_lang or entry.target_lang != target_lang:
                continue

            candidate = _normalize(entry.source)
            if candidate == query:
                return MemoryMatch(translation=entry.target, similarity=1.0)

            similarity = calculate_similarity(query, candidate)
            if similarity < threshold:
                continue
            if not self.best_match:
                return MemoryMatch(translation=entry.target, similarity=similarity)
            if best is None or similarity > best.similarity:
                best = MemoryMatch(translation=entry.target, similarity=similarity)

        return best

    def export(self) -> Dict[str, Any]:
        return {
            "version": MEMORY_VERSION,
            "entries": [e.to_dict() for e in self._entries],
        }

    def import_entries(self, entries: Iterable[TranslationMemoryEntry]) -> int:
        """Merge foreign entries, skipping any that would break uniqueness."""
        added = 0
        for entry in entries:
            if not self._exists(entry.source, entry.source_lang, entry.target_lang):
                self._entries.append(entry)
                added += 1
        if added:
            self._dirty = True
        return added

    def clear(self) -> None:
        self._entries = []
        self._dirty = True

    def stats(self) -> Dict[str, Any]:
        languages: Set[str] = {e.target_lang for e in self._entries}
        return {"entries": len(self._entries), "languages": sorted(languages)}


def default_memory_path(project_root: Path) -> Path:
    return project_root / ".multilingual" / "translation-memory.json"
