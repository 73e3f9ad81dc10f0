"""Data models shared across the merge engine, dispatcher and generator."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

# 嵌套的翻译树：叶子是字符串，内部节点是子树
TranslationTree = Dict[str, Union[str, "TranslationTree"]]
FlatTree = Dict[str, str]

STRING_TYPES = ("text", "attribute", "template", "jsx", "code")


@dataclass(frozen=True)
class ExtractedString:
    """A user-facing string found by the source scanner."""

    key: str
    value: str
    file: str
    line: int = 0
    column: int = 0
    type: str = "text"
    context: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExtractedString":
        """Build from a scanner record, ignoring unknown fields."""
        if not isinstance(data, dict):
            raise TypeError(f"Expected an object, got {type(data).__name__}")
        string_type = data.get("type", "text")
        if string_type not in STRING_TYPES:
            string_type = "text"
        return cls(
            key=str(data["key"]),
            value=str(data["value"]),
            file=str(data.get("file", "")),
            line=int(data.get("line", 0)),
            column=int(data.get("column", 0)),
            type=string_type,
            context=data.get("context"),
        )


@dataclass
class TranslationResult:
    """单条翻译结果。"""

    success: bool
    backend: str
    text: Optional[str] = None
    error: Optional[str] = None
    cached: bool = False

    @classmethod
    def ok(cls, text: str, backend: str, cached: bool = False) -> "TranslationResult":
        return cls(success=True, backend=backend, text=text, cached=cached)

    @classmethod
    def failed(cls, error: str, backend: str) -> "TranslationResult":
        return cls(success=False, backend=backend, error=error)


@dataclass
class TranslationMemoryEntry:
    """One remembered (source, target) pair."""

    source: str
    target: str
    source_lang: str
    target_lang: str
    backend: str
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        # 与原工具的 JSON 字段名保持一致
        return {
            "source": self.source,
            "target": self.target,
            "sourceLang": self.source_lang,
            "targetLang": self.target_lang,
            "service": self.backend,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TranslationMemoryEntry":
        return cls(
            source=data["source"],
            target=data["target"],
            source_lang=data.get("sourceLang", data.get("source_lang", "")),
            target_lang=data.get("targetLang", data.get("target_lang", "")),
            backend=data.get("service", data.get("backend", "")),
            timestamp=int(data.get("timestamp", 0)),
        )


@dataclass
class MemoryMatch:
    translation: str
    similarity: float


@dataclass
class MergeResult:
    """Output of merging a freshly scanned tree into an on-disk tree."""

    data: TranslationTree
    new_keys: int = 0
    removed_keys: int = 0
    unchanged_keys: int = 0


@dataclass
class TranslationPlan:
    """
    Per-language reconciliation result.

    ``passthrough`` holds every key whose current target value is kept as is;
    ``pending`` lists the (key, source value) pairs that need a backend.
    """

    target_lang: str
    passthrough: FlatTree
    pending: List[Tuple[str, str]]

    @property
    def texts(self) -> List[str]:
        """Unique source strings to send, in first-seen order."""
        return list(dict.fromkeys(value for _, value in self.pending))


@dataclass
class GenerationStats:
    total_keys: int = 0
    new_keys: int = 0
    removed_keys: int = 0
    unchanged_keys: int = 0


@dataclass
class GenerationResult:
    success: bool
    output_files: List[str] = field(default_factory=list)
    stats: GenerationStats = field(default_factory=GenerationStats)
    failed_keys: Dict[str, List[str]] = field(default_factory=dict)
    cancelled: bool = False


@dataclass
class QualityReport:
    """Advisory translation quality score (0-100)."""

    score: int
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
