"""Text processing utilities."""

from __future__ import annotations

import functools
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .models import QualityReport


# 插值/模板语法，顺序很重要：双花括号要先于单花括号匹配
PLACEHOLDER_PATTERN = (
    r"\{\{[^{}]+\}\}"        # {{name}}
    r"|\$\{[^{}]+\}"         # ${name}
    r"|%\{[^{}]+\}"          # %{name}
    r"|\{[^{}]+\}"           # {name}
    r"|%(?:\d+\$)?[sdif]"    # %s %d %1$s
)
PROTECTED_RE = re.compile(PLACEHOLDER_PATTERN + r"|<[^>]+>|\$\w+")
PLACEHOLDER_RE = re.compile(PLACEHOLDER_PATTERN)
HTML_TAG_RE = re.compile(r"<[^>]+>")

# Private Use Area blocks; one marker character per protected span
_MARKER_RANGES = ((0xE000, 0xF8FF), (0xF0000, 0xFFFFD))

INTERPOLATION_PATTERNS = [
    ("react", re.compile(r"\{[^}]+\}")),
    ("vue", re.compile(r"\{\{[^}]+\}\}")),
    ("template-literal", re.compile(r"\$\{[^}]+\}")),
    ("printf", re.compile(r"%[sd]")),
    ("named", re.compile(r":(\w+)")),
    ("ruby", re.compile(r"%\{[^}]+\}")),
    ("php", re.compile(r"\$\w+")),
]

SERVICE_ERROR_MARKERS = ("MYMEMORY", "QUOTA")


@dataclass
class ProtectedText:
    """Text with interpolation spans swapped out for single marker characters."""

    original: str
    masked: str
    spans: List[str] = field(default_factory=list)
    marker_base: int = _MARKER_RANGES[0][0]

    def restore(self, text: str) -> str:
        """
        Put the original spans back.

        Markers are filled left to right with the spans in their original
        order, so a transform that moves markers (e.g. reversal) still gets
        the tokens back in source order.
        """
        if not self.spans:
            return text
        first = chr(self.marker_base)
        last = chr(self.marker_base + len(self.spans) - 1)
        marker_re = re.compile(f"[{first}-{last}]")
        spans = iter(self.spans)
        return marker_re.sub(lambda m: next(spans, ""), text)


def _marker_base(text: str, count: int) -> Optional[int]:
    """First code point of a marker block that cannot clash with ``text``."""
    for low, high in _MARKER_RANGES:
        used = [ord(ch) for ch in text if low <= ord(ch) <= high]
        base = max(used) + 1 if used else low
        if base + count - 1 <= high:
            return base
    return None


def protect(text: str) -> ProtectedText:
    """Replace every protected span with a marker character."""
    spans = [m.group(0) for m in PROTECTED_RE.finditer(text)]
    if not spans:
        return ProtectedText(original=text, masked=text)

    # 输入里已有的私用区字符（图标字体等）不能被当成标记
    base = _marker_base(text, len(spans))
    if base is None:
        return ProtectedText(original=text, masked=text)

    counter = iter(range(base, base + len(spans)))
    masked = PROTECTED_RE.sub(lambda m: chr(next(counter)), text)
    return ProtectedText(original=text, masked=masked, spans=spans, marker_base=base)


def is_marker(char: str) -> bool:
    return len(char) == 1 and any(low <= ord(char) <= high for low, high in _MARKER_RANGES)


def preserve_placeholders(transform: Callable[[str], str]) -> Callable[[str], str]:
    """Decorator: run ``transform`` on masked text and splice the spans back."""

    @functools.wraps(transform)
    def wrapper(text: str) -> str:
        if not text:
            return text
        protected = protect(text)
        return protected.restore(transform(protected.masked))

    return wrapper


def detect_interpolations(text: str) -> List[Dict[str, object]]:
    """List every interpolation-looking token with its style and position."""
    results: List[Dict[str, object]] = []
    for kind, pattern in INTERPOLATION_PATTERNS:
        for match in pattern.finditer(text):
            results.append({"type": kind, "pattern": match.group(0), "position": match.start()})
    return results


def validate_translation(source: str, translation: str) -> QualityReport:
    """
    Heuristic quality check of a translation.

    Advisory only: the score never blocks a translation from being written.
    """
    issues: List[str] = []
    suggestions: List[str] = []
    score = 100

    src_placeholders = PLACEHOLDER_RE.findall(source)
    dst_placeholders = PLACEHOLDER_RE.findall(translation)
    if len(src_placeholders) != len(dst_placeholders):
        issues.append(
            f"Placeholder count mismatch: source has {len(src_placeholders)}, "
            f"translation has {len(dst_placeholders)}"
        )
        score -= 30

    src_tags = HTML_TAG_RE.findall(source)
    dst_tags = HTML_TAG_RE.findall(translation)
    if len(src_tags) != len(dst_tags):
        issues.append(
            f"HTML tag count mismatch: source has {len(src_tags)}, "
            f"translation has {len(dst_tags)}"
        )
        score -= 20

    if source and len(translation) / len(source) > 2:
        issues.append("Translation is suspiciously longer than source")
        suggestions.append("Review translation for unnecessary content")
        score -= 10

    if source == translation and len(source) > 3:
        issues.append("Translation appears unchanged from source")
        score -= 40

    if any(marker in translation for marker in SERVICE_ERROR_MARKERS):
        issues.append("Translation contains error message")
        score -= 50

    return QualityReport(score=max(0, score), issues=issues, suggestions=suggestions)


def mask_credential(key: str) -> str:
    """Show only the first and last four characters of a credential."""
    if not key or len(key) < 12:
        return "****"
    return f"{key[:4]}{'*' * (len(key) - 8)}{key[-4:]}"


def sanitize_error(message: str) -> str:
    """Strip anything that looks like an API key from an error message."""
    message = re.sub(r"AIza[A-Za-z0-9_-]{35}", "[REDACTED]", message)
    message = re.sub(
        r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}(:fx)?",
        "[REDACTED]",
        message,
        flags=re.IGNORECASE,
    )
    message = re.sub(r"Bearer \S+", "Bearer [REDACTED]", message)
    message = re.sub(r"key=[^\s&]+", "key=[REDACTED]", message)
    return message
