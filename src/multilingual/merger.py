"""
Merge and reconciliation of translation trees.

All comparisons happen on flat (dotted key -> string) mappings; trees are
re-nested only for output.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .models import (
    ExtractedString,
    FlatTree,
    MergeResult,
    TranslationPlan,
    TranslationResult,
    TranslationTree,
)

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "."

# 这些路径段不参与命名空间
IGNORED_PATH_SEGMENTS = {"src", "app", "components", "pages", "views"}

_EXTENSION_RE = re.compile(r"\.[^.]+$")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


def flatten_tree(tree: Mapping[str, Any], prefix: str = "") -> FlatTree:
    """
    Flatten a nested tree into dotted keys.

    A tree that is already flat comes back unchanged. Non-string scalars are
    stringified; ``None`` leaves are dropped.
    """
    flat: FlatTree = {}
    for key, value in tree.items():
        full_key = f"{prefix}{KEY_SEPARATOR}{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten_tree(value, full_key))
        elif value is not None:
            flat[full_key] = value if isinstance(value, str) else str(value)
    return flat


def unflatten_tree(flat: Mapping[str, str]) -> TranslationTree:
    """
    Re-nest a flat mapping.

    When a key is both a leaf and a prefix of other keys (``a`` and ``a.b``),
    the subtree wins regardless of input order and the leaf is dropped with
    a warning.
    """
    tree: TranslationTree = {}

    for key, value in flat.items():
        parts = key.split(KEY_SEPARATOR)
        node = tree
        conflict = False

        for depth, part in enumerate(parts[:-1]):
            child = node.get(part)
            if isinstance(child, str):
                path = KEY_SEPARATOR.join(parts[:depth + 1])
                logger.warning(f"Key '{path}' is both a string and a group; keeping the group")
                child = None
            if child is None:
                child = {}
                node[part] = child
            node = child

        leaf = parts[-1]
        if isinstance(node.get(leaf), dict):
            logger.warning(f"Key '{key}' is both a string and a group; keeping the group")
            conflict = True

        if not conflict:
            node[leaf] = value

    return tree


def sort_flat(flat: Mapping[str, str]) -> FlatTree:
    """Sort by full dotted path."""
    return dict(sorted(flat.items()))


def _shape(flat: FlatTree, flat_keys: bool, sort_keys: bool) -> TranslationTree:
    if sort_keys:
        flat = sort_flat(flat)
    return dict(flat) if flat_keys else unflatten_tree(flat)


def merge_trees(
    existing: Optional[Mapping[str, Any]],
    new: Mapping[str, Any],
    preserve_existing: bool = True,
    flat_keys: bool = False,
    sort_keys: bool = True,
) -> MergeResult:
    """
    Merge a freshly scanned tree into the tree already on disk.

    With ``preserve_existing`` the on-disk value of a shared key is kept and
    keys missing from ``new`` stay in the output (soft delete). Without it,
    ``new`` overwrites shared keys and stale keys are dropped.

    Args:
        existing: Tree loaded from disk (may be empty or None)
        new: Tree built from the latest scan
        preserve_existing: Keep hand edits and stale keys
        flat_keys: Emit a flat dotted-key mapping instead of a nested tree
        sort_keys: Order keys by full dotted path

    Returns:
        MergeResult with the merged tree and key counts
    """
    old_flat = flatten_tree(existing or {})
    new_flat = flatten_tree(new)

    merged: FlatTree = {}
    new_keys = 0
    unchanged_keys = 0
    removed_keys = 0

    for key, value in new_flat.items():
        # 用成员判断而不是真值判断，空字符串也算已有值
        if key in old_flat:
            merged[key] = old_flat[key] if preserve_existing else value
            unchanged_keys += 1
        else:
            merged[key] = value
            new_keys += 1

    for key, value in old_flat.items():
        if key in new_flat:
            continue
        removed_keys += 1
        if preserve_existing:
            merged[key] = value

    if new_keys or removed_keys:
        logger.debug(f"Merge: {new_keys} new, {removed_keys} removed, {unchanged_keys} unchanged")

    return MergeResult(
        data=_shape(merged, flat_keys, sort_keys),
        new_keys=new_keys,
        removed_keys=removed_keys,
        unchanged_keys=unchanged_keys,
    )


def reconcile_for_language(
    source_tree: Mapping[str, Any],
    existing_target_tree: Optional[Mapping[str, Any]],
    target_lang: str,
) -> TranslationPlan:
    """
    Decide which keys of one target language need a backend.

    A key is pending if the target has no value for it, an empty value, or
    the target value is byte-identical to the source value (copied, never
    translated). Every other target key, including keys no longer in the
    source, passes through untouched.
    """
    source = flatten_tree(source_tree)
    target = flatten_tree(existing_target_tree or {})

    passthrough: FlatTree = dict(target)
    pending = []

    for key, value in source.items():
        current = target.get(key)
        if not current or current == value:
            pending.append((key, value))
            passthrough.pop(key, None)

    logger.debug(f"[{target_lang}] {len(pending)} keys pending, {len(passthrough)} kept")
    return TranslationPlan(target_lang=target_lang, passthrough=passthrough, pending=pending)


def apply_translations(
    plan: TranslationPlan,
    results: Mapping[str, TranslationResult],
) -> FlatTree:
    """
    Splice backend results into the plan's passthrough map.

    Keys whose translation failed or is missing fall back to the source value.
    """
    flat: FlatTree = dict(plan.passthrough)
    for key, value in plan.pending:
        result = results.get(value)
        if result is not None and result.success and result.text:
            flat[key] = result.text
        else:
            flat[key] = value
    return flat


def failed_keys(plan: TranslationPlan, results: Mapping[str, TranslationResult]) -> List[str]:
    """Keys of ``plan`` that ended up with the source fallback."""
    failed = []
    for key, value in plan.pending:
        result = results.get(value)
        if result is None or not result.success or (not result.text and value):
            failed.append(key)
    return failed


def build_tree(flat: FlatTree, flat_keys: bool = False, sort_keys: bool = True) -> TranslationTree:
    """Shape a flat mapping for output."""
    return _shape(flat, flat_keys, sort_keys)


def key_parts(string: ExtractedString) -> List[str]:
    """
    Namespace path for a scanned string: its file path plus its key.

    ``src/components/Header.tsx`` + ``title`` -> ``["Header", "title"]``.
    """
    parts = string.file.replace("\\", "/").split("/")
    parts[-1] = _EXTENSION_RE.sub("", parts[-1])
    parts.append(string.key)

    cleaned = []
    for part in parts:
        if not part or part in (".", "..") or part in IGNORED_PATH_SEGMENTS:
            continue
        cleaned.append(_NON_ALNUM_RE.sub("_", part))
    return cleaned


def strings_to_tree(
    strings: Sequence[ExtractedString],
    flat_keys: bool = False,
    sort_keys: bool = True,
) -> TranslationTree:
    """
    Build the source-language tree from scanner output.

    Flat mode uses each string's key as is. Duplicate keys keep the last
    value seen.
    """
    flat: FlatTree = {}
    for string in strings:
        key = string.key if flat_keys else KEY_SEPARATOR.join(key_parts(string))
        if key in flat and flat[key] != string.value:
            logger.debug(f"Duplicate key '{key}' in {string.file}; keeping the later value")
        flat[key] = string.value
    return _shape(flat, flat_keys, sort_keys)
