"""Scanner output loading and locale file reading/writing."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Sequence

from .merger import flatten_tree
from .models import ExtractedString, TranslationTree

logger = logging.getLogger(__name__)

OUTPUT_FORMATS = ("json", "js", "ts")
GENERATED_HEADER = "// Auto-generated by multilingual-auto-i18n"

_EXPORT_RE = re.compile(r"export\s+(default\s+)?(\{[\s\S]*\})")


def validate_strings_file(path: Path) -> Optional[str]:
    """
    Validate a scanner output file before loading.

    Returns:
        Error message if invalid, None if valid
    """
    if not path.exists():
        return f"File not found: {path}"

    if not path.is_file():
        return f"Not a file: {path}"

    if path.suffix.lower() != ".json":
        return f"Invalid file extension: {path.suffix} (expected .json)"

    if path.stat().st_size == 0:
        return "File is empty"

    return None


def load_extracted_strings(path: Path) -> List[ExtractedString]:
    """
    Load scanner output: a JSON list of string records, or ``{"strings": [...]}``.

    Records without ``key`` or ``value`` are skipped with a warning.
    """
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("strings", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of strings in {path}")

    strings: List[ExtractedString] = []
    for i, record in enumerate(data):
        try:
            strings.append(ExtractedString.from_dict(record))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Skipping invalid record #{i} in {path}: {e}")

    logger.info(f"Loaded {len(strings)} strings from {path}")
    return strings


def locale_file_path(output_dir: Path, language: str, output_format: str) -> Path:
    return output_dir / f"{language}.{output_format}"


def load_locale_file(path: Path) -> TranslationTree:
    """
    Read an existing locale file.

    Missing, unreadable or malformed files give an empty tree.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text(encoding="utf-8")
        suffix = path.suffix.lower()

        if suffix == ".json":
            data: Any = json.loads(content)
        elif suffix in (".js", ".ts"):
            match = _EXPORT_RE.search(content)
            if not match:
                return {}
            body = match.group(2)
            try:
                data = json.loads(body)
            except ValueError:
                # 手写的 JS 可能用单引号
                data = json.loads(body.replace("'", '"'))
        else:
            return {}
    except (OSError, ValueError) as e:
        logger.warning(f"Error loading translations from {path}: {e}")
        return {}

    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: top level is not an object")
        return {}
    return data


def render_locale(data: TranslationTree, output_format: str) -> str:
    body = json.dumps(data, ensure_ascii=False, indent=2)
    if output_format == "js":
        return f"{GENERATED_HEADER}\nexport default {body};\n"
    if output_format == "ts":
        return f"{GENERATED_HEADER}\nexport default {body} as const;\n"
    return body


def write_locale_file(path: Path, data: TranslationTree, output_format: str = "json") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_locale(data, output_format), encoding="utf-8")
    logger.debug(f"Wrote {path}")


def _identifier(language: str) -> str:
    return language.replace("-", "_")


def write_index_file(output_dir: Path, languages: Sequence[str], output_format: str) -> Path:
    """Write ``index.js`` / ``index.ts`` re-exporting every language file."""
    path = output_dir / f"index.{output_format}"
    quoted = [f"'{lang}'" for lang in languages]

    lines = [GENERATED_HEADER, ""]
    lines += [f"import {_identifier(lang)} from './{lang}';" for lang in languages]
    lines += ["", "export const translations = {"]
    lines += [f"  '{lang}': {_identifier(lang)}," for lang in languages]
    lines += ["};", "", "export {"]
    lines += [f"  {_identifier(lang)}," for lang in languages]
    lines += ["};", ""]

    if output_format == "ts":
        lines.append(f"export type AvailableLanguage = {' | '.join(quoted)};")
        lines.append(f"export const availableLanguages: AvailableLanguage[] = [{', '.join(quoted)}];")
    else:
        lines.append(f"export const availableLanguages = [{', '.join(quoted)}];")
    lines += ["", "export default translations;", ""]

    path.write_text("\n".join(lines), encoding="utf-8")
    return path


def write_type_definitions(
    output_dir: Path, source_tree: TranslationTree, languages: Sequence[str]
) -> Path:
    """Write ``types.d.ts`` with the union of translation keys and languages."""
    path = output_dir / "types.d.ts"
    keys = " | ".join(f"'{key}'" for key in flatten_tree(source_tree)) or "string"
    langs = " | ".join(f"'{lang}'" for lang in languages)

    content = "\n".join([
        GENERATED_HEADER,
        "",
        f"export type TranslationKey = {keys};",
        "",
        f"export type AvailableLanguage = {langs};",
        "",
        "export type TranslateFunction = (key: TranslationKey, params?: Record<string, string | number>) => string;",
        "",
        "export type TranslationRecord = Record<TranslationKey, string>;",
        "",
        "export type Translations = Record<AvailableLanguage, TranslationRecord>;",
        "",
    ])
    path.write_text(content, encoding="utf-8")
    return path
