"""Generation orchestrator: merge the source tree, then reconcile each target language."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Sequence

from .backends import NO_BACKEND
from .config import GeneratorConfig
from .dispatcher import TranslationDispatcher
from .locale_files import (
    load_locale_file,
    locale_file_path,
    write_index_file,
    write_locale_file,
    write_type_definitions,
)
from .memory import TranslationMemory
from .merger import (
    apply_translations,
    build_tree,
    failed_keys,
    flatten_tree,
    merge_trees,
    reconcile_for_language,
    strings_to_tree,
)
from .models import (
    ExtractedString,
    GenerationResult,
    GenerationStats,
    TranslationPlan,
    TranslationResult,
)
from .text_utils import validate_translation

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float, int], None]

# 低于该分数的译文会打印警告（仅提示）
QUALITY_WARNING_SCORE = 60


class I18nGenerator:
    """
    Produces one locale file per language.

    The source file is merged against its on-disk version first; each target
    file is then reconciled against the merged source and only the keys that
    need work go through the dispatcher. Failed translations fall back to the
    source text, so every written file is complete.
    """

    def __init__(
        self,
        config: GeneratorConfig,
        dispatcher: Optional[TranslationDispatcher] = None,
        memory: Optional[TranslationMemory] = None,
    ):
        self.config = config
        if memory is None and config.memory_enabled:
            memory = TranslationMemory(config.memory_path, best_match=config.fuzzy_best_match)
        self.memory = memory
        self.dispatcher = dispatcher or TranslationDispatcher.from_config(config, memory)

    async def generate(
        self,
        strings: Sequence[ExtractedString],
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        """
        Generate locale files from scanner output.

        Raises:
            ConfigurationError: backend unknown or missing its credential
        """
        config = self.config
        # 配置错误要在写任何文件之前抛出
        self.dispatcher.resolve()

        output_dir = config.output_path
        output_dir.mkdir(parents=True, exist_ok=True)
        flat = config.use_flat_keys
        steps = len(config.target_languages) + 1

        def report(message: str, completed: float) -> None:
            if on_progress:
                on_progress(message, completed, steps)

        source_tree = strings_to_tree(strings, flat_keys=flat, sort_keys=config.sort_keys)
        source_file = locale_file_path(output_dir, config.source_language, config.output_format)
        merge = merge_trees(
            load_locale_file(source_file),
            source_tree,
            preserve_existing=config.preserve_existing,
            flat_keys=flat,
            sort_keys=config.sort_keys,
        )
        write_locale_file(source_file, merge.data, config.output_format)

        result = GenerationResult(
            success=True,
            output_files=[str(source_file)],
            stats=GenerationStats(
                total_keys=len(flatten_tree(source_tree)),
                new_keys=merge.new_keys,
                removed_keys=merge.removed_keys,
                unchanged_keys=merge.unchanged_keys,
            ),
        )
        logger.info(
            f"Source ({config.source_language}): {merge.new_keys} new, "
            f"{merge.removed_keys} removed, {merge.unchanged_keys} unchanged"
        )
        report("Generated source language file", 1)

        try:
            for i, target_lang in enumerate(config.target_languages):
                target_file = locale_file_path(output_dir, target_lang, config.output_format)
                plan = reconcile_for_language(merge.data, load_locale_file(target_file), target_lang)

                flat_target = await self._translate_plan(
                    plan,
                    result,
                    on_progress=lambda done, total, i=i, lang=target_lang: report(
                        f"Translating to {lang}", i + 1 + done / max(total, 1)
                    ),
                    cancel_event=cancel_event,
                )

                write_locale_file(
                    target_file,
                    build_tree(flat_target, flat_keys=flat, sort_keys=config.sort_keys),
                    config.output_format,
                )
                result.output_files.append(str(target_file))
                report(f"Completed {target_lang}", i + 2)
        finally:
            if self.memory is not None and self.memory.dirty:
                self.memory.flush()

        languages = [config.source_language] + list(config.target_languages)
        if config.output_format in ("js", "ts"):
            result.output_files.append(str(write_index_file(output_dir, languages, config.output_format)))
        if config.output_format in ("json", "ts"):
            result.output_files.append(str(write_type_definitions(output_dir, source_tree, languages)))

        result.cancelled = cancel_event is not None and cancel_event.is_set()
        if result.cancelled:
            logger.warning("Generation cancelled; untranslated keys keep their source text")
        return result

    async def _translate_plan(
        self,
        plan: TranslationPlan,
        result: GenerationResult,
        on_progress: Optional[Callable[[int, int], None]],
        cancel_event: Optional[asyncio.Event],
    ) -> Dict[str, str]:
        if not plan.pending:
            logger.info(f"[{plan.target_lang}] up to date")
            return dict(plan.passthrough)

        texts = plan.texts
        logger.info(f"[{plan.target_lang}] translating {len(texts)} strings ({len(plan.pending)} keys)")
        translations = await self.dispatcher.translate_batch(
            texts,
            plan.target_lang,
            self.config.source_language,
            on_progress=on_progress,
            cancel_event=cancel_event,
        )

        failed = failed_keys(plan, translations)
        if failed:
            result.failed_keys[plan.target_lang] = failed
            errors = sorted({r.error for r in translations.values() if not r.success and r.error})
            logger.warning(
                f"[{plan.target_lang}] {len(failed)} keys kept source text: {'; '.join(errors)}"
            )

        self._check_quality(plan.target_lang, translations)
        return apply_translations(plan, translations)

    def _check_quality(self, target_lang: str, translations: Dict[str, TranslationResult]) -> None:
        low: List[str] = []
        for source, translation in translations.items():
            if not translation.success or translation.cached or translation.backend == NO_BACKEND:
                continue
            report = validate_translation(source, translation.text or "")
            if report.score < QUALITY_WARNING_SCORE:
                low.append(source)
                logger.debug(f"[{target_lang}] '{source[:40]}' scored {report.score}: {', '.join(report.issues)}")
        if low:
            logger.warning(f"[{target_lang}] {len(low)} translations look suspicious (run with -v for details)")
