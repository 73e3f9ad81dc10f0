"""Command-line interface for multilingual."""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from .backends import BACKENDS, NO_BACKEND
from .config import GeneratorConfig
from .dispatcher import TranslationDispatcher
from .errors import ConfigurationError
from .generator import I18nGenerator
from .locale_files import OUTPUT_FORMATS, load_extracted_strings, validate_strings_file
from .memory import TranslationMemory, default_memory_path
from .progress import ProgressReporter
from .text_utils import mask_credential, sanitize_error

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S"
    )
    # httpx 在 INFO 级别会打印每个请求
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _add_backend_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-s", "--source", help="Source language (default: en)")
    parser.add_argument("-b", "--backend", help=f"Translation backend (default: {NO_BACKEND})")
    parser.add_argument("--credential", help="API key, e-mail or instance URL for the backend")
    parser.add_argument("--instance", dest="instances", action="append",
                        help="LibreTranslate/Lingva instance URL (repeatable)")
    parser.add_argument("--model", help="Model name for the llm backend")
    parser.add_argument("--base-url", help="Base URL for the llm backend")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument("--delay-ms", type=int, help="Delay between backend calls (default: 100)")
    parser.add_argument("--no-memory", dest="memory", action="store_false", default=None,
                        help="Do not read or write the translation memory")
    parser.add_argument("--memory-path", type=Path, help="Translation memory file")


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="multilingual",
        description="Merge extracted strings into locale files and translate what is missing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s generate strings.json -t es fr de            # Copy source text (no backend)
  %(prog)s generate strings.json -t ja -b deepl         # Translate with DeepL
  %(prog)s generate strings.json -t es -b pseudo        # Pseudo-localize for UI testing
  %(prog)s translate "Hello {name}" -t es -b dictionary
  %(prog)s backends                                     # List backends
  %(prog)s memory stats                                 # Translation memory statistics
        """
    )
    parser.add_argument("--project-root", type=Path, default=None,
                        help="Project directory (default: current directory)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")

    sub = parser.add_subparsers(dest="command", required=True)

    # generate
    gen = sub.add_parser("generate", help="Generate locale files from scanner output")
    gen.add_argument("strings_path", type=Path, help="JSON file with extracted strings")
    gen.add_argument("-t", "--target", dest="targets", nargs="+", help="Target languages")
    gen.add_argument("-o", "--output-dir", help="Output directory (default: ./locales)")
    gen.add_argument("--format", choices=OUTPUT_FORMATS, help="Output format (default: json)")
    gen.add_argument("--flat", action="store_true", default=None, help="Use flat dotted keys")
    gen.add_argument("--no-preserve", dest="preserve_existing", action="store_false", default=None,
                     help="Overwrite existing values and drop removed keys")
    gen.add_argument("--no-sort", dest="sort_keys", action="store_false", default=None,
                     help="Keep scan order instead of sorting keys")
    gen.add_argument("--batch-size", type=int, help="Strings per request for batch backends (max 50)")
    gen.add_argument("--best-match", action="store_true", default=None,
                     help="Use the closest memory entry instead of the first one above threshold")
    gen.add_argument("--no-progress-bar", action="store_true", help="Disable the progress bar")
    _add_backend_arguments(gen)

    # translate
    tr = sub.add_parser("translate", help="Translate a single string")
    tr.add_argument("text", help="Text to translate")
    tr.add_argument("-t", "--target", required=True, help="Target language")
    _add_backend_arguments(tr)

    # backends
    sub.add_parser("backends", help="List available translation backends")

    # memory
    mem = sub.add_parser("memory", help="Inspect or clear the translation memory")
    mem.add_argument("action", choices=["stats", "clear"])
    mem.add_argument("--memory-path", type=Path, help="Translation memory file")

    return parser.parse_args(argv)


def _install_cancel_handler(cancel_event: asyncio.Event) -> None:
    """First Ctrl-C stops further backend calls; files are still written."""
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        pass  # Windows 不支持，退回 KeyboardInterrupt


async def run_generate(args: argparse.Namespace) -> int:
    """Generate locale files."""
    config = GeneratorConfig.from_args(args)

    # 验证配置
    error = config.validate()
    if error:
        logger.error(error)
        return 1

    strings_path = args.strings_path.expanduser().resolve()
    error = validate_strings_file(strings_path)
    if error:
        logger.error(error)
        return 1

    try:
        strings = load_extracted_strings(strings_path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read {strings_path}: {e}")
        return 1

    if not strings:
        logger.error("No strings found")
        return 1

    if config.credential:
        logger.info(f"Backend: {config.backend} (key {mask_credential(config.credential)})")
    else:
        logger.info(f"Backend: {config.backend}")

    cancel_event = asyncio.Event()
    _install_cancel_handler(cancel_event)

    generator = I18nGenerator(config)
    with ProgressReporter(disable=args.no_progress_bar) as progress:
        result = await generator.generate(strings, on_progress=progress, cancel_event=cancel_event)

    stats = result.stats
    logger.info(
        f"Done! {stats.total_keys} keys ({stats.new_keys} new, {stats.removed_keys} removed, "
        f"{stats.unchanged_keys} unchanged). Wrote {len(result.output_files)} files to {config.output_path}"
    )
    for lang, keys in result.failed_keys.items():
        logger.warning(f"{lang}: {len(keys)} keys fell back to source text")

    return 130 if result.cancelled else 0


async def run_translate(args: argparse.Namespace) -> int:
    """Translate one string and print it."""
    config = GeneratorConfig.from_args(args)
    config.target_languages = [args.target]

    error = config.validate()
    if error:
        logger.error(error)
        return 1

    memory = None
    if config.memory_enabled:
        memory = TranslationMemory(config.memory_path, best_match=config.fuzzy_best_match)
    dispatcher = TranslationDispatcher.from_config(config, memory)

    result = await dispatcher.translate(args.text, args.target, config.source_language)
    if memory is not None and memory.dirty:
        memory.flush()

    if not result.success:
        logger.error(f"Translation failed: {sanitize_error(result.error or '')}")
        return 1

    print(result.text)
    return 0


def run_backends() -> int:
    for name, cls in BACKENDS.items():
        flags = []
        if cls.supports_batch:
            flags.append("batch")
        if cls.requires_credential:
            flags.append("key required")
        flags.append("network" if cls.is_network else "offline")
        print(f"  {name:<15} {cls.description} [{', '.join(flags)}]")
    print(f"  {NO_BACKEND:<15} Copy the source text")
    return 0


def run_memory(args: argparse.Namespace) -> int:
    project_root = (args.project_root or Path(".")).resolve()
    path = args.memory_path or default_memory_path(project_root)
    memory = TranslationMemory(path)

    if args.action == "clear":
        count = len(memory)
        memory.clear()
        if not memory.flush():
            return 1
        logger.info(f"Cleared {count} entries from {path}")
        return 0

    stats = memory.stats()
    print(f"Entries:   {stats['entries']}")
    print(f"Languages: {', '.join(stats['languages']) or '-'}")
    print(f"File:      {path}")
    return 0


async def main_async(args: argparse.Namespace) -> int:
    """Main async workflow."""
    if args.command == "generate":
        return await run_generate(args)
    if args.command == "translate":
        return await run_translate(args)
    if args.command == "backends":
        return run_backends()
    return run_memory(args)


def main(argv=None) -> None:
    """CLI entry point."""
    args = parse_arguments(argv)
    setup_logging(args.verbose)

    try:
        exit_code = asyncio.run(main_async(args))
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(130)
    except ConfigurationError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception as e:
        logging.error(f"Fatal error: {sanitize_error(str(e))}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
