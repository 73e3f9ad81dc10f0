"""Configuration and constants."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from .backends import BACKENDS, NO_BACKEND
from .languages import is_supported
from .locale_files import OUTPUT_FORMATS
from .memory import default_memory_path

logger = logging.getLogger(__name__)

# Load environment variables once
load_dotenv()

CONFIG_FILE_NAMES = (
    "multilingual.config.json",
    ".multilingualrc",
    ".multilingualrc.json",
)

GENERIC_CREDENTIAL_ENV = "MULTILINGUAL_API_KEY"
KEY_STYLES = ("nested", "flat", "auto")
MAX_BATCH_SIZE = 50

# 配置文件沿用原工具的 camelCase 字段名
_FILE_FIELDS = {
    "outputDir": "output_dir",
    "sourceLanguage": "source_language",
    "targetLanguages": "target_languages",
    "translationService": "backend",
    "apiKey": "credential",
    "rateLimitDelayMs": "rate_limit_delay_ms",
    "batchSize": "batch_size",
    "outputFormat": "output_format",
    "flatKeys": "flat_keys",
    "keyStyle": "key_style",
    "preserveExisting": "preserve_existing",
    "sortKeys": "sort_keys",
    "translationMemory": "memory_enabled",
    "fuzzyBestMatch": "fuzzy_best_match",
    "libretranslateInstances": "libretranslate_instances",
    "lingvaInstances": "lingva_instances",
    "argosEndpoint": "argos_endpoint",
    "llmModel": "llm_model",
    "llmBaseUrl": "llm_base_url",
    "requestTimeout": "request_timeout",
}

# argparse 属性名 -> 配置字段
_ARG_FIELDS = {
    "output_dir": "output_dir",
    "source": "source_language",
    "targets": "target_languages",
    "backend": "backend",
    "credential": "credential",
    "delay_ms": "rate_limit_delay_ms",
    "batch_size": "batch_size",
    "format": "output_format",
    "flat": "flat_keys",
    "preserve_existing": "preserve_existing",
    "sort_keys": "sort_keys",
    "memory_path": "memory_path",
    "memory": "memory_enabled",
    "best_match": "fuzzy_best_match",
    "instances": "instances",
    "model": "llm_model",
    "base_url": "llm_base_url",
    "timeout": "request_timeout",
}


def credential_from_env(backend: str) -> Optional[str]:
    """Look up the API key for ``backend`` in the environment."""
    cls = BACKENDS.get(backend)
    if cls is None or not cls.requires_credential:
        return None
    for name in list(cls.credential_env) + [GENERIC_CREDENTIAL_ENV]:
        value = os.environ.get(name)
        if value:
            return value
    return None


def find_config_file(project_root: Path) -> Optional[Path]:
    for name in CONFIG_FILE_NAMES:
        path = project_root / name
        if path.is_file():
            return path
    return None


def load_config_file(project_root: Path) -> Dict[str, Any]:
    """
    Read project configuration.

    Looks at the config files in order, then the ``multilingual`` key of
    ``package.json``, which overrides the file. Unreadable files are skipped.

    Returns:
        Field values keyed by ``GeneratorConfig`` attribute name
    """
    raw: Dict[str, Any] = {}

    path = find_config_file(project_root)
    if path is not None:
        try:
            raw.update(json.loads(path.read_text(encoding="utf-8")))
            logger.debug(f"Loaded configuration from {path}")
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")

    package_json = project_root / "package.json"
    if package_json.is_file():
        try:
            section = json.loads(package_json.read_text(encoding="utf-8")).get("multilingual")
            if isinstance(section, dict):
                raw.update(section)
        except (OSError, ValueError, AttributeError) as e:
            # package.json 出错不影响运行
            logger.warning(f"Ignoring unreadable {package_json}: {e}")

    return {_FILE_FIELDS[k]: v for k, v in raw.items() if k in _FILE_FIELDS}


@dataclass
class GeneratorConfig:
    """Configuration for locale generation."""

    # Project settings
    project_root: Path = field(default_factory=Path.cwd)
    output_dir: str = "./locales"
    source_language: str = "en"
    target_languages: List[str] = field(default_factory=list)

    # Backend settings
    backend: str = NO_BACKEND
    credential: Optional[str] = None
    rate_limit_delay_ms: int = 100
    batch_size: int = 50
    libretranslate_instances: Optional[List[str]] = None
    lingva_instances: Optional[List[str]] = None
    argos_endpoint: Optional[str] = None
    llm_model: Optional[str] = None
    llm_base_url: Optional[str] = None
    request_timeout: float = 10.0

    # Output settings
    output_format: str = "json"
    flat_keys: bool = False
    key_style: str = "auto"
    preserve_existing: bool = True
    sort_keys: bool = True

    # Translation memory
    memory_enabled: bool = True
    memory_path: Optional[Path] = None
    fuzzy_best_match: bool = False

    def __post_init__(self):
        """Normalize paths and load the credential from environment if not provided."""
        self.project_root = Path(self.project_root)
        if self.memory_path is None:
            self.memory_path = default_memory_path(self.project_root)
        else:
            self.memory_path = Path(self.memory_path)
        if not self.credential:
            self.credential = credential_from_env(self.backend)

    @property
    def use_flat_keys(self) -> bool:
        return self.flat_keys or self.key_style == "flat"

    @property
    def output_path(self) -> Path:
        return (self.project_root / self.output_dir).resolve()

    @property
    def dictionaries_dir(self) -> Path:
        return self.project_root / ".multilingual" / "dictionaries"

    def backend_options(self, backend: str) -> Dict[str, Any]:
        """Constructor options for ``backend``."""
        options: Dict[str, Any] = {"timeout": self.request_timeout}
        if backend == "libretranslate" and self.libretranslate_instances:
            options["instances"] = self.libretranslate_instances
        elif backend == "lingva" and self.lingva_instances:
            options["instances"] = self.lingva_instances
        elif backend == "argos" and self.argos_endpoint:
            options["endpoint"] = self.argos_endpoint
        elif backend == "llm":
            options["model"] = self.llm_model
            options["base_url"] = self.llm_base_url
            options["timeout"] = max(self.request_timeout, 60.0)
        elif backend == "local":
            options["dictionaries_dir"] = self.dictionaries_dir
        return options

    @classmethod
    def from_file(cls, project_root: Path, **overrides: Any) -> "GeneratorConfig":
        """Create config from the project's config file, then ``overrides``."""
        values = load_config_file(Path(project_root))
        values.update(overrides)
        return cls(project_root=Path(project_root), **values)

    @classmethod
    def from_args(cls, args) -> "GeneratorConfig":
        """Create config from argparse namespace, layered over the config file."""
        overrides: Dict[str, Any] = {}
        instances = None
        for attr, name in _ARG_FIELDS.items():
            value = getattr(args, attr, None)
            if value is None:
                continue
            if name == "instances":
                instances = value
            else:
                overrides[name] = value

        config = cls.from_file(Path(getattr(args, "project_root", None) or "."), **overrides)
        if instances:
            # --instance 适用于当前选择的后端
            if config.backend == "lingva":
                config.lingva_instances = instances
            else:
                config.libretranslate_instances = instances
        return config

    def validate(self) -> Optional[str]:
        """
        Validate configuration.

        Returns:
            Error message if invalid, None if valid
        """
        if not self.source_language:
            return "Source language is required"

        if not self.target_languages:
            return "At least one target language is required. Use --target or set targetLanguages"

        if self.source_language in self.target_languages:
            return f"Source language '{self.source_language}' cannot also be a target"

        unknown = [lang for lang in [self.source_language] + self.target_languages if not is_supported(lang)]
        if unknown:
            logger.warning(f"Languages not in the supported list: {', '.join(unknown)}")

        if self.backend != NO_BACKEND and self.backend not in BACKENDS:
            return f"Unknown translation backend '{self.backend}'"

        cls = BACKENDS.get(self.backend)
        if cls is not None and cls.requires_credential and not self.credential:
            env_names = " or ".join(list(cls.credential_env) + [GENERIC_CREDENTIAL_ENV])
            return f"{self.backend} requires an API key. Set {env_names} or use --credential"

        if self.rate_limit_delay_ms < 0:
            return f"Rate limit delay must be >= 0, got {self.rate_limit_delay_ms}"

        if self.batch_size < 1 or self.batch_size > MAX_BATCH_SIZE:
            return f"Batch size must be 1-{MAX_BATCH_SIZE}, got {self.batch_size}"

        if self.output_format not in OUTPUT_FORMATS:
            return f"Output format must be one of {', '.join(OUTPUT_FORMATS)}, got {self.output_format}"

        if self.key_style not in KEY_STYLES:
            return f"Key style must be one of {', '.join(KEY_STYLES)}, got {self.key_style}"

        return None
