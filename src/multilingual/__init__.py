"""
multilingual - merge extracted strings into locale files and translate what is missing.

Features:
- Merge engine that keeps hand edits and soft-deletes removed keys
- Pluggable backends: paid APIs, free instances with failover, offline dictionaries, text transforms
- Fuzzy translation memory shared across runs
- Async, rate-limited dispatch with batching for batch-capable APIs
"""

__version__ = "1.0.0"

from .models import (
    ExtractedString,
    TranslationResult,
    TranslationMemoryEntry,
    MergeResult,
    TranslationPlan,
    GenerationResult,
)
from .config import GeneratorConfig
from .errors import MultilingualError, ConfigurationError, BackendError
from .backends import Backend, available_backends, create_backend
from .cache import TranslationCache
from .memory import TranslationMemory, calculate_similarity, levenshtein_distance
from .dispatcher import TranslationDispatcher
from .merger import merge_trees, reconcile_for_language, apply_translations, flatten_tree, unflatten_tree
from .generator import I18nGenerator
from .transforms import TRANSFORMS

__all__ = [
    # Models
    "ExtractedString",
    "TranslationResult",
    "TranslationMemoryEntry",
    "MergeResult",
    "TranslationPlan",
    "GenerationResult",
    "GeneratorConfig",
    # Errors
    "MultilingualError",
    "ConfigurationError",
    "BackendError",
    # Backends
    "Backend",
    "available_backends",
    "create_backend",
    "TranslationDispatcher",
    "TranslationCache",
    "TRANSFORMS",
    # Memory
    "TranslationMemory",
    "calculate_similarity",
    "levenshtein_distance",
    # Merging
    "merge_trees",
    "reconcile_for_language",
    "apply_translations",
    "flatten_tree",
    "unflatten_tree",
    # Generation
    "I18nGenerator",
]
