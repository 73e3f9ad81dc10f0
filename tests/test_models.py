"""Tests for data models."""

import pytest
from multilingual.models import (
    ExtractedString,
    TranslationMemoryEntry,
    TranslationPlan,
    TranslationResult,
)


class TestExtractedString:

    def test_from_dict(self):
        s = ExtractedString.from_dict({
            "key": "title", "value": "Welcome", "file": "src/App.tsx",
            "line": 3, "column": 7, "type": "jsx", "extra": "ignored",
        })
        assert s.key == "title"
        assert s.line == 3
        assert s.type == "jsx"

    def test_unknown_type(self):
        s = ExtractedString.from_dict({"key": "k", "value": "v", "type": "weird"})
        assert s.type == "text"
        assert s.file == ""

    def test_missing_value(self):
        with pytest.raises(KeyError):
            ExtractedString.from_dict({"key": "k"})

    def test_not_an_object(self):
        with pytest.raises(TypeError):
            ExtractedString.from_dict("title")

    def test_immutable(self):
        s = ExtractedString(key="k", value="v", file="f")
        with pytest.raises(AttributeError):
            s.value = "changed"


class TestTranslationResult:

    def test_ok(self):
        r = TranslationResult.ok("Hola", "deepl")
        assert r.success
        assert r.text == "Hola"
        assert not r.cached

    def test_failed(self):
        r = TranslationResult.failed("DEEPL rate limit exceeded. Please try again later.", "deepl")
        assert not r.success
        assert r.text is None
        assert "rate limit" in r.error


class TestMemoryEntry:

    def test_roundtrip_camel_case(self):
        entry = TranslationMemoryEntry("hello", "hola", "en", "es", "deepl", timestamp=1)
        data = entry.to_dict()
        assert data["sourceLang"] == "en"
        assert data["service"] == "deepl"
        assert TranslationMemoryEntry.from_dict(data) == entry

    def test_timestamp_default(self):
        entry = TranslationMemoryEntry("hello", "hola", "en", "es", "deepl")
        assert entry.timestamp > 0


class TestTranslationPlan:

    def test_texts_unique_in_order(self):
        plan = TranslationPlan("es", {}, [("a", "Save"), ("b", "Cancel"), ("c", "Save")])
        assert plan.texts == ["Save", "Cancel"]
