"""Tests for configuration."""

import argparse
import json
import logging

import pytest

from multilingual.config import GeneratorConfig, load_config_file


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("DEEPL_API_KEY", "GOOGLE_TRANSLATE_API_KEY", "OPENAI_API_KEY", "MULTILINGUAL_API_KEY"):
        monkeypatch.delenv(name, raising=False)


class TestGeneratorConfig:

    def test_defaults(self, tmp_path):
        config = GeneratorConfig(project_root=tmp_path)
        assert config.backend == "none"
        assert config.rate_limit_delay_ms == 100
        assert config.batch_size == 50
        assert config.preserve_existing
        assert config.sort_keys
        assert config.memory_path == tmp_path / ".multilingual" / "translation-memory.json"
        assert config.output_path == (tmp_path / "locales").resolve()

    def test_credential_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DEEPL_API_KEY", "deepl-key:fx")
        config = GeneratorConfig(project_root=tmp_path, backend="deepl")
        assert config.credential == "deepl-key:fx"

    def test_generic_credential(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MULTILINGUAL_API_KEY", "generic")
        config = GeneratorConfig(project_root=tmp_path, backend="google")
        assert config.credential == "generic"

    def test_free_backend_ignores_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MULTILINGUAL_API_KEY", "generic")
        config = GeneratorConfig(project_root=tmp_path, backend="lingva")
        assert config.credential is None

    def test_flat_key_style(self, tmp_path):
        assert GeneratorConfig(project_root=tmp_path, key_style="flat").use_flat_keys
        assert not GeneratorConfig(project_root=tmp_path, key_style="auto").use_flat_keys

    def test_backend_options(self, tmp_path):
        config = GeneratorConfig(project_root=tmp_path, lingva_instances=["https://l.test"])
        assert config.backend_options("lingva")["instances"] == ["https://l.test"]
        assert "instances" not in config.backend_options("libretranslate")
        assert config.backend_options("local")["dictionaries_dir"] == tmp_path / ".multilingual" / "dictionaries"


class TestValidate:

    def make(self, tmp_path, **kwargs):
        kwargs.setdefault("target_languages", ["es"])
        return GeneratorConfig(project_root=tmp_path, **kwargs)

    def test_valid(self, tmp_path):
        assert self.make(tmp_path).validate() is None

    def test_no_targets(self, tmp_path):
        assert "target language" in self.make(tmp_path, target_languages=[]).validate()

    def test_source_in_targets(self, tmp_path):
        assert self.make(tmp_path, target_languages=["en", "es"]).validate() is not None

    def test_unknown_backend(self, tmp_path):
        assert "Unknown translation backend" in self.make(tmp_path, backend="babelfish").validate()

    def test_missing_credential(self, tmp_path):
        error = self.make(tmp_path, backend="deepl").validate()
        assert "DEEPL_API_KEY" in error

    def test_credential_given(self, tmp_path):
        assert self.make(tmp_path, backend="deepl", credential="k").validate() is None

    @pytest.mark.parametrize("size", [0, 51])
    def test_batch_size(self, tmp_path, size):
        assert "Batch size" in self.make(tmp_path, batch_size=size).validate()

    def test_negative_delay(self, tmp_path):
        assert self.make(tmp_path, rate_limit_delay_ms=-1).validate() is not None

    def test_output_format(self, tmp_path):
        assert self.make(tmp_path, output_format="yaml").validate() is not None


class TestConfigFile:

    def test_camel_case_file(self, tmp_path):
        (tmp_path / "multilingual.config.json").write_text(json.dumps({
            "sourceLanguage": "en",
            "targetLanguages": ["fr", "de"],
            "translationService": "libretranslate",
            "outputDir": "./i18n",
            "flatKeys": True,
            "include": ["src/**/*"],
        }), encoding="utf-8")

        config = GeneratorConfig.from_file(tmp_path)
        assert config.target_languages == ["fr", "de"]
        assert config.backend == "libretranslate"
        assert config.output_dir == "./i18n"
        assert config.flat_keys

    def test_rc_file(self, tmp_path):
        (tmp_path / ".multilingualrc").write_text('{"targetLanguages": ["ja"]}', encoding="utf-8")
        assert load_config_file(tmp_path) == {"target_languages": ["ja"]}

    def test_package_json_section(self, tmp_path):
        (tmp_path / "multilingual.config.json").write_text('{"targetLanguages": ["fr"]}', encoding="utf-8")
        (tmp_path / "package.json").write_text(
            json.dumps({"name": "app", "multilingual": {"targetLanguages": ["it"]}}), encoding="utf-8"
        )
        assert load_config_file(tmp_path)["target_languages"] == ["it"]

    def test_broken_file_ignored(self, tmp_path):
        (tmp_path / "multilingual.config.json").write_text("{oops", encoding="utf-8")
        assert load_config_file(tmp_path) == {}

    def test_broken_package_json_warns(self, tmp_path, caplog):
        (tmp_path / ".multilingualrc").write_text('{"targetLanguages": ["ja"]}', encoding="utf-8")
        (tmp_path / "package.json").write_text("{oops", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="multilingual.config"):
            assert load_config_file(tmp_path) == {"target_languages": ["ja"]}
        assert "package.json" in caplog.text

    def test_from_args_overrides_file(self, tmp_path):
        (tmp_path / "multilingual.config.json").write_text(
            json.dumps({"targetLanguages": ["fr"], "translationService": "lingva"}), encoding="utf-8"
        )
        args = argparse.Namespace(
            project_root=tmp_path,
            targets=["es", "de"],
            backend=None,
            delay_ms=500,
            instances=["https://mine.test"],
        )

        config = GeneratorConfig.from_args(args)
        assert config.target_languages == ["es", "de"]
        assert config.backend == "lingva"
        assert config.rate_limit_delay_ms == 500
        assert config.lingva_instances == ["https://mine.test"]
