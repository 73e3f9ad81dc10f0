"""Tests for the command-line interface."""

import json

import pytest

from multilingual.cli import main, parse_arguments


class TestParseArguments:

    def test_generate(self, tmp_path):
        args = parse_arguments([
            "--project-root", str(tmp_path),
            "generate", "strings.json", "-t", "es", "fr", "-b", "deepl", "--delay-ms", "250",
        ])
        assert args.command == "generate"
        assert args.targets == ["es", "fr"]
        assert args.backend == "deepl"
        assert args.delay_ms == 250
        # 未指定的选项保持 None，交给配置文件
        assert args.flat is None
        assert args.memory is None

    def test_no_memory(self):
        args = parse_arguments(["translate", "Hi", "-t", "es", "--no-memory"])
        assert args.memory is False
        assert args.target == "es"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_arguments([])


class TestMain:

    def test_backends(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["backends"])
        assert exc_info.value.code == 0
        out = capsys.readouterr().out
        assert "deepl" in out
        assert "key required" in out

    def test_translate(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--project-root", str(tmp_path), "translate", "Hello", "-t", "es",
                  "-b", "dictionary", "--no-memory"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.strip() == "Hola"

    def test_generate(self, tmp_path):
        strings = tmp_path / "strings.json"
        strings.write_text(json.dumps([
            {"key": "title", "value": "Welcome", "file": "src/pages/Home.tsx"},
        ]), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--project-root", str(tmp_path), "generate", str(strings), "-t", "es",
                  "-b", "dictionary", "--no-progress-bar", "--no-memory"])

        assert exc_info.value.code == 0
        es = json.loads((tmp_path / "locales" / "es.json").read_text(encoding="utf-8"))
        assert es == {"Home": {"title": "Bienvenido"}}

    def test_generate_invalid_config(self, tmp_path):
        strings = tmp_path / "strings.json"
        strings.write_text("[]", encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["--project-root", str(tmp_path), "generate", str(strings)])
        assert exc_info.value.code == 1
