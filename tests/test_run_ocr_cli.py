"""
Tests for scripts/run_ocr_cli.py

Exit codes and output for the command-line OCR runner.
"""

import importlib.util
import json
from pathlib import Path
from types import SimpleNamespace

import pytest

from tests.conftest import SAMPLE_RESULT, FakeEngine

SCRIPT = Path(__file__).parent.parent / "scripts" / "run_ocr_cli.py"


@pytest.fixture
def cli():
    spec = importlib.util.spec_from_file_location("run_ocr_cli", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def inputs(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{}")
    image = tmp_path / "img.png"
    image.write_bytes(b"\x89PNG")
    return ["--config", str(config_file), "--image", str(image)]


def use_engine(monkeypatch, cli, engine):
    monkeypatch.setattr(cli, "get_binding", lambda: SimpleNamespace(OCREngine=lambda: engine))


class TestMain:
    def test_prints_regions(self, monkeypatch, cli, inputs, capsys):
        use_engine(monkeypatch, cli, FakeEngine())

        assert cli.main(inputs) == 0

        out = capsys.readouterr().out
        assert "Found 1 text region(s)" in out
        assert "Text: Hello" in out

    def test_saves_json_output(self, monkeypatch, cli, inputs, tmp_path):
        use_engine(monkeypatch, cli, FakeEngine())
        output = tmp_path / "out" / "result.json"

        assert cli.main(inputs + ["--output", str(output)]) == 0

        saved = json.loads(output.read_text())
        assert saved[0]["text"] == "Hello"

    def test_initialize_failure_exit_one(self, monkeypatch, cli, inputs):
        use_engine(monkeypatch, cli, FakeEngine(init_result=False))

        assert cli.main(inputs) == 1

    def test_missing_image_exit_one(self, monkeypatch, cli, inputs, tmp_path):
        use_engine(monkeypatch, cli, FakeEngine())
        inputs[-1] = str(tmp_path / "missing.png")

        assert cli.main(inputs) == 1

    def test_malformed_engine_result_exit_one(self, monkeypatch, cli, inputs, capsys):
        three_points = dict(SAMPLE_RESULT, box=SAMPLE_RESULT["box"][:3])
        use_engine(monkeypatch, cli, FakeEngine(results=[three_points]))

        assert cli.main(inputs) == 1
        assert "Found" not in capsys.readouterr().out

    def test_result_missing_text_exit_one(self, monkeypatch, cli, inputs):
        no_text = {k: v for k, v in SAMPLE_RESULT.items() if k != "text"}
        use_engine(monkeypatch, cli, FakeEngine(results=[no_text]))

        assert cli.main(inputs) == 1
