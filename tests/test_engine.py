"""
Tests for paddle_ocr_ncnn/engine.py

Initialize-before-use, input validation and pass-through results.
"""

import io

import pytest
from PIL import Image

from paddle_ocr_ncnn.engine import EngineState, OCRResult, PaddleOCR, create_ocr
from paddle_ocr_ncnn.errors import ConfigNotFound, ImageNotFound, InvalidInputType, NotInitialized
from tests.conftest import SAMPLE_RESULT, FakeEngine


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{}")
    return path


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "img.png"
    Image.new("RGB", (8, 8), "white").save(path)
    return path


@pytest.fixture
def ready_ocr(binding, config_file):
    ocr = PaddleOCR(binding)
    assert ocr.initialize(config_file) is True
    return ocr


class TestInitialize:
    def test_success(self, binding, fake_engine, config_file):
        ocr = PaddleOCR(binding)

        assert ocr.initialize(config_file) is True
        assert ocr.is_initialized
        assert ocr.state is EngineState.INITIALIZED
        assert fake_engine.calls == [("initialize", str(config_file.resolve()))]

    def test_delegate_false_stays_uninitialized(self, config_file):
        engine = FakeEngine(init_result=False)
        ocr = PaddleOCR(type("Binding", (), {"OCREngine": lambda: engine}))

        assert ocr.initialize(config_file) is False
        assert not ocr.is_initialized

    def test_missing_config(self, binding, fake_engine):
        ocr = PaddleOCR(binding)

        with pytest.raises(ConfigNotFound) as exc_info:
            ocr.initialize("/missing/config.json")

        assert str(exc_info.value.path) == str(exc_info.value.path.resolve())
        assert "/missing/config.json" in str(exc_info.value)
        assert fake_engine.calls == []
        assert not ocr.is_initialized

    def test_relative_path_resolved(self, binding, fake_engine, config_file, monkeypatch):
        monkeypatch.chdir(config_file.parent)

        PaddleOCR(binding).initialize("config.json")

        assert fake_engine.calls[0][1] == str(config_file.resolve())

    def test_config_not_found_is_file_not_found(self, binding):
        with pytest.raises(FileNotFoundError):
            PaddleOCR(binding).initialize("/missing/config.json")


class TestNotInitialized:
    def test_detect_never_reaches_engine(self, binding, fake_engine, image_file):
        with pytest.raises(NotInitialized):
            PaddleOCR(binding).detect(image_file)
        assert fake_engine.calls == []

    def test_detect_buffer_never_reaches_engine(self, binding, fake_engine):
        with pytest.raises(NotInitialized):
            PaddleOCR(binding).detect_buffer(b"\x89PNG")
        assert fake_engine.calls == []


class TestDetect:
    def test_returns_engine_results_unmodified(self, ready_ocr, fake_engine, image_file):
        results = ready_ocr.detect(image_file)

        assert results is fake_engine.results
        assert fake_engine.calls[-1] == ("detect", str(image_file.resolve()))

    def test_missing_image_keeps_state(self, ready_ocr, fake_engine):
        with pytest.raises(ImageNotFound) as exc_info:
            ready_ocr.detect("/missing/image.png")

        assert "/missing/image.png" in str(exc_info.value)
        assert ready_ocr.is_initialized
        assert [c[0] for c in fake_engine.calls] == ["initialize"]


class TestDetectBuffer:
    @pytest.mark.parametrize("bad_input", ["not bytes", 42, {"data": b"x"}, [1, 2, 3], None])
    def test_rejects_non_buffers(self, ready_ocr, fake_engine, bad_input):
        with pytest.raises(InvalidInputType):
            ready_ocr.detect_buffer(bad_input)
        assert [c[0] for c in fake_engine.calls] == ["initialize"]
        assert ready_ocr.is_initialized

    def test_invalid_input_is_type_error(self, ready_ocr):
        with pytest.raises(TypeError):
            ready_ocr.detect_buffer("not bytes")

    def test_accepts_bytearray_and_memoryview(self, ready_ocr, fake_engine):
        ready_ocr.detect_buffer(bytearray(b"abc"))
        ready_ocr.detect_buffer(memoryview(b"def"))

        assert fake_engine.calls[1:] == [("detect_buffer", b"abc"), ("detect_buffer", b"def")]

    def test_detect_image_sends_png(self, ready_ocr, fake_engine):
        image = Image.new("RGBA", (4, 4), (255, 0, 0, 128))

        ready_ocr.detect_image(image)

        name, data = fake_engine.calls[-1]
        assert name == "detect_buffer"
        assert data.startswith(b"\x89PNG")
        assert Image.open(io.BytesIO(data)).mode == "RGB"


class TestCreateOCR:
    def test_without_config(self, binding):
        assert not create_ocr(binding=binding).is_initialized

    def test_with_config(self, binding, config_file):
        assert create_ocr(config_file, binding=binding).is_initialized


class TestOCRResult:
    def test_from_native(self):
        result = OCRResult.from_native(SAMPLE_RESULT)

        assert result.text == "Hello"
        assert len(result.box) == 4
        assert result.box[1].x == 110
        assert result.angle.is_rotated is False
        assert result.angle.score == pytest.approx(0.88)

    def test_box_must_have_four_points(self):
        raw = dict(SAMPLE_RESULT, box=SAMPLE_RESULT["box"][:3])

        with pytest.raises(ValueError):
            OCRResult.from_native(raw)
