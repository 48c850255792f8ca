"""
Engine Facade - the object application code uses to run OCR.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any, Dict, List, Optional, Union

from PIL import Image
from loguru import logger

from .binding_resolver import get_binding
from .errors import ConfigNotFound, ImageNotFound, InvalidInputType, NotInitialized
from .imaging import image_to_bytes

BufferLike = Union[bytes, bytearray, memoryview]


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"


@dataclass
class Point:
    x: int
    y: int


@dataclass
class AngleInfo:
    """Whether the region is rotated 180 degrees, and the classifier's confidence."""
    is_rotated: bool
    score: float


@dataclass
class OCRResult:
    """Container for one detected text region."""
    text: str
    char_scores: List[float]
    box: List[Point]
    box_score: float
    angle: AngleInfo = field(default_factory=lambda: AngleInfo(False, 0.0))

    @classmethod
    def from_native(cls, raw: Dict[str, Any]) -> "OCRResult":
        box = [Point(int(p["x"]), int(p["y"])) for p in raw["box"]]
        if len(box) != 4:
            raise ValueError(f"Expected 4 box points, got {len(box)}")
        angle = raw.get("angle") or {}
        return cls(
            text=raw["text"],
            char_scores=list(raw.get("char_scores", [])),
            box=box,
            box_score=float(raw["box_score"]),
            angle=AngleInfo(bool(angle.get("is_rotated", False)), float(angle.get("score", 0.0))),
        )


class PaddleOCR:
    """
    OCR engine for text detection and recognition.

    Wraps one ``OCREngine`` handle from the loaded native binding. The handle
    is not locked; concurrent calls on one instance must be serialized by the
    caller.
    """

    def __init__(self, binding: ModuleType):
        self._engine = binding.OCREngine()
        self._state = EngineState.UNINITIALIZED

    def initialize(self, config_path: Union[str, Path]) -> bool:
        """
        Initialize the OCR engine with a config file.

        Args:
            config_path: Path to the config.json file

        Returns:
            True if initialization was successful
        """
        absolute_path = Path(config_path).resolve()
        if not absolute_path.is_file():
            raise ConfigNotFound(absolute_path)

        ok = bool(self._engine.initialize(str(absolute_path)))
        if ok:
            self._state = EngineState.INITIALIZED
        else:
            logger.warning(f"OCR engine rejected config: {absolute_path}")
        return ok

    def _require_initialized(self) -> None:
        if self._state is not EngineState.INITIALIZED:
            raise NotInitialized()

    def detect(self, image_path: Union[str, Path]) -> List[Dict[str, Any]]:
        """
        Detect and recognize text in an image file.

        Results are returned as produced by the engine, in its scan order.
        """
        self._require_initialized()
        absolute_path = Path(image_path).resolve()
        if not absolute_path.is_file():
            raise ImageNotFound(absolute_path)
        return self._engine.detect(str(absolute_path))

    def detect_buffer(self, data: BufferLike) -> List[Dict[str, Any]]:
        """Detect and recognize text in an encoded image buffer."""
        self._require_initialized()
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidInputType(data)
        return self._engine.detect_buffer(bytes(data))

    def detect_image(self, image: Image.Image) -> List[Dict[str, Any]]:
        return self.detect_buffer(image_to_bytes(image))

    @property
    def state(self) -> EngineState:
        return self._state

    @property
    def is_initialized(self) -> bool:
        return self._state is EngineState.INITIALIZED


def create_ocr(config_path: Optional[Union[str, Path]] = None, binding: Optional[ModuleType] = None) -> PaddleOCR:
    """
    Create a new PaddleOCR instance.

    Args:
        config_path: Optional config path to auto-initialize
        binding: Native binding to use (default: the process-wide one)
    """
    if binding is None:
        binding = get_binding()
    ocr = PaddleOCR(binding)
    if config_path:
        ocr.initialize(config_path)
    return ocr
