"""
paddle_ocr_ncnn
Loader, installer and facade for the ncnn PaddleOCR native module.
"""

from .engine import PaddleOCR, OCRResult, EngineState, create_ocr
from .binding_resolver import RuntimeIdentity, identify, resolve, get_binding
from .errors import PaddleOCRError

__all__ = [
    "PaddleOCR",
    "OCRResult",
    "EngineState",
    "create_ocr",
    "RuntimeIdentity",
    "identify",
    "resolve",
    "get_binding",
    "PaddleOCRError",
]
__version__ = "1.0.0"
