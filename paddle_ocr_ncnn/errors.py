"""Error taxonomy for binding resolution, installation and the engine facade."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence


class PaddleOCRError(Exception):
    """Base error for paddle_ocr_ncnn failures."""


class UnsupportedPlatform(PaddleOCRError):
    """Raised when no artifact or dependency source exists for this platform."""

    def __init__(self, platform_key: str, supported: Iterable[str]):
        self.platform_key = platform_key
        self.supported = list(supported)
        super().__init__(
            f"Unsupported platform: {platform_key}. "
            f"Supported platforms: {', '.join(self.supported)}"
        )


class BindingLoadFailure(PaddleOCRError):
    """Raised when no candidate location yields a loadable native module."""

    def __init__(self, identity, attempted_locations: Sequence):
        self.identity = identity
        self.attempted_locations = list(attempted_locations)
        lines = [
            "Failed to load paddle_ocr_ncnn native module.",
            f"Runtime: {identity.host_flavor}, ABI: {identity.abi_version}, "
            f"Platform: {identity.platform_key}.",
            "Attempted locations:",
        ]
        lines += [f"  - [{loc.strategy}] {loc.path}" for loc in self.attempted_locations]
        lines.append(
            "No prebuilt binary found for your platform. "
            "Please run `python scripts/install.py` to build from source. "
            "Make sure ncnn and OpenCV are installed."
        )
        super().__init__("\n".join(lines))


class DownloadFailure(PaddleOCRError):
    """Raised on transport errors or unexpected HTTP status while downloading."""

    def __init__(self, url: str, reason: str):
        self.url = url
        self.reason = reason
        super().__init__(f"Failed to download {url}: {reason}")


class ExtractionFailure(PaddleOCRError):
    """Raised when the archive tool fails or the archive is corrupt."""

    def __init__(self, archive: Path, reason: str):
        self.archive = Path(archive)
        self.reason = reason
        super().__init__(f"Failed to extract {archive}: {reason}")


class CompileFailure(PaddleOCRError):
    """Raised when the local native build fails."""

    def __init__(self, command: Sequence[str], returncode: int | None, reason: str = ""):
        self.command = list(command)
        self.returncode = returncode
        detail = reason or f"exit status {returncode}"
        super().__init__(f"Build command failed ({detail}): {' '.join(self.command)}")


class ConfigNotFound(PaddleOCRError, FileNotFoundError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Config file not found: {self.path}")


class ImageNotFound(PaddleOCRError, FileNotFoundError):
    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Image file not found: {self.path}")


class NotInitialized(PaddleOCRError):
    def __init__(self):
        super().__init__("OCR engine not initialized. Call initialize() first.")


class InvalidInputType(PaddleOCRError, TypeError):
    def __init__(self, received: object):
        self.received_type = type(received).__name__
        super().__init__(f"Expected a bytes-like buffer, got {self.received_type}")
