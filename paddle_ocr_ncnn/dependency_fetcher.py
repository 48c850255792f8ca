"""
Dependency Fetcher - downloads and extracts ncnn and OpenCV release archives.
Supports: macOS (arm64, x64), Linux (x64), Windows (x64)
"""

from __future__ import annotations

import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional
from urllib.parse import urljoin

import requests
from loguru import logger

from .config import (
    NCNN_RELEASES,
    NCNN_VERSION,
    OPENCV_RELEASES,
    OPENCV_SYSTEM_HINT,
    OPENCV_VERSION,
    PACKAGE_ROOT,
)
from .errors import DownloadFailure, ExtractionFailure, PaddleOCRError, UnsupportedPlatform

CHUNK_SIZE = 1024 * 64
REDIRECT_STATUSES = (301, 302)

ProgressCallback = Callable[[float], None]
Extractor = Callable[[Path, Path, str], None]


@dataclass(frozen=True)
class DependencyArchive:
    """A versioned third-party library fetched before local compilation."""
    name: str
    version: str
    urls: Dict[str, Optional[str]] = field(hash=False)
    dest_root: Path
    kind: str = "zip"
    manual_hint: str = ""

    @property
    def dest_dir(self) -> Path:
        return self.dest_root / self.name

    @property
    def archive_path(self) -> Path:
        suffix = ".exe" if self.kind == "sfx" else ".zip"
        return self.dest_root / f"{self.name}{suffix}"


def default_archives(deps_dir: Optional[Path] = None) -> list:
    """The two native dependencies, in fetch order."""
    deps_dir = Path(deps_dir or PACKAGE_ROOT / "deps")
    return [
        DependencyArchive(
            name="ncnn",
            version=NCNN_VERSION,
            urls=NCNN_RELEASES,
            dest_root=deps_dir,
            manual_hint="Please manually download ncnn with Vulkan support",
        ),
        DependencyArchive(
            name="opencv",
            version=OPENCV_VERSION,
            urls=OPENCV_RELEASES,
            dest_root=deps_dir,
            kind="sfx",
            manual_hint="Please manually download OpenCV from https://opencv.org/releases/",
        ),
    ]


def log_progress(fraction: float) -> None:
    sys.stdout.write(f"\rProgress: {fraction * 100:.1f}%")
    sys.stdout.flush()


def download_file(
    url: str,
    dest: Path,
    session: Optional[requests.Session] = None,
    progress: Optional[ProgressCallback] = log_progress,
) -> Path:
    """
    Stream ``url`` into ``dest``, following 301/302 redirects.

    Sources are fixed release hosts, so the redirect chain is not bounded.
    No timeout is applied; a stalled transfer blocks until the peer gives up.

    Raises:
        DownloadFailure: non-200 final status or transport error. The partial
            file is removed so a retry never sees a truncated archive.
    """
    session = session or requests.Session()
    dest = Path(dest)
    logger.info(f"Downloading: {url}")

    try:
        with session.get(url, stream=True, allow_redirects=False, timeout=None) as response:
            if response.status_code in REDIRECT_STATUSES:
                location = response.headers.get("location")
                if not location:
                    raise DownloadFailure(url, f"redirect {response.status_code} without location")
                return download_file(urljoin(url, location), dest, session, progress)

            if response.status_code != 200:
                raise DownloadFailure(url, f"HTTP {response.status_code}")

            total = int(response.headers.get("content-length") or 0)
            downloaded = 0
            dest.parent.mkdir(parents=True, exist_ok=True)
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if not chunk:
                        continue
                    f.write(chunk)
                    downloaded += len(chunk)
                    if total and progress:
                        progress(downloaded / total)
    except (requests.RequestException, OSError) as e:
        dest.unlink(missing_ok=True)
        raise DownloadFailure(url, str(e)) from e

    if total and progress is log_progress:
        sys.stdout.write("\n")
    logger.success(f"Download complete: {dest}")
    return dest


def _extract_command(archive: Path, dest_root: Path, kind: str) -> list:
    if kind == "sfx":
        # 7-Zip self-extracting archive
        return [str(archive), f"-o{dest_root}", "-y"]
    if sys.platform == "win32":
        return [
            "powershell", "-Command",
            f"Expand-Archive -Path '{archive}' -DestinationPath '{dest_root}' -Force",
        ]
    return ["unzip", "-o", "-q", str(archive), "-d", str(dest_root)]


def extract_archive(archive: Path, dest_root: Path, kind: str = "zip") -> None:
    """Extract with the platform's native archive tool, then delete the archive."""
    cmd = _extract_command(archive, dest_root, kind)
    logger.info(f"Extracting: {archive}")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        raise ExtractionFailure(archive, f"cannot run {cmd[0]}: {e}") from e

    if result.returncode != 0:
        logger.error(f"Extraction failed: {result.stderr}")
        raise ExtractionFailure(archive, result.stderr.strip() or f"exit status {result.returncode}")

    Path(archive).unlink(missing_ok=True)
    logger.success("Extraction complete.")


def canonicalize_dir(dest_root: Path, name: str) -> Optional[Path]:
    """Rename a version-qualified extraction dir (e.g. ncnn-20241226-...) to ``name``."""
    target = dest_root / name
    if target.exists():
        return target
    for candidate in sorted(dest_root.iterdir()):
        if candidate.is_dir() and candidate.name.startswith(f"{name}-"):
            try:
                candidate.rename(target)
            except OSError as e:
                raise ExtractionFailure(candidate, f"cannot rename to {target}: {e}") from e
            logger.info(f"Renamed {candidate.name} -> {name}")
            return target
    return None


def fetch(
    archive: DependencyArchive,
    platform_key: str,
    session: Optional[requests.Session] = None,
    extractor: Extractor = extract_archive,
    progress: Optional[ProgressCallback] = log_progress,
) -> Optional[Path]:
    """
    Download and extract one dependency archive.

    Returns the canonical directory, or None when this platform has no
    download and the library must come from the system package manager.

    Raises:
        UnsupportedPlatform: ``platform_key`` is not in the archive's table.
        DownloadFailure, ExtractionFailure: acquisition failed.
    """
    if archive.dest_dir.exists():
        logger.info(f"{archive.name} already exists, skipping download.")
        return archive.dest_dir

    if platform_key not in archive.urls:
        raise UnsupportedPlatform(platform_key, archive.urls.keys())

    url = archive.urls[platform_key]
    if not url:
        logger.warning(f"No {archive.name} download for {platform_key}.")
        if archive.name == "opencv":
            logger.warning(OPENCV_SYSTEM_HINT)
        return None

    archive.dest_root.mkdir(parents=True, exist_ok=True)
    download_file(url, archive.archive_path, session=session, progress=progress)
    extractor(archive.archive_path, archive.dest_root, archive.kind)

    dest = canonicalize_dir(archive.dest_root, archive.name)
    if dest is None:
        raise ExtractionFailure(archive.archive_path, f"no {archive.name}* directory found after extraction")
    logger.success(f"{archive.name} {archive.version} installed to: {dest}")
    return dest


def fetch_all(
    platform_key: str,
    deps_dir: Optional[Path] = None,
    session: Optional[requests.Session] = None,
    extractor: Extractor = extract_archive,
    progress: Optional[ProgressCallback] = log_progress,
) -> None:
    """
    Fetch ncnn, then OpenCV, one after the other.

    An unsupported platform is fatal. Download and extraction errors are
    reported with manual-install guidance and do not stop the next fetch.
    """
    logger.info(f"Platform: {platform_key}")
    session = session or requests.Session()

    for archive in default_archives(deps_dir):
        try:
            fetch(archive, platform_key, session=session, extractor=extractor, progress=progress)
        except UnsupportedPlatform:
            raise
        except PaddleOCRError as e:
            logger.error(f"Failed to download {archive.name}: {e}")
            logger.warning(f"{archive.manual_hint}: {archive.urls.get(platform_key)}")
            logger.warning(f"And extract to: {archive.dest_dir}")


class HttpDependencyFetcher:
    """DependencyFetcher capability backed by ``fetch_all``."""

    def __init__(self, deps_dir: Optional[Path] = None, session: Optional[requests.Session] = None):
        self.deps_dir = deps_dir
        self.session = session

    def fetch_all(self, platform_key: str) -> None:
        fetch_all(platform_key, deps_dir=self.deps_dir, session=self.session)
