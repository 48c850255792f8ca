#!/usr/bin/env python3
"""
Installer - tries to download a prebuilt binary, falls back to building from source.

Usage:
    python -m paddle_ocr_ncnn.installer
    python -m paddle_ocr_ncnn.installer --skip-prebuilt
"""

from __future__ import annotations

import argparse
import subprocess
import sys
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol

from loguru import logger

from .binding_resolver import RuntimeIdentity, default_prebuilt_lookup, identify
from .config import (
    BINDING_NAME,
    MSVS_GENERATOR,
    OPENCV_DIR,
    PACKAGE_ROOT,
    PREBUILT_HOST,
    VERSION,
)
from .dependency_fetcher import Extractor, HttpDependencyFetcher, download_file, extract_archive
from .errors import CompileFailure, PaddleOCRError, UnsupportedPlatform


class InstallOutcome(str, Enum):
    PREBUILT = "prebuilt"
    SOURCE = "source"


class PrebuiltInstaller(Protocol):
    def available(self) -> bool:
        ...

    def install(self) -> bool:
        ...


class DependencyFetcher(Protocol):
    def fetch_all(self, platform_key: str) -> None:
        ...


class Compiler(Protocol):
    def rebuild(self) -> None:
        ...


class HttpPrebuiltInstaller:
    """Downloads an identity-tagged prebuilt archive into prebuilds/{os}-{arch}/."""

    def __init__(
        self,
        root: Path,
        identity: RuntimeIdentity,
        host: str = PREBUILT_HOST,
        session=None,
        extractor: Extractor = extract_archive,
    ):
        self.root = Path(root)
        self.identity = identity
        self.host = host.rstrip("/")
        self.session = session
        self.extractor = extractor

    @property
    def url(self) -> str:
        ident = self.identity
        return (
            f"{self.host}/v{VERSION}/"
            f"{BINDING_NAME}-v{VERSION}-{ident.host_flavor}-abi{ident.abi_version}-{ident.platform_key}.zip"
        )

    def available(self) -> bool:
        return bool(self.host)

    def install(self) -> bool:
        target = default_prebuilt_lookup(self.root, self.identity)
        archive = target.parent / f"{BINDING_NAME}-prebuilt.zip"
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            download_file(self.url, archive, session=self.session)
            self.extractor(archive, target.parent, "zip")
        except (PaddleOCRError, OSError) as e:
            logger.info(f"Could not install prebuilt binary: {e}")
            return False
        return target.is_file()


def _tool_name(name: str) -> str:
    return f"{name}.exe" if sys.platform == "win32" else name


def _bin_dir(prefix: Path) -> Path:
    return prefix / ("Scripts" if sys.platform == "win32" else "bin")


class CMakeCompiler:
    """Builds the native module with CMake into build/Release."""

    def __init__(self, root: Path, opencv_dir: Optional[str] = OPENCV_DIR):
        self.root = Path(root)
        self.opencv_dir = opencv_dir

    def find_cmake(self) -> str:
        """Project-local venv first, then the interpreter's environment, then PATH."""
        possible_paths = [
            _bin_dir(self.root / ".venv") / _tool_name("cmake"),
            _bin_dir(Path(sys.prefix)) / _tool_name("cmake"),
        ]
        for p in possible_paths:
            if p.exists():
                return str(p)
        return "cmake"

    def configure_command(self, cmake: str) -> List[str]:
        build_dir = self.root / "build"
        cmd = [
            cmake, "-S", str(self.root), "-B", str(build_dir),
            "-DCMAKE_BUILD_TYPE=Release",
            f"-DCMAKE_LIBRARY_OUTPUT_DIRECTORY={build_dir / 'Release'}",
            f"-DPython_EXECUTABLE={sys.executable}",
        ]
        ncnn_cmake = self.root / "deps" / "ncnn" / "lib" / "cmake" / "ncnn"
        if ncnn_cmake.exists():
            cmd.append(f"-Dncnn_DIR={ncnn_cmake}")

        opencv_dir = self.opencv_dir
        if not opencv_dir and (self.root / "deps" / "opencv" / "build").exists():
            opencv_dir = str(self.root / "deps" / "opencv" / "build")
        if opencv_dir:
            cmd.append(f"-DOpenCV_DIR={opencv_dir}")

        if sys.platform == "win32":
            cmd += ["-G", MSVS_GENERATOR]
        return cmd

    def build_command(self, cmake: str) -> List[str]:
        return [cmake, "--build", str(self.root / "build"), "--config", "Release", "--clean-first"]

    def _run(self, cmd: List[str]) -> None:
        logger.info(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, cwd=str(self.root))
        except OSError as e:
            raise CompileFailure(cmd, None, f"cannot run {cmd[0]}: {e}") from e
        if result.returncode != 0:
            raise CompileFailure(cmd, result.returncode)

    def rebuild(self) -> None:
        cmake = self.find_cmake()
        self._run(self.configure_command(cmake))
        self._run(self.build_command(cmake))


class Installer:
    """
    Install sequence: prebuilt download, else fetch dependencies and compile.

    No step is retried within a run.
    """

    def __init__(
        self,
        root: Path = PACKAGE_ROOT,
        identity: Optional[RuntimeIdentity] = None,
        prebuilt: Optional[PrebuiltInstaller] = None,
        fetcher: Optional[DependencyFetcher] = None,
        compiler: Optional[Compiler] = None,
    ):
        self.root = Path(root)
        self.identity = identity or identify()
        self.prebuilt = prebuilt or HttpPrebuiltInstaller(self.root, self.identity)
        self.fetcher = fetcher or HttpDependencyFetcher(self.root / "deps")
        self.compiler = compiler or CMakeCompiler(self.root)

    def try_prebuilt(self) -> bool:
        logger.info("Attempting to download prebuilt binary...")
        if not self.prebuilt.available():
            logger.info("Prebuilt source not configured, will build from source.")
            return False
        if self.prebuilt.install():
            logger.success("Prebuilt binary installed successfully!")
            return True
        return False

    def build_from_source(self) -> None:
        logger.info("Building from source...")
        logger.info("Downloading dependencies...")
        self.fetcher.fetch_all(self.identity.platform_key)

        logger.info("Compiling native module...")
        self.compiler.rebuild()
        logger.success("Native module built successfully!")

    def install(self, skip_prebuilt: bool = False) -> InstallOutcome:
        """
        Raises:
            UnsupportedPlatform: no dependency source for this platform.
            CompileFailure: the local build failed.
        """
        if not skip_prebuilt and self.try_prebuilt():
            return InstallOutcome.PREBUILT
        self.build_from_source()
        return InstallOutcome.SOURCE


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Install the paddle_ocr_ncnn native module (prebuilt or from source)",
    )
    parser.add_argument(
        "--root", "-r",
        default=str(PACKAGE_ROOT),
        help="Package root holding prebuilds/, build/ and deps/"
    )
    parser.add_argument(
        "--skip-prebuilt",
        action="store_true",
        help="Always build from source"
    )
    args = parser.parse_args(argv)

    try:
        outcome = Installer(root=Path(args.root)).install(skip_prebuilt=args.skip_prebuilt)
    except UnsupportedPlatform as e:
        logger.error(str(e))
        return 1
    except PaddleOCRError as e:
        logger.error(f"Installation failed: {e}")
        return 1

    logger.info(f"Installation finished ({outcome.value})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
