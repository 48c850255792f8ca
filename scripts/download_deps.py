#!/usr/bin/env python3
"""
Download Deps - fetch prebuilt ncnn and OpenCV into deps/.

Usage:
    python scripts/download_deps.py
    python scripts/download_deps.py --deps-dir /opt/paddle-deps --platform linux-x64
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from paddle_ocr_ncnn.binding_resolver import identify
from paddle_ocr_ncnn.config import PACKAGE_ROOT
from paddle_ocr_ncnn.dependency_fetcher import fetch_all
from paddle_ocr_ncnn.errors import UnsupportedPlatform
from loguru import logger


def main():
    parser = argparse.ArgumentParser(description="Download ncnn and OpenCV release archives")
    parser.add_argument(
        "--deps-dir", "-d",
        default=str(PACKAGE_ROOT / "deps"),
        help="Directory to extract dependencies into"
    )
    parser.add_argument(
        "--platform", "-p",
        default=identify().platform_key,
        help="Platform key, e.g. linux-x64 (default: this host)"
    )
    args = parser.parse_args()

    try:
        fetch_all(args.platform, deps_dir=Path(args.deps_dir))
    except UnsupportedPlatform as e:
        logger.error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
