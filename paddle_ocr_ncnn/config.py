"""
Configuration - constants, dependency release tables and environment overrides.
"""

import os
from pathlib import Path
from typing import Dict, Optional

try:
    from dotenv import load_dotenv
    env_path = Path(__file__).parent.parent / ".env"
    if env_path.exists():
        load_dotenv(env_path)
except ImportError:
    pass

BINDING_NAME = "paddle_ocr_ncnn"
VERSION = "1.0.0"

# prebuilds/, build/ and deps/ live inside the installed package
PACKAGE_ROOT = Path(os.environ.get("PADDLE_OCR_NCNN_ROOT") or Path(__file__).resolve().parent)

PREBUILT_HOST = os.environ.get("PADDLE_OCR_NCNN_PREBUILT_HOST", "")
OPENCV_DIR = os.environ.get("OPENCV_DIR")

# ncnn releases with Vulkan support
NCNN_VERSION = "20241226"
NCNN_RELEASES: Dict[str, Optional[str]] = {
    "darwin-arm64": f"https://github.com/Tencent/ncnn/releases/download/{NCNN_VERSION}/ncnn-{NCNN_VERSION}-macos-vulkan.zip",
    "darwin-x64": f"https://github.com/Tencent/ncnn/releases/download/{NCNN_VERSION}/ncnn-{NCNN_VERSION}-macos-vulkan.zip",
    "linux-x64": f"https://github.com/Tencent/ncnn/releases/download/{NCNN_VERSION}/ncnn-{NCNN_VERSION}-ubuntu-2204-vulkan.zip",
    "win32-x64": f"https://github.com/Tencent/ncnn/releases/download/{NCNN_VERSION}/ncnn-{NCNN_VERSION}-windows-vs2022.zip",
}

# None means the system package manager provides it (brew / apt)
OPENCV_VERSION = "4.12.0"
OPENCV_RELEASES: Dict[str, Optional[str]] = {
    "darwin-arm64": None,
    "darwin-x64": None,
    "linux-x64": None,
    "win32-x64": f"https://github.com/opencv/opencv/releases/download/{OPENCV_VERSION}/opencv-{OPENCV_VERSION}-windows.exe",
}

OPENCV_SYSTEM_HINT = (
    "OpenCV needs to be installed via system package manager:\n"
    "  On macOS: brew install opencv\n"
    "  On Ubuntu: sudo apt-get install libopencv-dev\n"
    "Alternatively, set OPENCV_DIR environment variable to your OpenCV installation."
)

# Toolset selection is only required on Windows
MSVS_GENERATOR = "Visual Studio 17 2022"


def native_extension(os_name: str) -> str:
    """File extension of a compiled extension module on the given OS."""
    return ".pyd" if os_name == "win32" else ".so"
