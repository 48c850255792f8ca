#!/usr/bin/env python3
"""
Install the native module: prebuilt download first, else build from source.

Usage:
    python scripts/install.py
    python scripts/install.py --skip-prebuilt
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from paddle_ocr_ncnn.installer import main


if __name__ == "__main__":
    sys.exit(main())
