#!/usr/bin/env python3
"""
OCR CLI - Run the native PaddleOCR engine on an image.

Usage:
    python scripts/run_ocr_cli.py --config models/config.json --image img.png
    python scripts/run_ocr_cli.py --config models/config.json --image https://example.com/img.png --buffer
    python scripts/run_ocr_cli.py --config models/config.json --image img.png --output result.json
"""

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from paddle_ocr_ncnn import PaddleOCR, PaddleOCRError, OCRResult, get_binding
from paddle_ocr_ncnn.imaging import load_image
from loguru import logger

ROOT = Path(__file__).parent.parent


def format_region(idx: int, result: OCRResult) -> str:
    """Format one detected region as human-readable text."""
    box = json.dumps([asdict(p) for p in result.box])
    return "\n".join([
        f"--- Region {idx} ---",
        f"Text: {result.text}",
        f"Box Score: {result.box_score * 100:.2f}%",
        f"Rotated: {result.angle.is_rotated}",
        f"Angle Score: {result.angle.score * 100:.2f}%",
        f"Bounding Box: {box}",
        "",
    ])


def save_results(results: list, output_path: str) -> None:
    """Save OCR results to JSON file."""
    Path(output_path).parent.mkdir(parents=True, exist_ok=True)
    Path(output_path).write_text(json.dumps([asdict(r) for r in results], indent=2, ensure_ascii=False))
    logger.success(f"Saved: {output_path}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Run PaddleOCR (ncnn) on an image",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Detect text in a local image
    python run_ocr_cli.py --config models/config.json --image img.png

    # Send the image as an encoded buffer instead of a path
    python run_ocr_cli.py --config models/config.json --image img.png --buffer
        """
    )
    parser.add_argument(
        "--config", "-c",
        default=str(ROOT / "models" / "config.json"),
        help="Path to the engine config.json"
    )
    parser.add_argument(
        "--image", "-i",
        default=str(ROOT / "img.png"),
        help="Path to input image (local path or URL with --buffer)"
    )
    parser.add_argument(
        "--buffer", "-b",
        action="store_true",
        help="Decode the image with Pillow and pass it as a byte buffer"
    )
    parser.add_argument(
        "--output", "-o",
        help="Path to save JSON output"
    )
    args = parser.parse_args(argv)

    logger.info(f"Config path: {args.config}")

    try:
        ocr = PaddleOCR(get_binding())
        if not ocr.initialize(args.config):
            logger.error("Failed to initialize OCR engine")
            return 1
        logger.success("OCR engine initialized successfully!")

        logger.info(f"Processing image: {args.image}")
        if args.buffer:
            raw_results = ocr.detect_image(load_image(args.image))
        else:
            raw_results = ocr.detect(args.image)
        results = [OCRResult.from_native(r) for r in raw_results]
    except (PaddleOCRError, OSError) as e:
        logger.error(f"OCR failed: {e}")
        return 1
    except (ValueError, KeyError, TypeError) as e:
        logger.error(f"Malformed result from native module: {e!r}")
        return 1

    print(f"Found {len(results)} text region(s):\n")
    for idx, result in enumerate(results, start=1):
        print(format_region(idx, result))

    if args.output:
        save_results(results, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
