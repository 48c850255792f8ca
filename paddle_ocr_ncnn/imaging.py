"""Image helpers for feeding Pillow images and URLs to the engine."""

import io
from pathlib import Path
from typing import Union

import requests
from PIL import Image


def load_image(path: Union[str, Path]) -> Image.Image:
    """Load image from path or URL."""
    path = str(path)
    if path.startswith(('http://', 'https://')):
        resp = requests.get(path)
        resp.raise_for_status()
        return Image.open(io.BytesIO(resp.content))
    return Image.open(path)


def image_to_bytes(image: Image.Image, format: str = "PNG") -> bytes:
    """Encode a PIL Image into a byte buffer the engine can decode."""
    buf = io.BytesIO()
    if image.mode in ("RGBA", "P"):
        image = image.convert("RGB")
    image.save(buf, format=format)
    return buf.getvalue()
