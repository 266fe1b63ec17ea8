"""Image decoding — encoded bytes to an RGBA RasterImage."""

from __future__ import annotations

import base64
import binascii
import io

import numpy as np
from PIL import Image, UnidentifiedImageError

from palmsight.engine.context import RasterImage
from palmsight.engine.errors import InvalidImageError


def load_raster(data: bytes) -> RasterImage:
    """Decode PNG/JPEG/... bytes. Any mode is converted to RGBA."""
    if not data:
        raise InvalidImageError("Empty image payload")
    try:
        with Image.open(io.BytesIO(data)) as img:
            pixels = np.array(img.convert("RGBA"))
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImageError(f"Cannot decode image: {e}") from e
    return RasterImage.from_array(pixels)


def decode_base64_image(payload: str) -> RasterImage:
    """Decode a base64 string, optionally a ``data:image/...;base64,`` URL."""
    if payload.startswith("data:"):
        _, _, payload = payload.partition(",")
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidImageError(f"Image is not valid base64: {e}") from e
    return load_raster(raw)


def encode_png(image: RasterImage) -> bytes:
    """RGBA RasterImage → PNG bytes."""
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(image.pixels)).save(buf, format="PNG")
    return buf.getvalue()
