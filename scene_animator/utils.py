from __future__ import annotations

import os
import time
import uuid
from typing import Optional, Tuple, Union

import numpy as np
from PIL import ImageColor


RGBA = Tuple[int, int, int, int]


def rgba_to_rgb(data: Union[bytes, bytearray, np.ndarray], width: int, height: int) -> bytes:
    """Drop every alpha byte of a packed RGBA buffer.

    Row-major order is preserved and the result is exactly width*height*3 bytes.
    """
    pixels = np.frombuffer(bytes(data), dtype=np.uint8) if not isinstance(data, np.ndarray) else data
    expected = width * height * 4
    if pixels.size != expected:
        raise ValueError(f"Expected {expected} RGBA bytes for {width}x{height}, got {pixels.size}")
    return pixels.reshape(-1, 4)[:, :3].tobytes()


def parse_color(value: Optional[str], default: Optional[RGBA] = None) -> Optional[RGBA]:
    """Resolve a CSS-style colour (#rgb, #rrggbb, rgb(), names) to RGBA.

    ``none`` and anything unparseable give ``default``, which is None unless
    the caller supplies one; painters treat None as "draw nothing".
    """
    if value is None or value.strip().lower() == "none":
        return default
    try:
        return ImageColor.getcolor(value.strip(), "RGBA")  # type: ignore[return-value]
    except (ValueError, AttributeError):
        return default


def unique_output_path(output_dir: str, prefix: str = "scene", suffix: str = ".mp4") -> str:
    os.makedirs(output_dir, exist_ok=True)
    stamp = int(time.time() * 1000)
    return os.path.join(output_dir, f"{prefix}_{stamp}_{uuid.uuid4().hex[:9]}{suffix}")
