"""Image decoding, aspect-preserving resizing, and frame output."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from pathlib import Path

import numpy as np
from PIL import Image, ImageSequence

# Formats Pillow cannot write with an alpha channel
_OPAQUE_SUFFIXES = frozenset({".jpg", ".jpeg", ".bmp"})


def compute_target_size(
    original_width: int,
    original_height: int,
    max_side: int,
) -> tuple[int, int]:
    """Compute fitted (w, h) preserving aspect ratio.

    The longest side becomes *max_side*; the other is scaled
    proportionally (rounded to the nearest integer, minimum 1).
    """
    if original_width >= original_height:
        w = max_side
        h = max(1, round(original_height * max_side / original_width))
    else:
        h = max_side
        w = max(1, round(original_width * max_side / original_height))
    return w, h


def fit_rgba(pixels: np.ndarray, max_side: int) -> np.ndarray:
    """Resize an (H, W, 4) array so its longest side is *max_side*.

    Uses Lanczos resampling. Returns (h, w, 4) uint8.
    """
    h, w = pixels.shape[:2]
    size = compute_target_size(w, h, max_side)
    if size == (w, h):
        return pixels.copy()
    img = Image.fromarray(pixels.astype(np.uint8))
    img = img.resize(size, Image.LANCZOS)
    return np.array(img, dtype=np.uint8)


def shrink_rgba(pixels: np.ndarray, max_side: int | None) -> np.ndarray:
    """Like :func:`fit_rgba`, but never enlarges (None = unchanged)."""
    if max_side is None or max(pixels.shape[:2]) <= max_side:
        return pixels
    return fit_rgba(pixels, max_side)


def to_rgba_array(img: Image.Image) -> np.ndarray:
    """Decoded Pillow image → (H, W, 4) uint8."""
    return np.array(img.convert("RGBA"), dtype=np.uint8)


def iter_frames(path: str | Path, max_side: int | None = None) -> Iterator[np.ndarray]:
    """Yield every frame of *path* as (H, W, 4) uint8.

    Still images yield exactly one frame.
    """
    with Image.open(path) as img:
        for frame in ImageSequence.Iterator(img):
            yield shrink_rgba(to_rgba_array(frame), max_side)


def frame_durations(path: str | Path, default: int = 100) -> list[int]:
    """Per-frame display durations (ms) of an animated image."""
    durations = []
    with Image.open(path) as img:
        for frame in ImageSequence.Iterator(img):
            durations.append(int(frame.info.get("duration", default)) or default)
    return durations


def save_image(img: Image.Image, path: str | Path) -> None:
    """Save an RGBA image, flattening alpha for formats that lack it."""
    path = Path(path)
    if path.suffix.lower() in _OPAQUE_SUFFIXES and img.mode == "RGBA":
        img = img.convert("RGB")
    img.save(path)


def save_frames(
    frames: Sequence[Image.Image],
    path: str | Path,
    duration: int | Sequence[int] = 120,
) -> None:
    """Write *frames* as an animated GIF that loops forever."""
    if not frames:
        msg = "No frames to save"
        raise ValueError(msg)
    frames[0].save(
        Path(path),
        save_all=True,
        append_images=list(frames[1:]),
        duration=list(duration) if not isinstance(duration, int) else duration,
        loop=0,
        disposal=2,
    )
