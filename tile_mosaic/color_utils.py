"""Average colours, colour parsing and packed RGBA values."""

from __future__ import annotations

import numpy as np

RGBA = tuple[int, int, int, int]


def average_color(pixels: np.ndarray) -> tuple[float, float, float] | None:
    """Mean RGB over the pixels whose alpha is non-zero.

    Args:
        pixels: (H, W, 4) uint8 RGBA. (H, W, 3) input counts as fully opaque.

    Returns:
        (r, g, b) floats in [0, 255], or ``None`` when every pixel is
        fully transparent.
    """
    flat = pixels.reshape(-1, pixels.shape[-1])
    if flat.shape[1] == 4:
        flat = flat[flat[:, 3] > 0]
    if len(flat) == 0:
        return None
    mean = flat[:, :3].astype(np.float64).mean(axis=0)
    return float(mean[0]), float(mean[1]), float(mean[2])


def unpack_rgba(value: int) -> RGBA:
    """Split a packed ``0xRRGGBBAA`` integer into its four channels."""
    if not 0 <= value <= 0xFFFFFFFF:
        msg = f"Packed RGBA value out of range: {value:#x}"
        raise ValueError(msg)
    return (
        (value >> 24) & 0xFF,
        (value >> 16) & 0xFF,
        (value >> 8) & 0xFF,
        value & 0xFF,
    )


def pack_rgba(color: RGBA) -> int:
    """Inverse of :func:`unpack_rgba`."""
    r, g, b, a = (int(c) for c in color)
    return (r << 24) | (g << 16) | (b << 8) | a


def parse_color(text: str) -> RGBA:
    """Parse a user-supplied colour.

    Accepts ``#RGB``, ``#RRGGBB``, ``#RRGGBBAA``, ``0xRRGGBBAA`` and decimal
    packed integers. Colours without an alpha component are opaque.
    """
    s = text.strip()
    if s.startswith("#"):
        h = s[1:]
        if len(h) == 3:
            h = "".join(c * 2 for c in h)
        if len(h) == 6:
            h += "ff"
        if len(h) != 8:
            msg = f"Hex colour must have 3, 6 or 8 digits: {text!r}"
            raise ValueError(msg)
        try:
            return unpack_rgba(int(h, 16))
        except ValueError:
            msg = f"Invalid hex colour: {text!r}"
            raise ValueError(msg) from None
    try:
        value = int(s, 16) if s.lower().startswith("0x") else int(s)
    except ValueError:
        msg = f"Unrecognised colour: {text!r}"
        raise ValueError(msg) from None
    return unpack_rgba(value)


def as_rgba(color: int | tuple[int, ...]) -> RGBA:
    """Normalise a packed integer, RGB or RGBA tuple to an RGBA tuple."""
    if isinstance(color, (int, np.integer)):
        return unpack_rgba(int(color))
    channels = tuple(int(c) for c in color)
    if len(channels) == 3:
        channels += (255,)
    if len(channels) != 4 or not all(0 <= c <= 255 for c in channels):
        msg = f"Expected an RGB or RGBA tuple with channels in [0, 255], got {color!r}"
        raise ValueError(msg)
    return channels  # type: ignore[return-value]
