"""RGBA output surface with alpha-blended tile placement."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

import numpy as np
from PIL import Image

from tile_mosaic.color_utils import as_rgba
from tile_mosaic.image_io import save_image

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)


class PlacementPolicy(Enum):
    """What :meth:`Canvas.place` does with a tile crossing the canvas edge.

    CLIP:   draw the part inside the canvas, drop the rest.
    REJECT: draw nothing unless the whole tile fits.
    """

    CLIP = "clip"
    REJECT = "reject"

    @classmethod
    def parse(cls, value: str | PlacementPolicy) -> PlacementPolicy:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            msg = f"{value!r} is not a recognised placement policy (clip, reject)"
            raise ValueError(msg) from None


class Canvas:
    """A fixed-size RGBA pixel buffer, filled with *background* on creation.

    Tiles are composited with the Porter-Duff "over" operator. Over an
    opaque destination this is ``out = src * a + dst * (1 - a)`` per
    colour channel, with ``a`` the source alpha in [0, 1].

    Args:
        width, height: Canvas size in pixels (both >= 1).
        background:    RGBA/RGB tuple or packed ``0xRRGGBBAA`` integer.
        policy:        Edge handling, see :class:`PlacementPolicy`.
    """

    def __init__(
        self,
        width: int,
        height: int,
        background: int | tuple[int, ...] = WHITE,
        policy: PlacementPolicy | str = PlacementPolicy.CLIP,
    ) -> None:
        if width < 1 or height < 1:
            msg = f"Canvas size must be positive, got {width}x{height}"
            raise ValueError(msg)
        self.width = width
        self.height = height
        self.background = as_rgba(background)
        self.policy = PlacementPolicy.parse(policy)
        self.pixels = np.empty((height, width, 4), dtype=np.uint8)
        self.pixels[:] = self.background

    def place(self, tile: np.ndarray, x: int, y: int) -> bool:
        """Composite *tile* ((h, w, 4) uint8) with its top-left at (x, y).

        Returns:
            True if at least one canvas pixel was covered.
        """
        th, tw = tile.shape[:2]
        if self.policy is PlacementPolicy.REJECT and (
            x < 0 or y < 0 or x + tw > self.width or y + th > self.height
        ):
            return False

        x0, y0 = max(x, 0), max(y, 0)
        x1, y1 = min(x + tw, self.width), min(y + th, self.height)
        if x0 >= x1 or y0 >= y1:
            return False

        src = tile[y0 - y:y1 - y, x0 - x:x1 - x]
        if src.shape[-1] == 3:
            self.pixels[y0:y1, x0:x1, :3] = src
            self.pixels[y0:y1, x0:x1, 3] = 255
            return True

        dst = self.pixels[y0:y1, x0:x1]
        self.pixels[y0:y1, x0:x1] = _over(src, dst)
        return True

    def to_image(self) -> Image.Image:
        """Snapshot of the buffer; later placements do not show through."""
        return Image.fromarray(self.pixels.copy())

    def save(self, path: str | Path) -> None:
        """Encode the buffer to *path*; the format follows the suffix.

        Raises:
            OSError: the file cannot be written.
        """
        path = Path(path)
        save_image(self.to_image(), path)
        logger.info("Canvas saved: %s (%dx%d)", path, self.width, self.height)

    def __repr__(self) -> str:
        return f"Canvas({self.width}x{self.height}, background={self.background})"


def _over(src: np.ndarray, dst: np.ndarray) -> np.ndarray:
    """Porter-Duff "over" of two non-premultiplied uint8 RGBA blocks."""
    sa = src[..., 3:4].astype(np.float64) / 255.0
    da = dst[..., 3:4].astype(np.float64) / 255.0
    out_a = sa + da * (1.0 - sa)

    src_c = src[..., :3].astype(np.float64)
    dst_c = dst[..., :3].astype(np.float64)
    blended = src_c * sa + dst_c * da * (1.0 - sa)
    with np.errstate(divide="ignore", invalid="ignore"):
        out_c = np.where(out_a > 0, blended / out_a, dst_c)

    out = np.empty_like(dst)
    out[..., :3] = np.clip(np.rint(out_c), 0, 255).astype(np.uint8)
    out[..., 3:4] = np.clip(np.rint(out_a * 255.0), 0, 255).astype(np.uint8)
    return out
