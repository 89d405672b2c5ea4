"""Lazy, memoizing store of resized tiles."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from tile_mosaic.image_io import fit_rgba
from tile_mosaic.tile_library import TileLoadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedTile:
    """A tile's RGBA pixels fitted to a bounding box."""

    tile_id: str
    pixels: np.ndarray  # (H, W, 4) uint8

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


class TileCache:
    """Load and resize tiles on first use, keyed by tile id only.

    The first :meth:`get` for a tile fixes its size for the rest of the
    run: later calls with a different *bounding_size* get the tile as
    first resized. A run uses a single footprint, so this is enough;
    callers needing several sizes should keep one cache per size.

    Args:
        loader: ``tile_id -> (H, W, 4) uint8`` decoder, e.g.
            :meth:`TileLibrary.load`. Raises :class:`TileLoadError`.
    """

    def __init__(self, loader: Callable[[str], np.ndarray]) -> None:
        self._loader = loader
        self._tiles: dict[str, CachedTile] = {}
        self._failed: dict[str, TileLoadError] = {}
        self.hits = 0
        self.misses = 0

    def get(self, tile_id: str, bounding_size: int) -> CachedTile:
        """Return *tile_id* fitted within ``bounding_size x bounding_size``.

        Raises:
            ValueError:    *bounding_size* is smaller than 1.
            TileLoadError: the tile could not be decoded (remembered, so
                           the file is not read again).
        """
        if bounding_size < 1:
            msg = f"Bounding size must be >= 1, got {bounding_size}"
            raise ValueError(msg)

        cached = self._tiles.get(tile_id)
        if cached is not None:
            self.hits += 1
            return cached
        if tile_id in self._failed:
            raise self._failed[tile_id]

        self.misses += 1
        try:
            pixels = self._loader(tile_id)
        except TileLoadError as exc:
            logger.warning("Tile %s unavailable: %s", tile_id, exc.reason)
            self._failed[tile_id] = exc
            raise

        cached = CachedTile(tile_id, fit_rgba(pixels, bounding_size))
        self._tiles[tile_id] = cached
        logger.debug(
            "Cached %s: %dx%d -> %dx%d",
            tile_id, pixels.shape[1], pixels.shape[0], cached.width, cached.height,
        )
        return cached

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._tiles

    def __len__(self) -> int:
        return len(self._tiles)
