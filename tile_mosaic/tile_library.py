"""Tile library: a directory of individually addressable tile images."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

import numpy as np
from PIL import Image

from tile_mosaic.config import MosaicConfig
from tile_mosaic.image_io import to_rgba_array

logger = logging.getLogger(__name__)


class TileLoadError(OSError):
    """A tile could not be read or decoded."""

    def __init__(self, tile_id: str, reason: str) -> None:
        super().__init__(f"Failed to load tile {tile_id!r}: {reason}")
        self.tile_id = tile_id
        self.reason = reason


class TileLibrary:
    """Tiles stored as image files in one directory.

    The tile id is the file name (``"1f600.png"``), so ids are stable
    across runs and unique within the directory.

    Raises:
        FileNotFoundError:  *root* does not exist.
        NotADirectoryError: *root* is not a directory.
    """

    def __init__(
        self,
        root: str | Path,
        extensions: Iterable[str] = MosaicConfig.SUPPORTED_EXTENSIONS,
    ) -> None:
        self.root = Path(root)
        if not self.root.exists():
            msg = f"Tile directory not found: {self.root}"
            raise FileNotFoundError(msg)
        if not self.root.is_dir():
            msg = f"Tile source is not a directory: {self.root}"
            raise NotADirectoryError(msg)
        self.extensions = frozenset(e.lower() for e in extensions)

    def ids(self) -> list[str]:
        return sorted(
            f.name for f in self.root.iterdir()
            if f.is_file() and f.suffix.lower() in self.extensions
        )

    def path_for(self, tile_id: str) -> Path:
        return self.root / tile_id

    def load(self, tile_id: str) -> np.ndarray:
        """Decode one tile to (H, W, 4) uint8 RGBA.

        Raises:
            TileLoadError: the file is missing, unreadable or not an image.
        """
        path = self.path_for(tile_id)
        try:
            with Image.open(path) as img:
                return to_rgba_array(img)
        except (OSError, ValueError) as exc:
            raise TileLoadError(tile_id, str(exc)) from exc

    def __iter__(self) -> Iterator[tuple[str, np.ndarray]]:
        """Yield ``(tile_id, pixels)``; undecodable tiles are logged and skipped."""
        for tile_id in self.ids():
            try:
                pixels = self.load(tile_id)
            except TileLoadError as exc:
                logger.warning("Skipping tile: %s", exc)
                continue
            yield tile_id, pixels

    def __len__(self) -> int:
        return len(self.ids())

    def __repr__(self) -> str:
        return f"TileLibrary({str(self.root)!r})"
