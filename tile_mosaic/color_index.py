"""Nearest-colour lookup over a tile library (scipy k-d tree)."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from scipy.spatial import cKDTree

from tile_mosaic.color_utils import average_color
from tile_mosaic.tile_library import TileLibrary

logger = logging.getLogger(__name__)

# Relative slack when collecting equidistant candidates for tie-breaking
_TIE_EPS = 1e-9


@dataclass(frozen=True)
class TileRecord:
    """A tile id and its average RGB over opaque pixels."""

    tile_id: str
    average_color: tuple[float, float, float]


class ColorIndex:
    """Static index mapping an RGB colour to the closest tile.

    Distance is plain squared Euclidean distance in RGB. When several
    tiles are equally close, the one inserted first wins.

    Build once with :meth:`build`, :meth:`from_library`,
    :meth:`from_records` or :meth:`from_json`; the index is read-only
    afterwards and safe to query from several threads.
    """

    def __init__(self, records: Sequence[TileRecord]) -> None:
        self._records: tuple[TileRecord, ...] = tuple(records)
        self._ids = frozenset(r.tile_id for r in self._records)
        if not self._records:
            self._colors = np.empty((0, 3), dtype=np.float64)
            self._tree: cKDTree | None = None
            self._tree_to_record = np.empty(0, dtype=np.intp)
            return

        self._colors = np.array(
            [r.average_color for r in self._records], dtype=np.float64,
        )
        # Identical colours collapse onto their first occurrence
        _, first = np.unique(self._colors, axis=0, return_index=True)
        self._tree_to_record = np.sort(first)
        self._tree = cKDTree(self._colors[self._tree_to_record])

    # -- construction --------------------------------------------------

    @classmethod
    def build(cls, tiles: Iterable[tuple[str, np.ndarray]]) -> ColorIndex:
        """Index ``(tile_id, rgba_pixels)`` pairs in iteration order.

        Tiles without a single non-transparent pixel are logged and left
        out.
        """
        t0 = time.perf_counter()
        records = []
        skipped = 0
        for tile_id, pixels in tiles:
            avg = average_color(pixels)
            if avg is None:
                logger.warning("Skipping fully transparent tile %s", tile_id)
                skipped += 1
                continue
            records.append(TileRecord(tile_id, avg))
        index = cls(records)
        logger.info(
            "Colour index ready: %d tiles, %d skipped  (%.2f s)",
            len(index), skipped, time.perf_counter() - t0,
        )
        return index

    @classmethod
    def from_library(cls, library: TileLibrary) -> ColorIndex:
        logger.info("Indexing tiles in %s ...", library.root)
        return cls.build(library)

    @classmethod
    def from_records(cls, records: Iterable[TileRecord]) -> ColorIndex:
        return cls(list(records))

    @classmethod
    def from_json(cls, path: str | Path) -> ColorIndex:
        """Load records written by :meth:`to_json`."""
        with Path(path).open(encoding="utf-8") as f:
            entries = json.load(f)
        if not isinstance(entries, list):
            msg = f"Expected a JSON list of tile records in {path}"
            raise ValueError(msg)
        records = []
        for entry in entries:
            try:
                r, g, b = (float(c) for c in entry["average_rgb"])
                records.append(TileRecord(str(entry["tile_id"]), (r, g, b)))
            except (KeyError, TypeError, ValueError) as exc:
                msg = f"Malformed tile record in {path}: {entry!r}"
                raise ValueError(msg) from exc
        return cls(records)

    def to_json(self, path: str | Path) -> None:
        entries = [
            {"tile_id": r.tile_id, "average_rgb": list(r.average_color)}
            for r in self._records
        ]
        with Path(path).open("w", encoding="utf-8") as f:
            json.dump(entries, f, indent=1)

    # -- queries -------------------------------------------------------

    def nearest(self, color: Sequence[float] | np.ndarray) -> str | None:
        """Tile id whose average colour is closest to *color* (RGB).

        Returns ``None`` only when the index is empty.
        """
        if self._tree is None:
            return None
        query = np.asarray(color, dtype=np.float64)[:3]
        dist, _ = self._tree.query(query, k=1)
        return self._records[self._resolve(query, float(dist))].tile_id

    def nearest_pixel(self, pixel: Sequence[int] | np.ndarray) -> str | None:
        """Like :meth:`nearest` for an RGBA pixel; alpha 0 matches nothing."""
        if len(pixel) > 3 and pixel[3] == 0:
            return None
        return self.nearest(pixel[:3])

    def nearest_many(self, colors: np.ndarray) -> list[str | None]:
        """Vectorised :meth:`nearest` for an (N, 3) array of colours."""
        arr = np.asarray(colors, dtype=np.float64)
        queries = arr.reshape(-1, arr.shape[-1])[:, :3]
        if self._tree is None:
            return [None] * len(queries)
        if self._tree.n == 1:
            return [self._records[self._tree_to_record[0]].tile_id] * len(queries)

        dists, idx = self._tree.query(queries, k=2)
        result = []
        for q, (d0, d1), (i0, _) in zip(queries, dists, idx, strict=True):
            if d1 - d0 > _TIE_EPS * max(d0, 1.0):
                record = self._tree_to_record[i0]
            else:
                record = self._resolve(q, float(d0))
            result.append(self._records[record].tile_id)
        return result

    def _resolve(self, query: np.ndarray, dist: float) -> int:
        """Earliest-inserted record among those at distance *dist*."""
        radius = dist + _TIE_EPS * max(dist, 1.0)
        candidates = self._tree_to_record[self._tree.query_ball_point(query, radius)]
        sq = np.sum((self._colors[candidates] - query) ** 2, axis=1)
        best = candidates[sq <= sq.min() * (1 + _TIE_EPS) + _TIE_EPS]
        return int(best.min())

    # -- container protocol ---------------------------------------------

    @property
    def records(self) -> tuple[TileRecord, ...]:
        return self._records

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, tile_id: object) -> bool:
        return tile_id in self._ids

    def __repr__(self) -> str:
        return f"ColorIndex({len(self)} tiles)"
