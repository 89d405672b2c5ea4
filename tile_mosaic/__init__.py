"""
Tile Mosaic Generator
=====================

Rebuild a target picture out of small tile images. Each sampled target
pixel is matched to the tile with the closest average colour, and the
tile is alpha-composited onto an RGBA canvas.

- **ColorIndex**: k-d tree over tile average colours
- **TileCache**: lazy, aspect-preserving tile resizing
- **Sampler**: source- or destination-uniform random sampling
- **Canvas**: "over" compositing with edge clipping
"""

__version__ = "0.4.0"

from tile_mosaic.canvas import Canvas, PlacementPolicy
from tile_mosaic.color_index import ColorIndex, TileRecord
from tile_mosaic.config import MosaicConfig
from tile_mosaic.pipeline import (
    MosaicStats,
    Placement,
    plan_layout,
    render_frame,
    render_frames,
    render_layout,
    run_mosaic,
)
from tile_mosaic.sampler import SampleMode, Sampler
from tile_mosaic.tile_cache import CachedTile, TileCache
from tile_mosaic.tile_library import TileLibrary, TileLoadError

__all__ = [
    "CachedTile",
    "Canvas",
    "ColorIndex",
    "MosaicConfig",
    "MosaicStats",
    "Placement",
    "PlacementPolicy",
    "SampleMode",
    "Sampler",
    "TileCache",
    "TileLibrary",
    "TileLoadError",
    "TileRecord",
    "plan_layout",
    "render_frame",
    "render_frames",
    "render_layout",
    "run_mosaic",
]
