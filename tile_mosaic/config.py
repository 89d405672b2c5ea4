"""Centralised configuration via a frozen dataclass."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True)
class MosaicConfig:
    """All tuneable parameters for a mosaic run.

    Attributes:
        iterations:   Sampling steps per output image (or per frame).
        tile_size:    Footprint - bounding box each tile is resized to.
        scale:        Canvas pixels per target pixel.
        max_side:     Optional longest side of the target before sampling
                      (aspect ratio preserved, None = keep as loaded).
        background:   Canvas fill as a packed 0xRRGGBBAA integer.
        sample_mode:  "source" (uniform over target pixels) or
                      "destination" (uniform over canvas pixels).
        layout:       "random" (stochastic sampler) or "grid" (every
                      *step*-th target pixel, in order).
        step:         Grid step for the "grid" layout.
        policy:       "clip" (drop off-canvas pixels) or "reject"
                      (skip tiles that cross an edge).
        seed:         Random seed for the sampler (None = non-deterministic).
        frame_every:  Capture a progress frame every N iterations (0 = off).
        tiles_dir:    Folder containing the tile library.
        output:       Destination of the rendered mosaic.
    """

    # Sampling
    iterations: int = 100_000
    sample_mode: str = "source"  # "source" | "destination"
    layout: str = "random"  # "random" | "grid"
    step: int = 1
    seed: int | None = None

    # Geometry
    tile_size: int = 20
    scale: int = 23
    max_side: int | None = None

    # Canvas
    background: int = 0xFFFFFFFF
    policy: str = "clip"  # "clip" | "reject"

    # Progress capture
    frame_every: int = 0

    # Paths
    tiles_dir: Path = field(default_factory=lambda: Path("tiles"))
    output: Path = field(default_factory=lambda: Path("output/mosaic.png"))

    SUPPORTED_EXTENSIONS: frozenset[str] = frozenset(
        {".png", ".jpg", ".jpeg", ".gif", ".bmp", ".tiff", ".tif", ".webp"}
    )
