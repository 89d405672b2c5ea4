"""Mosaic generation: sample, match, fetch, composite."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import numpy as np

from tile_mosaic.canvas import Canvas, PlacementPolicy
from tile_mosaic.color_index import ColorIndex
from tile_mosaic.sampler import SampleMode, Sampler
from tile_mosaic.tile_cache import TileCache
from tile_mosaic.tile_library import TileLoadError

logger = logging.getLogger(__name__)

FrameCallback = Callable[[Canvas, int], None]

LAYOUTS = ("random", "grid")


@dataclass
class MosaicStats:
    """What happened over one run.

    Attributes:
        iterations:  Samples drawn (or layout entries visited).
        placed:      Tiles composited onto the canvas.
        transparent: Samples skipped because the target pixel had alpha 0.
        unmatched:   Samples for which the index returned nothing.
        failed:      Samples whose tile could not be loaded.
        missed:      Tiles that landed entirely off the canvas (or were
                     refused by the REJECT policy).
    """

    iterations: int = 0
    placed: int = 0
    transparent: int = 0
    unmatched: int = 0
    failed: int = 0
    missed: int = 0


@dataclass(frozen=True)
class Placement:
    """One entry of a deterministic layout: *tile_id* at target pixel (x, y)."""

    tile_id: str
    x: int
    y: int


def canvas_size_for(target: np.ndarray, scale: int) -> tuple[int, int]:
    """(width, height) of a canvas covering *target* at *scale*."""
    h, w = target.shape[:2]
    return w * scale, h * scale


def _place_tile(
    tile_id: str,
    cache: TileCache,
    canvas: Canvas,
    x: int,
    y: int,
    tile_size: int,
    stats: MosaicStats,
) -> None:
    try:
        tile = cache.get(tile_id, tile_size)
    except TileLoadError:
        stats.failed += 1
        return
    if canvas.place(tile.pixels, x, y):
        stats.placed += 1
    else:
        stats.missed += 1


def run_mosaic(
    target: np.ndarray,
    index: ColorIndex,
    cache: TileCache,
    canvas: Canvas,
    sampler: Sampler,
    iterations: int,
    tile_size: int,
    on_frame: FrameCallback | None = None,
    frame_every: int = 0,
) -> MosaicStats:
    """Stochastically cover *canvas* with tiles matching *target*.

    Each iteration draws a (source, canvas) pair from *sampler*, looks up
    the tile closest to the source pixel's colour and composites it with
    its top-left corner on the canvas position. Transparent source pixels
    are skipped. Coverage grows with *iterations* but is never guaranteed
    to be complete; later tiles overwrite earlier ones.

    Args:
        target:      (H, W, 4) uint8 RGBA target image.
        index:       Built colour index.
        cache:       Tile cache shared across runs.
        canvas:      Output surface, mutated in place.
        sampler:     Coordinate source.
        iterations:  Number of samples to draw.
        tile_size:   Footprint passed to :meth:`TileCache.get`.
        on_frame:    Called with ``(canvas, iteration)`` every
                     *frame_every* iterations and once at the end.
        frame_every: Frame capture interval (0 = only the final call).

    Returns:
        :class:`MosaicStats` for the run.
    """
    if iterations < 0:
        msg = f"Iterations must be >= 0, got {iterations}"
        raise ValueError(msg)
    if target.ndim != 3 or target.shape[2] not in (3, 4):
        msg = f"Target must be an (H, W, 3|4) array, got shape {target.shape}"
        raise ValueError(msg)
    h, w = target.shape[:2]
    if tuple(sampler.source_size) != (w, h):
        msg = f"Sampler covers {sampler.source_size}, target is {(w, h)}"
        raise ValueError(msg)

    stats = MosaicStats()
    report_every = max(1, iterations // 10)

    logger.info(
        "Mosaic start | iterations=%s  mode=%s  scale=%d  tile=%d  canvas=%dx%d",
        f"{iterations:,}", sampler.mode.value, sampler.scale, tile_size,
        canvas.width, canvas.height,
    )
    t0 = time.perf_counter()

    for it in range(iterations):
        (sx, sy), (cx, cy) = sampler.sample()
        stats.iterations += 1

        pixel = target[sy, sx]
        tile_id = index.nearest_pixel(pixel)
        if tile_id is not None:
            _place_tile(tile_id, cache, canvas, cx, cy, tile_size, stats)
        elif len(pixel) == 4 and pixel[3] == 0:
            stats.transparent += 1
        else:
            stats.unmatched += 1

        if on_frame is not None and frame_every > 0 and (it + 1) % frame_every == 0:
            on_frame(canvas, it + 1)

        if (it + 1) % report_every == 0:
            logger.info(
                "  %5.1f%%  placed=%s  transparent=%s  cached=%d  (%.1f s)",
                (it + 1) / iterations * 100, f"{stats.placed:,}",
                f"{stats.transparent:,}", len(cache), time.perf_counter() - t0,
            )

    if on_frame is not None and (frame_every <= 0 or iterations % frame_every != 0):
        on_frame(canvas, iterations)

    logger.info(
        "Mosaic done  | placed=%s  skipped=%s  failed=%s  (%.1f s)",
        f"{stats.placed:,}", f"{stats.transparent + stats.unmatched:,}",
        f"{stats.failed:,}", time.perf_counter() - t0,
    )
    return stats


def render_frame(
    frame: np.ndarray,
    index: ColorIndex,
    cache: TileCache,
    *,
    scale: int,
    tile_size: int,
    iterations: int,
    background: int | tuple[int, ...] = 0xFFFFFFFF,
    mode: SampleMode | str = SampleMode.SOURCE,
    policy: PlacementPolicy | str = PlacementPolicy.CLIP,
    seed: int | None = None,
    layout: str = "random",
    step: int = 1,
    on_frame: FrameCallback | None = None,
    frame_every: int = 0,
) -> tuple[Canvas, MosaicStats]:
    """Render one target onto a fresh canvas of ``scale`` times its size.

    *layout* selects :func:`run_mosaic` (``"random"``) or
    :func:`plan_layout` + :func:`render_layout` (``"grid"``).
    """
    h, w = frame.shape[:2]
    canvas_size = canvas_size_for(frame, scale)
    canvas = Canvas(*canvas_size, background=background, policy=policy)
    logger.info("Target: %dx%d -> canvas %dx%d", w, h, *canvas_size)

    if layout == "grid":
        stats = render_layout(plan_layout(frame, index, step), cache, canvas, scale, tile_size)
    elif layout == "random":
        sampler = Sampler(mode, (w, h), canvas_size, scale, seed=seed)
        stats = run_mosaic(
            frame, index, cache, canvas, sampler, iterations, tile_size,
            on_frame=on_frame, frame_every=frame_every,
        )
    else:
        msg = f"{layout!r} is not a recognised layout ({', '.join(LAYOUTS)})"
        raise ValueError(msg)
    return canvas, stats


def render_frames(
    frames: Iterable[np.ndarray],
    index: ColorIndex,
    cache: TileCache,
    *,
    seed: int | None = None,
    **options,
) -> list[tuple[Canvas, MosaicStats]]:
    """Run :func:`render_frame` once per frame of an animation.

    Every frame gets a fresh canvas and sampler; the index and tile cache
    are shared. With a *seed*, frame ``i`` uses ``seed + i``. Remaining
    keyword arguments go to :func:`render_frame`.

    Returns:
        One ``(canvas, stats)`` pair per frame, in frame order.
    """
    frames = list(frames)
    results = []
    for i, frame in enumerate(frames):
        logger.info("Frame %d/%d", i + 1, len(frames))
        results.append(render_frame(
            frame, index, cache, seed=None if seed is None else seed + i, **options,
        ))
    return results


def plan_layout(target: np.ndarray, index: ColorIndex, step: int = 1) -> list[Placement]:
    """Match every *step*-th target pixel, row by row.

    Transparent pixels get no placement. This is the deterministic
    counterpart of :func:`run_mosaic`.
    """
    if step < 1:
        msg = f"Step must be >= 1, got {step}"
        raise ValueError(msg)
    grid = target[::step, ::step]
    ys, xs = np.mgrid[0:target.shape[0]:step, 0:target.shape[1]:step]
    if grid.shape[2] == 4:
        mask = grid[..., 3] > 0
    else:
        mask = np.ones(grid.shape[:2], dtype=bool)

    colors = grid[mask][:, :3]
    if len(colors) == 0:
        return []
    matches = index.nearest_many(colors)
    placements = [
        Placement(tile_id, int(x), int(y))
        for tile_id, x, y in zip(matches, xs[mask], ys[mask], strict=True)
        if tile_id is not None
    ]
    logger.debug("Layout: %d placements (step=%d)", len(placements), step)
    return placements


def render_layout(
    placements: Iterable[Placement],
    cache: TileCache,
    canvas: Canvas,
    scale: int,
    tile_size: int,
) -> MosaicStats:
    """Draw *placements* in order, each at ``(x * scale, y * scale)``."""
    stats = MosaicStats()
    for p in placements:
        stats.iterations += 1
        _place_tile(p.tile_id, cache, canvas, p.x * scale, p.y * scale, tile_size, stats)
    logger.info(
        "Layout drawn | placed=%s  failed=%s  missed=%s",
        f"{stats.placed:,}", f"{stats.failed:,}", f"{stats.missed:,}",
    )
    return stats
