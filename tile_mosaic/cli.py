"""Rich command-line interface powered by Typer."""

from __future__ import annotations

import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from tile_mosaic.canvas import Canvas, PlacementPolicy
from tile_mosaic.color_index import ColorIndex
from tile_mosaic.color_utils import pack_rgba, parse_color
from tile_mosaic.config import MosaicConfig
from tile_mosaic.image_io import frame_durations, iter_frames, save_frames
from tile_mosaic.pipeline import LAYOUTS, render_frames
from tile_mosaic.sampler import SampleMode
from tile_mosaic.tile_cache import TileCache
from tile_mosaic.tile_library import TileLibrary

app = typer.Typer(
    name="tile-mosaic",
    help="Rebuild any image out of small tile images (emoji, photos, ...).",
    add_completion=False,
    rich_markup_mode="rich",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, markup=True)],
    )


def _load_index(library: TileLibrary, index_file: Path | None) -> ColorIndex:
    if index_file is not None and index_file.exists():
        logging.getLogger("tile_mosaic").info("Colour index loaded from %s", index_file)
        return ColorIndex.from_json(index_file)
    return ColorIndex.from_library(library)


def _frame_path(output: Path, i: int, count: int) -> Path:
    if count == 1:
        return output
    return output.with_name(f"{output.stem}_{i:04d}{output.suffix}")


# Defaults come from MosaicConfig - single source of truth
_DEFAULTS = MosaicConfig()


# -- render command ----------------------------------------------------

@app.command()
def render(
    target: Path = typer.Argument(..., help="Target image (animated GIFs render per frame)"),
    tiles_dir: Path = typer.Option(
        _DEFAULTS.tiles_dir, "--tiles", "-t", help="Folder with tile images",
    ),
    output: Path = typer.Option(_DEFAULTS.output, "--output", "-o"),
    iterations: int = typer.Option(
        _DEFAULTS.iterations, "--iterations", "-n", help="Samples per output image",
    ),
    tile_size: int = typer.Option(
        _DEFAULTS.tile_size, "--tile-size", help="Bounding box tiles are resized to",
    ),
    scale: int = typer.Option(
        _DEFAULTS.scale, "--scale", "-s", help="Canvas pixels per target pixel",
    ),
    max_side: int | None = typer.Option(
        _DEFAULTS.max_side, "--max-side", "-m",
        help="Downscale the target so its longest side is at most this",
    ),
    background: str = typer.Option(
        f"{_DEFAULTS.background:#010x}", "--background", "-b",
        help="Canvas colour: '#RRGGBB', '#RRGGBBAA' or packed 0xRRGGBBAA",
    ),
    mode: str = typer.Option(
        _DEFAULTS.sample_mode, "--mode", help="'source' or 'destination' sampling",
    ),
    layout: str = typer.Option(
        _DEFAULTS.layout, "--layout", help="'random' (sampled) or 'grid' (every pixel)",
    ),
    step: int = typer.Option(_DEFAULTS.step, "--step", help="Pixel step for the grid layout"),
    policy: str = typer.Option(
        _DEFAULTS.policy, "--policy", help="'clip' or 'reject' tiles crossing the edge",
    ),
    seed: int | None = typer.Option(_DEFAULTS.seed, "--seed", help="Random seed"),
    index_file: Path | None = typer.Option(
        None, "--index", help="Precomputed colour index (see the 'index' command)",
    ),
    frames_gif: Path | None = typer.Option(
        None, "--frames-gif", help="Save a GIF of the canvas filling up",
    ),
    frame_every: int = typer.Option(
        _DEFAULTS.frame_every, "--frame-every", help="Iterations between captured frames",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Render TARGET as a mosaic of the tiles in --tiles."""
    _setup_logging(verbose)
    logger = logging.getLogger("tile_mosaic")

    try:
        bg = parse_color(background)
        sample_mode = SampleMode.parse(mode)
        placement_policy = PlacementPolicy.parse(policy)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    if layout not in LAYOUTS:
        msg = f"{layout!r} is not a recognised layout ({', '.join(LAYOUTS)})"
        raise typer.BadParameter(msg)

    cfg = MosaicConfig(
        iterations=iterations,
        sample_mode=sample_mode.value,
        layout=layout,
        step=step,
        seed=seed,
        tile_size=tile_size,
        scale=scale,
        max_side=max_side,
        background=pack_rgba(bg),
        policy=placement_policy.value,
        frame_every=frame_every,
        tiles_dir=tiles_dir,
        output=output,
    )

    library = TileLibrary(cfg.tiles_dir, cfg.SUPPORTED_EXTENSIONS)
    color_index = _load_index(library, index_file)
    if not len(color_index):
        console.print(f"\n[yellow]No usable tiles in {cfg.tiles_dir}/ - nothing to place.[/yellow]\n")
    cache = TileCache(library.load)

    frames = list(iter_frames(target, cfg.max_side))
    console.print(Panel.fit(
        f"[bold]TILE MOSAIC[/bold]\n"
        f"Tiles: {len(color_index)}  |  Frames: {len(frames)}  |  Layout: {cfg.layout}\n"
        f"Scale: {cfg.scale}  |  Tile size: {cfg.tile_size}  |  Mode: {cfg.sample_mode}\n"
        f"Iterations: {cfg.iterations:,}  |  Background: #{cfg.background:08x}",
        border_style="cyan",
    ))

    cfg.output.parent.mkdir(parents=True, exist_ok=True)
    progress: list = []

    def _capture(canvas: Canvas, _iteration: int) -> None:
        progress.append(canvas.to_image())

    t_total = time.perf_counter()
    results = render_frames(
        frames, color_index, cache,
        seed=cfg.seed,
        scale=cfg.scale,
        tile_size=cfg.tile_size,
        iterations=cfg.iterations,
        background=cfg.background,
        mode=cfg.sample_mode,
        policy=cfg.policy,
        layout=cfg.layout,
        step=cfg.step,
        on_frame=_capture if frames_gif is not None else None,
        frame_every=cfg.frame_every,
    )
    canvases = [canvas for canvas, _ in results]
    for i, (_, stats) in enumerate(results):
        prefix = f"[cyan]{i + 1}/{len(results)}[/cyan] " if len(results) > 1 else ""
        console.print(
            f"  [green]✓[/green] {prefix}placed={stats.placed:,}  "
            f"[dim]transparent={stats.transparent:,}  failed={stats.failed:,}  "
            f"missed={stats.missed:,}[/dim]"
        )
    console.print(f"  [dim]tiles cached={len(cache)}[/dim]")

    if len(canvases) > 1 and cfg.output.suffix.lower() == ".gif":
        save_frames([c.to_image() for c in canvases], cfg.output, frame_durations(target))
        logger.info("Animated mosaic saved: %s (%d frames)", cfg.output, len(canvases))
    else:
        for i, canvas in enumerate(canvases):
            canvas.save(_frame_path(cfg.output, i, len(canvases)))

    if frames_gif is not None and progress:
        save_frames(progress, frames_gif)
        logger.info("Progress animation saved: %s (%d frames)", frames_gif, len(progress))

    console.print(Panel.fit(
        f"[bold green]ALL DONE[/bold green] - {cfg.output}  "
        f"[dim]time={time.perf_counter() - t_total:.1f}s[/dim]",
        border_style="green",
    ))


# -- index command -----------------------------------------------------

@app.command()
def index(
    tiles_dir: Path = typer.Argument(..., help="Folder with tile images"),
    output: Path = typer.Option(
        Path("tile_index.json"), "--output", "-o", help="Where to write the index",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Precompute the average colour of every tile in TILES_DIR."""
    _setup_logging(verbose)

    library = TileLibrary(tiles_dir, _DEFAULTS.SUPPORTED_EXTENSIONS)
    color_index = ColorIndex.from_library(library)
    output.parent.mkdir(parents=True, exist_ok=True)
    color_index.to_json(output)
    console.print(
        f"[green]✓[/green] Indexed {len(color_index)} of {len(library)} tiles -> {output}"
    )


if __name__ == "__main__":
    app()
