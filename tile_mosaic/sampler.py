"""Random choice of the (source pixel, canvas position) pair per iteration."""

from __future__ import annotations

from enum import Enum

import numpy as np

Coord = tuple[int, int]


class SampleMode(Enum):
    """Which coordinate space is sampled uniformly.

    SOURCE:      every target pixel is equally likely.
    DESTINATION: every canvas pixel is equally likely, so with
                 ``scale > 1`` each target pixel is drawn scale**2 times
                 as often, at varying sub-offsets.
    """

    SOURCE = "source"
    DESTINATION = "destination"

    @classmethod
    def parse(cls, value: str | SampleMode) -> SampleMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            msg = f"{value!r} is not a recognised sample mode (source, destination)"
            raise ValueError(msg) from None


class Sampler:
    """Draws ``((sx, sy), (cx, cy))`` pairs; the RNG is its only state.

    Args:
        mode:        :class:`SampleMode` or its name.
        source_size: (width, height) of the target image.
        canvas_size: (width, height) of the canvas.
        scale:       Canvas pixels per source pixel (>= 1).
        seed:        Seed for ``numpy.random.default_rng``.
    """

    def __init__(
        self,
        mode: SampleMode | str,
        source_size: Coord,
        canvas_size: Coord,
        scale: int,
        seed: int | None = None,
    ) -> None:
        if scale < 1:
            msg = f"Scale must be >= 1, got {scale}"
            raise ValueError(msg)
        for name, (w, h) in (("source", source_size), ("canvas", canvas_size)):
            if w < 1 or h < 1:
                msg = f"{name.capitalize()} size must be positive, got {w}x{h}"
                raise ValueError(msg)
        self.mode = SampleMode.parse(mode)
        self.source_size = source_size
        self.canvas_size = canvas_size
        self.scale = scale
        self.rng = np.random.default_rng(seed)

    def sample(self) -> tuple[Coord, Coord]:
        if self.mode is SampleMode.SOURCE:
            sx = int(self.rng.integers(0, self.source_size[0]))
            sy = int(self.rng.integers(0, self.source_size[1]))
            return (sx, sy), (sx * self.scale, sy * self.scale)

        cx = int(self.rng.integers(0, self.canvas_size[0]))
        cy = int(self.rng.integers(0, self.canvas_size[1]))
        return (cx // self.scale, cy // self.scale), (cx, cy)
