"""Line-list renderable handed to the scene.

A ``LineMesh`` is a flat float32 position buffer where every consecutive
pair of points is one independent line segment (no index buffer), plus a
solid RGBA color. Renderers treat it as an opaque handle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np

Color = tuple[float, float, float, float]


def as_rgba(color: Sequence[float]) -> Color:
    """RGB or RGBA floats as an RGBA tuple (alpha 1.0 when absent)."""
    rgba = tuple(float(c) for c in color)
    if len(rgba) == 3:
        rgba = rgba + (1.0,)
    if len(rgba) != 4:
        raise ValueError(f"Color must be RGB or RGBA, got {color!r}")
    return rgba


@dataclass(frozen=True)
class LineMesh:
    """Flat line-list geometry with a solid color.

    Attributes
    ----------
    name : str
        Scene name of the renderable (e.g. "HexGridWireframe").
    positions : np.ndarray
        ``[x0, y0, z0, x1, y1, z1, ...]``, dtype float32. Length is a
        multiple of 6 (two points per segment).
    color : tuple[float, float, float, float]
        RGBA in [0, 1].
    """

    name: str
    positions: np.ndarray
    color: Color

    def __post_init__(self) -> None:
        positions = np.array(self.positions, dtype=np.float32).ravel()
        if positions.size % 6 != 0:
            raise ValueError(
                f"Line-list buffer length must be a multiple of 6, got {positions.size}"
            )
        positions.flags.writeable = False
        object.__setattr__(self, "positions", positions)

        object.__setattr__(self, "color", as_rgba(self.color))

    @property
    def num_vertices(self) -> int:
        return self.positions.size // 3

    @property
    def num_segments(self) -> int:
        return self.positions.size // 6

    @property
    def is_empty(self) -> bool:
        """True when there is nothing to render."""
        return self.positions.size == 0

    def segments(self) -> np.ndarray:
        """View the buffer as (num_segments, 2, 3) chord endpoints."""
        return self.positions.reshape(-1, 2, 3)
