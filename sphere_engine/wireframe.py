"""Tile-boundary wireframe as a great-circle line list.

Each tile edge (corner i → corner i+1, wrapping) is drawn as an arc of
N = max(2, ceil(θ / π · 8)) chords, θ being the arc angle. The resolution is
fixed in angle, so edges hug the sphere at any tile count. Edges shared by two
tiles are emitted twice.
"""

from __future__ import annotations

import logging
from typing import Sequence

import numpy as np

from sphere_engine.line_mesh import Color, LineMesh
from sphere_engine.spherical import arc_line_buffer, great_circle_angle, segment_counts
from sphere_engine.tiles import Tile

logger = logging.getLogger(__name__)

DEFAULT_WIREFRAME_COLOR: Color = (0.0, 0.8, 0.4, 0.6)

_SEGMENTS_PER_HALF_TURN: int = 8
_MIN_EDGE_SEGMENTS: int = 2


def tile_edges(tiles: Sequence[Tile]) -> tuple[np.ndarray, np.ndarray]:
    """Start and end corner of every tile edge, tile by tile.

    Returns
    -------
    starts, ends : np.ndarray
        Shape: (num_edges, 3) each.
    """
    if not tiles:
        empty = np.zeros((0, 3), dtype=np.float64)
        return empty, empty

    starts = np.concatenate([t.corners for t in tiles])
    ends = np.concatenate([np.roll(t.corners, -1, axis=0) for t in tiles])
    return starts, ends


def wireframe_positions(tiles: Sequence[Tile], radius: float) -> np.ndarray:
    """Flat float32 line-list buffer tracing every tile boundary.

    Parameters
    ----------
    tiles : sequence of Tile
        Tiles to outline.
    radius : float
        Radius the arcs are drawn on.

    Returns
    -------
    np.ndarray
        ``[x0, y0, z0, x1, y1, z1, ...]``, two points per chord.
    """
    starts, ends = tile_edges(tiles)
    if starts.shape[0] == 0:
        return np.zeros(0, dtype=np.float32)

    angles = great_circle_angle(starts, ends)
    counts = segment_counts(
        angles,
        step_rad=np.pi / _SEGMENTS_PER_HALF_TURN,
        minimum=_MIN_EDGE_SEGMENTS,
    )
    return arc_line_buffer(starts, ends, counts, radius)


def create_wireframe_mesh(
    tiles: Sequence[Tile],
    radius: float,
    color: Color = DEFAULT_WIREFRAME_COLOR,
    name: str = "HexGridWireframe",
) -> LineMesh:
    """Line-list renderable of all tile boundaries."""
    positions = wireframe_positions(tiles, radius)
    mesh = LineMesh(name=name, positions=positions, color=color)
    logger.info(
        "Wireframe '%s': %d tiles → %d segments",
        name, len(tiles), mesh.num_segments,
    )
    return mesh
