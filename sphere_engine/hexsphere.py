"""Hexagon/pentagon sphere tiling.

``HexSphere`` runs the full pipeline at construction time:

    icosahedron → subdivide → project → order faces → neighbors → tiles

and is immutable afterwards. Rebuilding for another (radius, subdivisions)
means constructing a new instance.

Tile counts
-----------
    subdivisions   faces     tiles   hexagons
    0              20        12      0
    1              80        42      30
    2              320       162     150
    3              1280      642     630
    4              5120      2562    2550
    N              20·4^N    10·4^N + 2
"""

from __future__ import annotations

import logging
import time

import numpy as np

from sphere_engine.icosahedron import GeodesicMesh, build_geodesic_mesh
from sphere_engine.line_mesh import Color, LineMesh
from sphere_engine.neighbors import NeighborGraph, build_neighbor_graph
from sphere_engine.tiles import Tile, build_tiles, order_incident_faces, validate_tiles
from sphere_engine.wireframe import DEFAULT_WIREFRAME_COLOR, create_wireframe_mesh

logger = logging.getLogger(__name__)


class HexSphere:
    """Geodesic sphere divided into hexagonal tiles and 12 pentagons.

    Parameters
    ----------
    radius : float
        Sphere radius (> 0).
    subdivisions : int
        Icosahedron subdivision depth (≥ 0).

    Raises
    ------
    ValueError
        For an invalid radius or depth.
    DegenerateTileError
        If the face ordering around a vertex cannot be closed.
    """

    def __init__(self, radius: float = 1.0, subdivisions: int = 3) -> None:
        t0 = time.perf_counter()

        self._mesh: GeodesicMesh = build_geodesic_mesh(radius, subdivisions)
        num_vertices = self._mesh.num_vertices

        cycles = order_incident_faces(self._mesh.faces, num_vertices)
        self._graph: NeighborGraph = build_neighbor_graph(self._mesh.faces, num_vertices)
        self._tiles: tuple[Tile, ...] = build_tiles(self._mesh, cycles, self._graph.neighbors)
        validate_tiles(self._tiles, num_vertices)

        self._mesh.vertices.flags.writeable = False
        self._mesh.faces.flags.writeable = False

        stats = self.get_stats()
        logger.info(
            "Hex sphere built in %.3f s: %d tiles (%d hexagons, %d pentagons)",
            time.perf_counter() - t0,
            stats["total"],
            stats["hexagons"],
            stats["pentagons"],
        )

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def radius(self) -> float:
        return self._mesh.radius

    @property
    def subdivisions(self) -> int:
        return self._mesh.subdivisions

    @property
    def vertices(self) -> np.ndarray:
        """Triangulation vertices (tile centers). Shape: (V, 3), read-only."""
        return self._mesh.vertices

    @property
    def faces(self) -> np.ndarray:
        """Triangulation faces. Shape: (F, 3), read-only."""
        return self._mesh.faces

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return self._tiles

    @property
    def neighbor_graph(self) -> NeighborGraph:
        return self._graph

    @property
    def metadata(self) -> dict:
        return dict(self._mesh.metadata)

    def neighbors_of(self, index: int) -> tuple[int, ...]:
        """Indices of the tiles adjacent to tile ``index``."""
        return self._graph.neighbors_of(index)

    def get_stats(self) -> dict[str, int]:
        """Tile totals: ``{"total", "hexagons", "pentagons"}``."""
        pentagons = sum(1 for t in self._tiles if t.is_pentagon)
        return {
            "total": len(self._tiles),
            "hexagons": len(self._tiles) - pentagons,
            "pentagons": pentagons,
        }

    # ------------------------------------------------------------------
    # Renderables
    # ------------------------------------------------------------------

    def create_wireframe_mesh(self, color: Color = DEFAULT_WIREFRAME_COLOR) -> LineMesh:
        """Line-list renderable of every tile boundary, owned by the caller."""
        return create_wireframe_mesh(self._tiles, self.radius, color=color)

    def __repr__(self) -> str:
        return (
            f"HexSphere(radius={self.radius}, subdivisions={self.subdivisions}, "
            f"tiles={len(self._tiles)})"
        )
