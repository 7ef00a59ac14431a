"""Dual tiles of a geodesic triangulation.

Every vertex of the triangulation becomes one tile. The tile's corners are
the centroids of the faces around that vertex, pushed back onto the sphere,
taken in cyclic order. Seed vertices have valence 5 (pentagons); every other
vertex has valence 6 (hexagons).

Face ordering
-------------
Faces are consistently wound, so each directed edge (u → w) belongs to
exactly one face. Around a vertex v, a face wound (v, x, y) is followed by
the face wound (v, y, z): the one owning the half-edge v → y. Walking these
half-edges visits every incident face once and returns to the start. Any
break in that walk (missing half-edge, revisit, early return) means the mesh
is not a closed consistently wound manifold and raises
``DegenerateTileError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from sphere_engine.icosahedron import NUM_SEED_VERTICES, GeodesicMesh

logger = logging.getLogger(__name__)


class DegenerateTileError(ValueError):
    """The faces around a vertex do not form one closed cycle.

    Attributes
    ----------
    vertex_index : int
        Vertex whose tile could not be built.
    partial_cycle : tuple[int, ...]
        Face indices ordered before the walk broke.
    """

    def __init__(self, vertex_index: int, partial_cycle: Sequence[int], reason: str) -> None:
        self.vertex_index = int(vertex_index)
        self.partial_cycle = tuple(int(f) for f in partial_cycle)
        super().__init__(
            f"Degenerate tile at vertex {self.vertex_index}: {reason} "
            f"(ordered {len(self.partial_cycle)} faces: {list(self.partial_cycle)})"
        )


@dataclass(frozen=True)
class Tile:
    """One hexagonal or pentagonal cell of the sphere.

    Attributes
    ----------
    index : int
        Stable tile index; equals the originating vertex index.
    center : np.ndarray
        Originating vertex position. Shape: (3,). Read-only.
    corners : np.ndarray
        Ordered polygon corners on the sphere. Shape: (k, 3), k ∈ {5, 6}.
        Read-only.
    face_indices : tuple[int, ...]
        Triangulation face that produced each corner, same order as corners.
    neighbors : tuple[int, ...]
        Indices of the tiles sharing an edge with this one, ascending.
    """

    index: int
    center: np.ndarray
    corners: np.ndarray
    face_indices: tuple[int, ...]
    neighbors: tuple[int, ...]

    @property
    def corner_count(self) -> int:
        return int(self.corners.shape[0])

    @property
    def is_pentagon(self) -> bool:
        return self.corner_count == 5


# ---------------------------------------------------------------------------
# Corner points
# ---------------------------------------------------------------------------


def face_corner_points(
    vertices: np.ndarray,
    faces: np.ndarray,
    radius: float,
) -> np.ndarray:
    """Centroid of every face, projected onto the sphere of ``radius``.

    Returns
    -------
    np.ndarray
        Shape: (F, 3), dtype: float64.
    """
    centroids = (
        vertices[faces[:, 0]] + vertices[faces[:, 1]] + vertices[faces[:, 2]]
    ) / 3.0
    norms = np.linalg.norm(centroids, axis=1, keepdims=True)
    return centroids / norms * float(radius)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def order_incident_faces(faces: np.ndarray, num_vertices: int) -> list[tuple[int, ...]]:
    """Cyclically order the faces around every vertex.

    Parameters
    ----------
    faces : np.ndarray
        Consistently wound triangle indices. Shape: (F, 3).
    num_vertices : int
        Number of vertices the faces index into.

    Returns
    -------
    list[tuple[int, ...]]
        ``cycles[v]`` lists the face indices around vertex v in walk order.

    Raises
    ------
    DegenerateTileError
        If a vertex has no faces, a half-edge is owned by two faces, or the
        walk around a vertex does not close over all of its faces.
    """
    faces = np.asarray(faces, dtype=np.int64)

    # Half-edge (v → successor of v in face) → owning face
    half_edges: dict[tuple[int, int], int] = {}
    incident: list[list[int]] = [[] for _ in range(num_vertices)]
    for face_index, (a, b, c) in enumerate(faces.tolist()):
        for v, succ in ((a, b), (b, c), (c, a)):
            key = (v, succ)
            if key in half_edges:
                raise DegenerateTileError(
                    v, incident[v],
                    f"half-edge {v}→{succ} shared by faces {half_edges[key]} and {face_index}",
                )
            half_edges[key] = face_index
            incident[v].append(face_index)

    face_list = faces.tolist()
    cycles: list[tuple[int, ...]] = []
    for v in range(num_vertices):
        around = incident[v]
        if not around:
            raise DegenerateTileError(v, (), "vertex has no incident faces")

        start = around[0]
        cycle = [start]
        visited = {start}
        current = start
        while True:
            pred = _predecessor_in_face(face_list[current], v)
            nxt = half_edges.get((v, pred))
            if nxt is None:
                raise DegenerateTileError(v, cycle, f"no face owns half-edge {v}→{pred}")
            if nxt == start:
                break
            if nxt in visited:
                raise DegenerateTileError(v, cycle, f"face {nxt} revisited")
            cycle.append(nxt)
            visited.add(nxt)
            current = nxt

        if len(cycle) != len(around):
            raise DegenerateTileError(
                v, cycle, f"cycle closed after {len(cycle)} of {len(around)} faces"
            )
        cycles.append(tuple(cycle))

    return cycles


def _predecessor_in_face(face: list[int], v: int) -> int:
    """Vertex preceding ``v`` in the face winding."""
    k = face.index(v)
    return face[(k + 2) % 3]


# ---------------------------------------------------------------------------
# Tile assembly
# ---------------------------------------------------------------------------


def build_tiles(
    mesh: GeodesicMesh,
    cycles: Sequence[tuple[int, ...]],
    neighbor_lists: Sequence[tuple[int, ...]],
) -> tuple[Tile, ...]:
    """Assemble immutable tiles from ordered face cycles and adjacency.

    Parameters
    ----------
    mesh : GeodesicMesh
        Projected triangulation.
    cycles : sequence of tuple[int, ...]
        Output of :func:`order_incident_faces`.
    neighbor_lists : sequence of tuple[int, ...]
        Neighbor tile indices per vertex.

    Returns
    -------
    tuple[Tile, ...]
        One tile per vertex, ``tiles[i].index == i``.
    """
    corner_points = face_corner_points(mesh.vertices, mesh.faces, mesh.radius)
    corner_points.flags.writeable = False

    tiles = []
    for v, cycle in enumerate(cycles):
        center = mesh.vertices[v].copy()
        center.flags.writeable = False
        corners = corner_points[list(cycle)]
        corners.flags.writeable = False
        tiles.append(
            Tile(
                index=v,
                center=center,
                corners=corners,
                face_indices=tuple(cycle),
                neighbors=tuple(neighbor_lists[v]),
            )
        )

    return tuple(tiles)


def validate_tiles(tiles: Sequence[Tile], num_vertices: int) -> None:
    """Check the tiling invariants after a build.

    - one tile per vertex, indexed by vertex
    - exactly 12 pentagons, at the seed vertices
    - every other tile a hexagon
    - neighbor count equals corner count

    Raises
    ------
    ValueError
        If any invariant is violated.
    """
    if len(tiles) != num_vertices:
        raise ValueError(f"Expected {num_vertices} tiles, got {len(tiles)}")

    pentagons = [t.index for t in tiles if t.is_pentagon]
    if pentagons != list(range(NUM_SEED_VERTICES)):
        raise ValueError(
            f"Pentagons must be exactly the {NUM_SEED_VERTICES} seed vertices, "
            f"got {len(pentagons)}: {pentagons[:20]}"
        )

    for i, tile in enumerate(tiles):
        if tile.index != i:
            raise ValueError(f"Tile at position {i} has index {tile.index}")
        if not tile.is_pentagon and tile.corner_count != 6:
            raise ValueError(
                f"Tile {i} has {tile.corner_count} corners (expected 5 or 6)"
            )
        if len(tile.neighbors) != tile.corner_count:
            raise ValueError(
                f"Tile {i} has {len(tile.neighbors)} neighbors but "
                f"{tile.corner_count} corners"
            )

    logger.debug("Tile invariants passed for %d tiles.", len(tiles))
