"""Tile adjacency.

Two tiles are neighbors when their originating vertices are joined by an
edge of the triangulation, which is the same as the two tiles sharing a
boundary edge (two dual corners). The graph is read straight off the face
array, so it never depends on floating-point coordinates.

``build_neighbor_graph_from_corners`` recovers the same relation by matching
corner coordinates rounded to a fixed number of decimals. It is kept as an
independent cross-check of the index-based graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import numpy as np

logger = logging.getLogger(__name__)

_DEFAULT_KEY_DECIMALS: int = 6


@dataclass(frozen=True)
class NeighborGraph:
    """Symmetric tile adjacency.

    Attributes
    ----------
    neighbors : tuple[tuple[int, ...], ...]
        ``neighbors[i]`` lists the tiles adjacent to tile i, ascending.
    """

    neighbors: tuple[tuple[int, ...], ...]

    def __len__(self) -> int:
        return len(self.neighbors)

    def neighbors_of(self, index: int) -> tuple[int, ...]:
        return self.neighbors[index]

    @property
    def degree(self) -> np.ndarray:
        """Neighbor count per tile. Shape: (num_tiles,), dtype int64."""
        return np.array([len(n) for n in self.neighbors], dtype=np.int64)

    @property
    def edge_count(self) -> int:
        """Number of undirected adjacencies."""
        return int(self.degree.sum()) // 2

    def is_symmetric(self) -> bool:
        """True if every B ∈ neighbors(A) has A ∈ neighbors(B)."""
        lookup = [set(n) for n in self.neighbors]
        for a, adjacent in enumerate(self.neighbors):
            for b in adjacent:
                if a not in lookup[b]:
                    return False
        return True


def build_neighbor_graph(faces: np.ndarray, num_tiles: int) -> NeighborGraph:
    """Adjacency from the unique undirected edges of the triangulation.

    Parameters
    ----------
    faces : np.ndarray
        Triangle indices. Shape: (F, 3).
    num_tiles : int
        Number of tiles (= number of vertices).

    Returns
    -------
    NeighborGraph
        Symmetric by construction.
    """
    faces = np.asarray(faces, dtype=np.int64)
    edges = np.concatenate([faces[:, [0, 1]], faces[:, [1, 2]], faces[:, [2, 0]]])
    edges = np.unique(np.sort(edges, axis=1), axis=0)

    adjacency: list[set[int]] = [set() for _ in range(num_tiles)]
    for u, w in edges.tolist():
        adjacency[u].add(w)
        adjacency[w].add(u)

    graph = NeighborGraph(neighbors=tuple(tuple(sorted(n)) for n in adjacency))
    logger.debug(
        "Neighbor graph from %d triangulation edges (%d tiles)",
        edges.shape[0], num_tiles,
    )
    return graph


def corner_key(point: np.ndarray, decimals: int = _DEFAULT_KEY_DECIMALS) -> tuple[float, float, float]:
    """Hashable key of a corner point rounded to ``decimals`` places."""
    rounded = np.round(np.asarray(point, dtype=np.float64), decimals) + 0.0
    return (float(rounded[0]), float(rounded[1]), float(rounded[2]))


def build_neighbor_graph_from_corners(
    corner_sets: Iterable[np.ndarray],
    decimals: int = _DEFAULT_KEY_DECIMALS,
) -> NeighborGraph:
    """Adjacency from shared corner points matched by rounded coordinates.

    Parameters
    ----------
    corner_sets : iterable of np.ndarray
        Corner points of each tile, in tile order. Each: shape (k, 3).
    decimals : int
        Rounding precision of the coordinate key.

    Returns
    -------
    NeighborGraph
        Tiles sharing at least one corner key (excluding self).
    """
    corner_sets = list(corner_sets)

    key_to_tiles: dict[tuple[float, float, float], list[int]] = {}
    tile_keys: list[list[tuple[float, float, float]]] = []
    for tile_index, corners in enumerate(corner_sets):
        keys = [corner_key(p, decimals) for p in corners]
        tile_keys.append(keys)
        for key in keys:
            key_to_tiles.setdefault(key, []).append(tile_index)

    neighbors = []
    for tile_index, keys in enumerate(tile_keys):
        found: set[int] = set()
        for key in keys:
            found.update(key_to_tiles[key])
        found.discard(tile_index)
        neighbors.append(tuple(sorted(found)))

    logger.debug(
        "Neighbor graph from %d distinct corner keys (%d tiles, %d decimals)",
        len(key_to_tiles), len(corner_sets), decimals,
    )
    return NeighborGraph(neighbors=tuple(neighbors))
