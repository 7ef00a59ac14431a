"""Icosahedron seed, geodesic subdivision, and projection onto a sphere.

Builds the triangulated sphere whose dual is the hexagon/pentagon tiling.

Notes
-----
Each subdivision pass splits every face (v1, v2, v3) into four:

            v1
           /  \\
          a----c
         / \\  / \\
       v2---b----v3

    (v1, a, c), (v2, b, a), (v3, c, b), (a, b, c)

with a = mid(v1, v2), b = mid(v2, v3), c = mid(v3, v1). Two faces sharing an
edge must reuse the same midpoint vertex, so midpoints are keyed by the
unordered pair of parent indices. The key table lives for one pass only:
vertex indices are pass-local.

After N passes:

    F = 20 · 4^N,   E = 3F / 2,   V = F / 2 + 2   (Euler, χ = 2)

Midpoints are left on the chord during subdivision; ``project_to_sphere``
pushes every vertex onto the sphere afterwards.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_PHI: float = (1.0 + np.sqrt(5.0)) / 2.0

# Cyclic permutations of (±1, ±φ, 0)
_SEED_VERTICES = np.array(
    [
        [-1.0, _PHI, 0.0], [1.0, _PHI, 0.0], [-1.0, -_PHI, 0.0], [1.0, -_PHI, 0.0],
        [0.0, -1.0, _PHI], [0.0, 1.0, _PHI], [0.0, -1.0, -_PHI], [0.0, 1.0, -_PHI],
        [_PHI, 0.0, -1.0], [_PHI, 0.0, 1.0], [-_PHI, 0.0, -1.0], [-_PHI, 0.0, 1.0],
    ],
    dtype=np.float64,
)

# Consistently wound: every directed edge appears exactly once
_SEED_FACES = np.array(
    [
        [0, 11, 5], [0, 5, 1], [0, 1, 7], [0, 7, 10], [0, 10, 11],
        [1, 5, 9], [5, 11, 4], [11, 10, 2], [10, 7, 6], [7, 1, 8],
        [3, 9, 4], [3, 4, 2], [3, 2, 6], [3, 6, 8], [3, 8, 9],
        [4, 9, 5], [2, 4, 11], [6, 2, 10], [8, 6, 7], [9, 8, 1],
    ],
    dtype=np.int64,
)

NUM_SEED_VERTICES: int = 12


# ---------------------------------------------------------------------------
# Mesh container
# ---------------------------------------------------------------------------


@dataclass
class GeodesicMesh:
    """Triangulated sphere produced by seed → subdivide → project.

    Attributes
    ----------
    vertices : np.ndarray
        Vertex positions on the sphere. Shape: (V, 3), dtype: float64.
        Rows 0..11 are the icosahedron seed vertices.
    faces : np.ndarray
        Triangle vertex indices. Shape: (F, 3), dtype: int64.
    radius : float
        Sphere radius the vertices were scaled to.
    subdivisions : int
        Number of subdivision passes applied to the seed.
    metadata : dict
        Mesh statistics.
    """

    vertices: np.ndarray
    faces: np.ndarray
    radius: float
    subdivisions: int
    metadata: dict = field(default_factory=dict)

    @property
    def num_vertices(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def num_faces(self) -> int:
        return int(self.faces.shape[0])


# ---------------------------------------------------------------------------
# Seed
# ---------------------------------------------------------------------------


def create_icosahedron() -> tuple[np.ndarray, np.ndarray]:
    """Return the unit icosahedron as (vertices, faces).

    Returns
    -------
    vertices : np.ndarray
        Unit-length vertices. Shape: (12, 3), dtype: float64.
    faces : np.ndarray
        Triangle indices. Shape: (20, 3), dtype: int64.
    """
    vertices = _SEED_VERTICES / np.linalg.norm(_SEED_VERTICES, axis=1, keepdims=True)
    return vertices, _SEED_FACES.copy()


# ---------------------------------------------------------------------------
# Subdivision
# ---------------------------------------------------------------------------


def subdivide(
    vertices: np.ndarray,
    faces: np.ndarray,
    depth: int,
) -> tuple[np.ndarray, np.ndarray]:
    """Split every face into four, ``depth`` times.

    Parameters
    ----------
    vertices : np.ndarray
        Vertex positions. Shape: (V, 3).
    faces : np.ndarray
        Triangle indices. Shape: (F, 3).
    depth : int
        Number of passes. 0 returns copies of the inputs.

    Returns
    -------
    vertices : np.ndarray
        Shape: (V', 3). The input vertices keep their indices.
    faces : np.ndarray
        Shape: (F · 4^depth, 3).

    Raises
    ------
    ValueError
        If depth is not a non-negative integer.
    """
    if isinstance(depth, bool) or not isinstance(depth, (int, np.integer)):
        raise ValueError(f"Subdivision depth must be an integer, got {depth!r}")
    if depth < 0:
        raise ValueError(f"Subdivision depth must be ≥ 0, got {depth}")

    verts = np.array(vertices, dtype=np.float64)
    tris = np.array(faces, dtype=np.int64)

    for level in range(int(depth)):
        verts, tris = _subdivide_once(verts, tris)
        logger.debug(
            "  Subdivision pass %d: %d vertices, %d faces",
            level + 1, verts.shape[0], tris.shape[0],
        )

    return verts, tris


def _subdivide_once(
    vertices: np.ndarray,
    faces: np.ndarray,
) -> tuple[np.ndarray, np.ndarray]:
    """One 1→4 subdivision pass with shared edge midpoints."""
    num_vertices = vertices.shape[0]
    num_faces = faces.shape[0]

    v1 = faces[:, 0]
    v2 = faces[:, 1]
    v3 = faces[:, 2]

    # Edges per face in (a, b, c) order: (v1,v2), (v2,v3), (v3,v1)
    edges = np.stack(
        [np.column_stack([v1, v2]), np.column_stack([v2, v3]), np.column_stack([v3, v1])],
        axis=1,
    ).reshape(-1, 2)

    # Unordered-pair key table for this pass
    keys = np.sort(edges, axis=1)
    unique_edges, inverse = np.unique(keys, axis=0, return_inverse=True)
    inverse = inverse.reshape(num_faces, 3)

    midpoints = 0.5 * (vertices[unique_edges[:, 0]] + vertices[unique_edges[:, 1]])
    new_vertices = np.vstack([vertices, midpoints])

    a = num_vertices + inverse[:, 0]
    b = num_vertices + inverse[:, 1]
    c = num_vertices + inverse[:, 2]

    # Four children per parent, kept adjacent: [p0c0, p0c1, p0c2, p0c3, p1c0, ...]
    children = np.stack(
        [
            np.column_stack([v1, a, c]),
            np.column_stack([v2, b, a]),
            np.column_stack([v3, c, b]),
            np.column_stack([a, b, c]),
        ],
        axis=1,
    ).reshape(-1, 3)

    return new_vertices, children


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project_to_sphere(vertices: np.ndarray, radius: float) -> np.ndarray:
    """Normalize every vertex and scale it to ``radius``.

    Parameters
    ----------
    vertices : np.ndarray
        Shape: (V, 3). No row may be the zero vector.
    radius : float
        Target radius, finite and > 0.

    Returns
    -------
    np.ndarray
        Projected vertices. Shape: (V, 3), dtype: float64.

    Raises
    ------
    ValueError
        If radius is not finite and positive, or a vertex is at the origin.
    """
    if not np.isfinite(radius) or radius <= 0.0:
        raise ValueError(f"Radius must be finite and > 0, got {radius}")

    verts = np.asarray(vertices, dtype=np.float64)
    norms = np.linalg.norm(verts, axis=1, keepdims=True)
    if np.any(norms < 1e-300):
        raise ValueError("Cannot project a vertex located at the origin.")
    return verts / norms * float(radius)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


def build_geodesic_mesh(radius: float = 1.0, subdivisions: int = 3) -> GeodesicMesh:
    """Seed, subdivide, and project a geodesic sphere.

    Parameters
    ----------
    radius : float
        Sphere radius.
    subdivisions : int
        Number of 1→4 subdivision passes (≥ 0).

    Returns
    -------
    GeodesicMesh
        Projected triangulation with statistics in ``metadata``.
    """
    logger.info(
        "Building geodesic mesh (radius=%.4f, subdivisions=%d)...",
        radius, subdivisions,
    )

    seed_vertices, seed_faces = create_icosahedron()
    vertices, faces = subdivide(seed_vertices, seed_faces, subdivisions)
    vertices = project_to_sphere(vertices, radius)

    num_vertices = vertices.shape[0]
    num_faces = faces.shape[0]
    expected_faces = 20 * 4 ** int(subdivisions)
    if num_faces != expected_faces or num_vertices != num_faces // 2 + 2:
        raise ValueError(
            f"Subdivision produced an invalid closed mesh: V={num_vertices}, "
            f"F={num_faces} (expected F={expected_faces}, V={expected_faces // 2 + 2})"
        )

    metadata = {
        "radius": float(radius),
        "subdivisions": int(subdivisions),
        "num_vertices": num_vertices,
        "num_faces": num_faces,
        "num_edges": 3 * num_faces // 2,
        "euler_characteristic": num_vertices - 3 * num_faces // 2 + num_faces,
    }

    logger.info(
        "Geodesic mesh created: %d vertices, %d faces, %d edges",
        num_vertices, num_faces, metadata["num_edges"],
    )

    return GeodesicMesh(
        vertices=vertices,
        faces=faces,
        radius=float(radius),
        subdivisions=int(subdivisions),
        metadata=metadata,
    )
