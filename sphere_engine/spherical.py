"""Great-circle primitives shared by the tile wireframe and border projector.

Both line emitters turn pairs of points on a sphere into chains of short
chords that follow the great circle between them. The per-arc segment count
is decided by the caller; this module only owns the arithmetic.

Algorithm
---------
Spherical linear interpolation between unit vectors a and b separated by
angle ω:

    slerp(a, b, t) = sin((1 − t)·ω)/sin ω · a  +  sin(t·ω)/sin ω · b

For ω < 1e-6 the arc is treated as a point and ``a`` is returned.

The arc angle is computed as atan2(|a × b|, a · b), which stays accurate for
both very short and nearly antipodal arcs where arccos(a · b) loses digits.
"""

from __future__ import annotations

import logging

import numpy as np
from numba import njit

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MIN_OMEGA: float = 1e-6

# Slack subtracted before ceil() so that an arc of exactly k steps is not
# rounded up to k + 1 by the last ulp of the angle computation.
_SEGMENT_EPS: float = 1e-9


# ---------------------------------------------------------------------------
# NumPy API
# ---------------------------------------------------------------------------


def normalize_rows(points: np.ndarray) -> np.ndarray:
    """Scale every row of ``points`` to unit length.

    Parameters
    ----------
    points : np.ndarray
        Shape (N, 3) or (3,).

    Returns
    -------
    np.ndarray
        Array of the same shape with unit-length rows, dtype float64.

    Raises
    ------
    ValueError
        If any row has zero length.
    """
    pts = np.asarray(points, dtype=np.float64)
    norms = np.linalg.norm(pts, axis=-1, keepdims=True)
    if np.any(norms == 0.0):
        raise ValueError("Cannot normalize a zero-length vector.")
    return pts / norms


def great_circle_angle(a: np.ndarray, b: np.ndarray) -> np.ndarray | float:
    """Angle [rad] between directions ``a`` and ``b`` (need not be unit).

    Works row-wise for (N, 3) inputs and returns a float for (3,) inputs.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    cross = np.linalg.norm(np.cross(a, b), axis=-1)
    dot = np.sum(a * b, axis=-1)
    angle = np.arctan2(cross, dot)
    if angle.ndim == 0:
        return float(angle)
    return angle


def slerp(a: np.ndarray, b: np.ndarray, t: float) -> np.ndarray:
    """Spherical linear interpolation between unit vectors ``a`` and ``b``.

    Parameters
    ----------
    a, b : np.ndarray
        Unit vectors. Shape: (3,).
    t : float
        Interpolation parameter; 0 returns ``a`` and 1 returns ``b``.

    Returns
    -------
    np.ndarray
        Interpolated unit vector. Shape: (3,).
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    omega = great_circle_angle(a, b)
    if omega < _MIN_OMEGA:
        return a.copy()
    sin_omega = np.sin(omega)
    s1 = np.sin((1.0 - t) * omega) / sin_omega
    s2 = np.sin(t * omega) / sin_omega
    return a * s1 + b * s2


def segment_counts(
    angles: np.ndarray,
    step_rad: float,
    minimum: int,
) -> np.ndarray:
    """Number of chords needed so that no chord spans more than ``step_rad``.

    Parameters
    ----------
    angles : np.ndarray
        Arc angles [rad]. Shape: (M,).
    step_rad : float
        Largest angle a single chord may cover [rad]. Must be > 0.
    minimum : int
        Lower bound on the count for every arc.

    Returns
    -------
    np.ndarray
        Segment counts, dtype int64. Shape: (M,).
    """
    if step_rad <= 0.0:
        raise ValueError(f"step_rad must be > 0, got {step_rad}")
    raw = np.ceil(np.asarray(angles, dtype=np.float64) / step_rad - _SEGMENT_EPS)
    return np.maximum(raw, minimum).astype(np.int64)


def arc_line_buffer(
    starts: np.ndarray,
    ends: np.ndarray,
    counts: np.ndarray,
    radius: float,
) -> np.ndarray:
    """Build a flat line-list buffer of great-circle chords.

    Every arc k from ``starts[k]`` to ``ends[k]`` is split into ``counts[k]``
    chords; each chord contributes two points (start, end) to the buffer.

    Parameters
    ----------
    starts, ends : np.ndarray
        Arc endpoints (any length, only direction is used). Shape: (M, 3).
    counts : np.ndarray
        Chords per arc, each ≥ 1. Shape: (M,).
    radius : float
        Radius the interpolated unit vectors are scaled to.

    Returns
    -------
    np.ndarray
        Flat float32 buffer of length ``6 * counts.sum()``:
        ``[x0, y0, z0, x1, y1, z1, ...]``.
    """
    starts = np.asarray(starts, dtype=np.float64).reshape(-1, 3)
    ends = np.asarray(ends, dtype=np.float64).reshape(-1, 3)
    counts = np.asarray(counts, dtype=np.int64).reshape(-1)

    if starts.shape[0] == 0:
        return np.zeros(0, dtype=np.float32)
    if starts.shape != ends.shape or counts.shape[0] != starts.shape[0]:
        raise ValueError(
            f"Mismatched arc inputs: starts={starts.shape}, "
            f"ends={ends.shape}, counts={counts.shape}"
        )
    if np.any(counts < 1):
        raise ValueError("Every arc needs at least one segment.")

    unit_a = normalize_rows(starts)
    unit_b = normalize_rows(ends)

    # Offsets (in points) of each arc's first chord in the output
    offsets = np.zeros(counts.shape[0], dtype=np.int64)
    offsets[1:] = np.cumsum(2 * counts)[:-1]
    total_points = int(2 * counts.sum())

    out = np.empty((total_points, 3), dtype=np.float64)
    _fill_arc_buffer(unit_a, unit_b, counts, offsets, float(radius), out)

    logger.debug(
        "Arc buffer: %d arcs → %d chords (radius=%.4f)",
        counts.shape[0], total_points // 2, radius,
    )
    return out.astype(np.float32).ravel()


# ---------------------------------------------------------------------------
# Numba kernels
# ---------------------------------------------------------------------------


@njit(cache=True, fastmath=False)
def _slerp_into(
    a: np.ndarray,
    b: np.ndarray,
    omega: float,
    sin_omega: float,
    t: float,
    radius: float,
    out: np.ndarray,
    row: int,
) -> None:
    """Write radius · slerp(a, b, t) into ``out[row]``."""
    if omega < _MIN_OMEGA:
        out[row, 0] = a[0] * radius
        out[row, 1] = a[1] * radius
        out[row, 2] = a[2] * radius
        return
    s1 = np.sin((1.0 - t) * omega) / sin_omega
    s2 = np.sin(t * omega) / sin_omega
    out[row, 0] = (a[0] * s1 + b[0] * s2) * radius
    out[row, 1] = (a[1] * s1 + b[1] * s2) * radius
    out[row, 2] = (a[2] * s1 + b[2] * s2) * radius


@njit(cache=True, fastmath=False)
def _fill_arc_buffer(
    unit_a: np.ndarray,
    unit_b: np.ndarray,
    counts: np.ndarray,
    offsets: np.ndarray,
    radius: float,
    out: np.ndarray,
) -> None:
    """Fill ``out`` with chord endpoints for every arc (see arc_line_buffer)."""
    for k in range(unit_a.shape[0]):
        a = unit_a[k]
        b = unit_b[k]

        # |a × b| and a · b for atan2
        cx = a[1] * b[2] - a[2] * b[1]
        cy = a[2] * b[0] - a[0] * b[2]
        cz = a[0] * b[1] - a[1] * b[0]
        cross = np.sqrt(cx * cx + cy * cy + cz * cz)
        dot = a[0] * b[0] + a[1] * b[1] + a[2] * b[2]
        omega = np.arctan2(cross, dot)
        sin_omega = np.sin(omega)

        n = counts[k]
        base = offsets[k]
        for s in range(n):
            t0 = s / n
            t1 = (s + 1) / n
            _slerp_into(a, b, omega, sin_omega, t0, radius, out, base + 2 * s)
            _slerp_into(a, b, omega, sin_omega, t1, radius, out, base + 2 * s + 1)
