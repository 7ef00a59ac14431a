"""Geographic boundaries as great-circle line lists on the globe.

Each pair of consecutive (lon, lat) positions becomes a great-circle arc
split into chords no wider than ``max_segment_angle_deg``. Polygon rings
also connect their last position back to the first.

Coordinate convention
---------------------
Longitude lies in the X/Z plane and latitude along Y:

    λ' = (−λ if flip_longitude else λ) + lon_offset
    x  = r · cos φ · cos λ'
    y  = r · sin φ
    z  = r · cos φ · sin λ'

with r = radius + altitude.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from geo_ingestion.geojson import CoordinatePath, Geometry, parse_geometries
from sphere_engine.constants import (
    DEFAULT_BORDER_ALPHA,
    DEFAULT_BORDER_RGB,
    DEFAULT_MAX_SEGMENT_ANGLE_DEG,
    BordersConfig,
    clamp_segment_angle,
)
from sphere_engine.line_mesh import Color, LineMesh
from sphere_engine.spherical import arc_line_buffer, great_circle_angle, segment_counts

logger = logging.getLogger(__name__)

BORDER_MESH_NAME: str = "GeoJsonBorders"


@dataclass(frozen=True)
class BorderProjectionOptions:
    """How boundary coordinates are placed on the sphere.

    Attributes
    ----------
    radius : float
        Base sphere radius.
    altitude : float
        Radial offset added to ``radius``.
    lon_offset : float
        Degrees added to every longitude after the optional flip.
    flip_longitude : bool
        Negate longitude before the offset.
    max_segment_angle_deg : float
        Largest angle one chord may span [deg]; values below 0.1 are raised
        to 0.1.
    color : tuple[float, float, float, float]
        RGBA of the resulting lines.
    """

    radius: float
    altitude: float = 0.0
    lon_offset: float = 0.0
    flip_longitude: bool = False
    max_segment_angle_deg: float = DEFAULT_MAX_SEGMENT_ANGLE_DEG
    color: Color = (*DEFAULT_BORDER_RGB, DEFAULT_BORDER_ALPHA)

    def __post_init__(self) -> None:
        if not np.isfinite(self.radius + self.altitude) or self.radius + self.altitude <= 0.0:
            raise ValueError(
                f"Projection radius must be > 0, got {self.radius} + {self.altitude}"
            )

    @property
    def projection_radius(self) -> float:
        return self.radius + self.altitude

    @property
    def max_segment_angle_rad(self) -> float:
        return float(np.radians(clamp_segment_angle(self.max_segment_angle_deg)))

    @classmethod
    def from_config(cls, config: BordersConfig) -> BorderProjectionOptions:
        return cls(
            radius=config.radius,
            altitude=config.altitude,
            lon_offset=config.lon_offset,
            flip_longitude=config.flip_longitude,
            max_segment_angle_deg=config.max_segment_angle_deg,
            color=config.color,
        )


# ---------------------------------------------------------------------------
# Coordinate conversion
# ---------------------------------------------------------------------------


def lonlat_to_xyz(
    lon_deg: np.ndarray | float,
    lat_deg: np.ndarray | float,
    radius: float,
    lon_offset: float = 0.0,
    flip_longitude: bool = False,
) -> np.ndarray:
    """Convert longitude/latitude [deg] to points on a sphere.

    Parameters
    ----------
    lon_deg, lat_deg : array_like or float
        Longitudes and latitudes in degrees (broadcast together).
    radius : float
        Sphere radius.
    lon_offset : float
        Degrees added after the optional flip.
    flip_longitude : bool
        Negate longitude before the offset.

    Returns
    -------
    np.ndarray
        Shape: (..., 3), dtype float64.
    """
    lon = np.asarray(lon_deg, dtype=np.float64)
    lat = np.asarray(lat_deg, dtype=np.float64)

    adjusted = (-lon if flip_longitude else lon) + lon_offset
    lon_rad = np.radians(adjusted)
    lat_rad = np.radians(lat)
    cos_lat = np.cos(lat_rad)

    return np.stack(
        [
            radius * cos_lat * np.cos(lon_rad),
            radius * np.sin(lat_rad),
            radius * cos_lat * np.sin(lon_rad),
        ],
        axis=-1,
    )


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------


def path_connections(path: CoordinatePath) -> tuple[np.ndarray, np.ndarray, int]:
    """Endpoint pairs of every drawable connection in one path.

    Open paths connect i → i+1; closed rings also connect last → first.
    Paths with fewer than two positions contribute nothing. Connections
    touching a non-finite coordinate are dropped.

    Returns
    -------
    starts, ends : np.ndarray
        (lon, lat) of each kept connection. Shape: (k, 2) each.
    skipped : int
        Number of connections dropped for non-finite coordinates.
    """
    coords = path.coords
    n = coords.shape[0]
    if n < 2:
        empty = np.zeros((0, 2), dtype=np.float64)
        return empty, empty, 0

    idx = np.arange(n if path.closed else n - 1)
    starts = coords[idx]
    ends = coords[(idx + 1) % n]

    finite = np.isfinite(starts).all(axis=1) & np.isfinite(ends).all(axis=1)
    skipped = int((~finite).sum())
    return starts[finite], ends[finite], skipped


# ---------------------------------------------------------------------------
# Projection
# ---------------------------------------------------------------------------


def project_geometries(
    geometries: Sequence[Geometry],
    options: BorderProjectionOptions,
) -> np.ndarray:
    """Flat float32 line-list buffer for a list of geometries.

    Parameters
    ----------
    geometries : sequence of Geometry
        Parsed boundary geometries.
    options : BorderProjectionOptions
        Placement and resolution settings.

    Returns
    -------
    np.ndarray
        ``[x0, y0, z0, x1, y1, z1, ...]``; empty when nothing is drawable.
    """
    start_chunks: list[np.ndarray] = []
    end_chunks: list[np.ndarray] = []
    num_paths = 0
    num_skipped = 0

    for geometry in geometries:
        for path in geometry.paths():
            num_paths += 1
            starts, ends, skipped = path_connections(path)
            num_skipped += skipped
            if starts.shape[0]:
                start_chunks.append(starts)
                end_chunks.append(ends)

    if num_skipped:
        logger.debug("Skipped %d connections with non-finite coordinates", num_skipped)

    if not start_chunks:
        logger.debug("No drawable connections in %d paths", num_paths)
        return np.zeros(0, dtype=np.float32)

    starts_ll = np.concatenate(start_chunks)
    ends_ll = np.concatenate(end_chunks)

    radius = options.projection_radius
    p0 = lonlat_to_xyz(
        starts_ll[:, 0], starts_ll[:, 1], radius, options.lon_offset, options.flip_longitude
    )
    p1 = lonlat_to_xyz(
        ends_ll[:, 0], ends_ll[:, 1], radius, options.lon_offset, options.flip_longitude
    )

    counts = segment_counts(
        great_circle_angle(p0, p1),
        step_rad=options.max_segment_angle_rad,
        minimum=1,
    )
    return arc_line_buffer(p0, p1, counts, radius)


def create_border_lines(
    document: Any,
    options: BorderProjectionOptions,
    name: str = BORDER_MESH_NAME,
) -> LineMesh:
    """Project a GeoJSON document into a border ``LineMesh``.

    Parameters
    ----------
    document : Any
        FeatureCollection, Feature, or bare geometry (parsed JSON).
    options : BorderProjectionOptions
        Placement and resolution settings.
    name : str
        Scene name of the renderable.

    Returns
    -------
    LineMesh
        Border lines; ``is_empty`` when the document has no drawable
        geometry.
    """
    geometries = parse_geometries(document)
    positions = project_geometries(geometries, options)
    mesh = LineMesh(name=name, positions=positions, color=options.color)

    logger.info(
        "Border lines: %d geometries → %d segments "
        "(r=%.4f, lon_offset=%.2f°, flip=%s, max_seg=%.2f°)",
        len(geometries),
        mesh.num_segments,
        options.projection_radius,
        options.lon_offset,
        options.flip_longitude,
        np.degrees(options.max_segment_angle_rad),
    )
    return mesh
