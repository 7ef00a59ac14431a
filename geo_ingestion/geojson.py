"""GeoJSON documents as a closed set of line geometries.

Only the four geometry types that describe boundaries are kept:

    LineString        open chain
    MultiLineString   several open chains
    Polygon           closed rings (last point joins the first)
    MultiPolygon      several polygons of closed rings

Everything else (Point, MultiPoint, GeometryCollection, unknown tags,
``null`` geometries) is dropped here, at the parse boundary, so the
projector only ever sees these four variants.

Coordinates are kept as (lon, lat) float arrays. A position that cannot be
read as two numbers becomes (NaN, NaN) so that the projector can skip just
the connections touching it.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar, NamedTuple, Union

import numpy as np

logger = logging.getLogger(__name__)

SUPPORTED_TYPES: frozenset[str] = frozenset(
    {"LineString", "MultiLineString", "Polygon", "MultiPolygon"}
)


class CoordinatePath(NamedTuple):
    """One chain of (lon, lat) positions.

    Attributes
    ----------
    coords : np.ndarray
        Shape: (n, 2) as (lon, lat) degrees; malformed positions are NaN.
    closed : bool
        True for polygon rings: the last position connects to the first.
    """

    coords: np.ndarray
    closed: bool


# ---------------------------------------------------------------------------
# Geometry variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class LineString:
    coordinates: np.ndarray

    kind: ClassVar[str] = "LineString"

    def paths(self) -> list[CoordinatePath]:
        return [CoordinatePath(self.coordinates, False)]


@dataclass(frozen=True, eq=False)
class MultiLineString:
    lines: tuple[np.ndarray, ...]

    kind: ClassVar[str] = "MultiLineString"

    def paths(self) -> list[CoordinatePath]:
        return [CoordinatePath(line, False) for line in self.lines]


@dataclass(frozen=True, eq=False)
class Polygon:
    rings: tuple[np.ndarray, ...]

    kind: ClassVar[str] = "Polygon"

    def paths(self) -> list[CoordinatePath]:
        return [CoordinatePath(ring, True) for ring in self.rings]


@dataclass(frozen=True, eq=False)
class MultiPolygon:
    polygons: tuple[tuple[np.ndarray, ...], ...]

    kind: ClassVar[str] = "MultiPolygon"

    def paths(self) -> list[CoordinatePath]:
        return [CoordinatePath(ring, True) for rings in self.polygons for ring in rings]


Geometry = Union[LineString, MultiLineString, Polygon, MultiPolygon]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def _position(value: Any) -> tuple[float, float]:
    """(lon, lat) of one GeoJSON position, NaN when unreadable."""
    if isinstance(value, (list, tuple)) and len(value) >= 2:
        try:
            return float(value[0]), float(value[1])
        except (TypeError, ValueError, OverflowError):
            pass
    return np.nan, np.nan


def _chain(value: Any) -> np.ndarray:
    """Sequence of positions → (n, 2) float64 array."""
    if not isinstance(value, (list, tuple)):
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([_position(p) for p in value], dtype=np.float64).reshape(-1, 2)


def _chains(value: Any) -> tuple[np.ndarray, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(_chain(v) for v in value)


def parse_geometry(obj: Any) -> Geometry | None:
    """Parse one GeoJSON geometry object.

    Parameters
    ----------
    obj : Any
        A mapping with ``type`` and ``coordinates``.

    Returns
    -------
    Geometry or None
        None for unsupported or missing geometry types.
    """
    if not isinstance(obj, dict):
        return None

    geom_type = obj.get("type")
    coordinates = obj.get("coordinates")

    if geom_type == "LineString":
        return LineString(_chain(coordinates))
    if geom_type == "MultiLineString":
        return MultiLineString(_chains(coordinates))
    if geom_type == "Polygon":
        return Polygon(_chains(coordinates))
    if geom_type == "MultiPolygon":
        polygons = coordinates if isinstance(coordinates, (list, tuple)) else ()
        return MultiPolygon(tuple(_chains(p) for p in polygons))

    logger.debug("Ignoring unsupported geometry type: %r", geom_type)
    return None


def parse_geometries(document: Any) -> list[Geometry]:
    """Collect the supported geometries of a GeoJSON document.

    Accepts a ``FeatureCollection``, a single ``Feature``, or a bare
    geometry object. Features with a ``null`` geometry and unsupported
    geometry types contribute nothing.

    Parameters
    ----------
    document : Any
        Parsed GeoJSON (usually a dict).

    Returns
    -------
    list[Geometry]
        Supported geometries in document order.
    """
    if not isinstance(document, dict):
        logger.debug("GeoJSON root is not an object: %s", type(document).__name__)
        return []

    root_type = document.get("type")
    candidates: list[Any]
    if root_type == "FeatureCollection" and isinstance(document.get("features"), list):
        candidates = [
            f.get("geometry") for f in document["features"] if isinstance(f, dict)
        ]
    elif root_type == "Feature":
        candidates = [document.get("geometry")]
    elif "coordinates" in document and root_type:
        candidates = [document]
    else:
        candidates = []

    geometries = []
    for candidate in candidates:
        geometry = parse_geometry(candidate)
        if geometry is not None:
            geometries.append(geometry)

    logger.debug(
        "Parsed %d supported geometries from %d candidates (root type %r)",
        len(geometries), len(candidates), root_type,
    )
    return geometries


def load_geojson(path: str | Path) -> dict:
    """Read a GeoJSON document from disk.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    json.JSONDecodeError
        If the file is not valid JSON.
    ValueError
        If the JSON root is not an object.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"GeoJSON file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)

    if not isinstance(document, dict):
        raise ValueError(
            f"GeoJSON root must be an object, got {type(document).__name__}: {path}"
        )

    logger.info(
        "Loaded GeoJSON %s (type=%s, %d features)",
        path, document.get("type"), len(document.get("features") or []),
    )
    return document
