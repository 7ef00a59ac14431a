"""Globe defaults and configuration loader.

Display and geometry settings are read from a YAML file into frozen,
validated dataclasses. Keys that are absent fall back to the defaults
defined here.

Example
-------
.. code-block:: yaml

    globe:
      radius: 1.0
    hex_grid:
      enabled: true
      subdivisions: 4
      wireframe_color: "#00CC66"
      show_wireframe: true
    borders:
      enabled: true
      lon_offset: 0.0
      flip_longitude: false
      color: "#00FF80"
      altitude: 0.0025
      max_segment_angle_deg: 2.5
      geojson:
        enabled: true
        path: data/custom.geo.json
"""

from __future__ import annotations

import hashlib
import logging
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Sequence

import numpy as np
import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_RADIUS: float = 1.0
DEFAULT_SUBDIVISIONS: int = 4
DEFAULT_WIREFRAME_RGB: tuple[float, float, float] = (0.0, 0.8, 0.4)
DEFAULT_WIREFRAME_ALPHA: float = 0.6
DEFAULT_BORDER_RGB: tuple[float, float, float] = (0.0, 1.0, 0.5)
DEFAULT_BORDER_ALPHA: float = 0.9
DEFAULT_ALTITUDE: float = 0.0025
DEFAULT_MAX_SEGMENT_ANGLE_DEG: float = 2.5
MIN_SEGMENT_ANGLE_DEG: float = 0.1
DEFAULT_GEOJSON_PATH: str = "data/custom.geo.json"

# Deeper meshes take minutes and gigabytes in pure Python
MAX_SUBDIVISIONS: int = 8


# ---------------------------------------------------------------------------
# Configuration Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HexGridConfig:
    """Hex tile grid settings.

    Attributes
    ----------
    enabled : bool
        Build the tiling at startup.
    radius : float
        Sphere radius of the tiling.
    subdivisions : int
        Icosahedron subdivision depth.
    wireframe_color : tuple[float, float, float, float]
        RGBA of the tile-boundary lines.
    show_wireframe : bool
        Attach the wireframe to the scene once built.
    """

    enabled: bool = False
    radius: float = DEFAULT_RADIUS
    subdivisions: int = DEFAULT_SUBDIVISIONS
    wireframe_color: tuple[float, float, float, float] = (
        *DEFAULT_WIREFRAME_RGB, DEFAULT_WIREFRAME_ALPHA,
    )
    show_wireframe: bool = False


@dataclass(frozen=True)
class GeoJsonSourceConfig:
    """Where the boundary document comes from.

    Attributes
    ----------
    enabled : bool
        Load and draw the document.
    path : str
        File path of the GeoJSON document; also its cache key.
    """

    enabled: bool = False
    path: str = DEFAULT_GEOJSON_PATH


@dataclass(frozen=True)
class BordersConfig:
    """Geographic boundary projection settings.

    Attributes
    ----------
    enabled : bool
        Master switch for the border layer.
    lon_offset : float
        Degrees added to every longitude (after the optional flip).
    flip_longitude : bool
        Negate longitude before applying the offset.
    color : tuple[float, float, float, float]
        RGBA of the border lines.
    radius : float
        Base sphere radius for projection.
    altitude : float
        Radial offset added to ``radius`` so lines sit above the surface.
    max_segment_angle_deg : float
        Largest angle one chord of a border arc may span [deg].
    geojson : GeoJsonSourceConfig
        Source document settings.
    """

    enabled: bool = False
    lon_offset: float = 0.0
    flip_longitude: bool = False
    color: tuple[float, float, float, float] = (*DEFAULT_BORDER_RGB, DEFAULT_BORDER_ALPHA)
    radius: float = DEFAULT_RADIUS
    altitude: float = DEFAULT_ALTITUDE
    max_segment_angle_deg: float = DEFAULT_MAX_SEGMENT_ANGLE_DEG
    geojson: GeoJsonSourceConfig = GeoJsonSourceConfig()

    @property
    def projection_radius(self) -> float:
        """Radius the border lines are drawn on."""
        return self.radius + self.altitude

    @property
    def is_active(self) -> bool:
        return self.enabled and self.geojson.enabled


@dataclass(frozen=True)
class GlobeConfig:
    """Top-level configuration.

    Attributes
    ----------
    radius : float
        Globe radius shared by the tiling and the border layer.
    hex_grid : HexGridConfig
        Tile grid settings.
    borders : BordersConfig
        Border layer settings.
    """

    radius: float = DEFAULT_RADIUS
    hex_grid: HexGridConfig = HexGridConfig()
    borders: BordersConfig = BordersConfig()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def parse_hex_color(
    hex_color: str | None,
    fallback: Sequence[float],
) -> tuple[float, float, float]:
    """Parse ``#RRGGBB`` into RGB floats in [0, 1].

    Returns ``fallback`` for None, wrong length, or non-hex digits.
    """
    if not hex_color:
        return tuple(float(c) for c in fallback)
    clean = str(hex_color).strip().lstrip("#")
    if len(clean) != 6:
        logger.debug("Ignoring malformed color %r", hex_color)
        return tuple(float(c) for c in fallback)
    try:
        r, g, b = (int(clean[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError:
        logger.debug("Ignoring malformed color %r", hex_color)
        return tuple(float(c) for c in fallback)
    return (r, g, b)


def clamp_segment_angle(max_segment_angle_deg: float) -> float:
    """Apply the lower bound on the border chord angle [deg]."""
    return max(MIN_SEGMENT_ANGLE_DEG, float(max_segment_angle_deg))


def _number(section: Mapping[str, Any], key: str, default: float) -> float:
    """Numeric value of ``section[key]``, or ``default`` when absent or non-numeric."""
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return float(default)
    return float(value)


# ---------------------------------------------------------------------------
# Configuration Loader
# ---------------------------------------------------------------------------


def config_from_dict(raw: Mapping[str, Any] | None) -> GlobeConfig:
    """Build a validated ``GlobeConfig`` from a parsed mapping.

    Parameters
    ----------
    raw : mapping or None
        Parsed YAML/JSON content. Missing sections and keys take defaults.

    Returns
    -------
    GlobeConfig
        Validated configuration.

    Raises
    ------
    ValueError
        If a value is invalid (see ``validate_config``).
    """
    raw = raw or {}

    # --- Globe ---
    globe = raw.get("globe") or {}
    radius = _number(globe, "radius", DEFAULT_RADIUS)

    # --- Hex grid ---
    hg = raw.get("hex_grid") or {}
    wire_rgb = parse_hex_color(hg.get("wireframe_color"), DEFAULT_WIREFRAME_RGB)
    subdivisions = hg.get("subdivisions", DEFAULT_SUBDIVISIONS)
    if isinstance(subdivisions, float) and subdivisions.is_integer():
        subdivisions = int(subdivisions)
    hex_grid = HexGridConfig(
        enabled=bool(hg.get("enabled", False)),
        radius=_number(hg, "radius", radius),
        subdivisions=subdivisions,
        wireframe_color=(*wire_rgb, DEFAULT_WIREFRAME_ALPHA),
        show_wireframe=bool(hg.get("show_wireframe", False)),
    )

    # --- Borders ---
    bd = raw.get("borders") or {}
    gj = bd.get("geojson") or {}
    border_rgb = parse_hex_color(bd.get("color"), DEFAULT_BORDER_RGB)
    borders = BordersConfig(
        enabled=bool(bd.get("enabled", False)),
        lon_offset=_number(bd, "lon_offset", 0.0),
        flip_longitude=bool(bd.get("flip_longitude", False)),
        color=(*border_rgb, DEFAULT_BORDER_ALPHA),
        radius=_number(bd, "radius", radius),
        altitude=_number(bd, "altitude", DEFAULT_ALTITUDE),
        max_segment_angle_deg=clamp_segment_angle(
            _number(bd, "max_segment_angle_deg", DEFAULT_MAX_SEGMENT_ANGLE_DEG)
        ),
        geojson=GeoJsonSourceConfig(
            enabled=bool(gj.get("enabled", False)),
            path=str(gj.get("path") or DEFAULT_GEOJSON_PATH),
        ),
    )

    config = GlobeConfig(radius=radius, hex_grid=hex_grid, borders=borders)
    validate_config(config)
    return config


def load_config(config_path: str | Path) -> GlobeConfig:
    """Load and validate a globe configuration from a YAML file.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    GlobeConfig
        Fully populated, typed configuration object.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If the file is not a mapping or values are invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    logger.info("Loading configuration from: %s", config_path)

    if raw is not None and not isinstance(raw, dict):
        raise ValueError(
            f"Configuration root must be a mapping, got {type(raw).__name__}"
        )

    config = config_from_dict(raw)
    logger.info(
        "Configuration loaded: hex_grid=%s (depth %d), borders=%s",
        "on" if config.hex_grid.enabled else "off",
        config.hex_grid.subdivisions,
        "on" if config.borders.is_active else "off",
    )
    return config


def validate_config(config: GlobeConfig) -> None:
    """Validate geometric constraints on configuration values.

    Raises
    ------
    ValueError
        If any value is invalid.
    """
    if not np.isfinite(config.radius) or config.radius <= 0.0:
        raise ValueError(f"Globe radius must be > 0, got {config.radius}")
    if not np.isfinite(config.hex_grid.radius) or config.hex_grid.radius <= 0.0:
        raise ValueError(f"Hex grid radius must be > 0, got {config.hex_grid.radius}")

    depth = config.hex_grid.subdivisions
    if isinstance(depth, bool) or not isinstance(depth, int):
        raise ValueError(f"Subdivisions must be an integer, got {depth!r}")
    if not (0 <= depth <= MAX_SUBDIVISIONS):
        raise ValueError(
            f"Subdivisions must be in [0, {MAX_SUBDIVISIONS}], got {depth}"
        )

    b = config.borders
    if not np.isfinite(b.projection_radius) or b.projection_radius <= 0.0:
        raise ValueError(
            f"Border radius + altitude must be > 0, got {b.radius} + {b.altitude}"
        )
    if not np.isfinite(b.lon_offset):
        raise ValueError(f"Longitude offset must be finite, got {b.lon_offset}")
    if not np.isfinite(b.max_segment_angle_deg):
        raise ValueError(
            f"Max segment angle must be finite, got {b.max_segment_angle_deg}"
        )

    logger.debug("Configuration validation passed.")


# ---------------------------------------------------------------------------
# Reproducibility
# ---------------------------------------------------------------------------


def log_platform_info() -> None:
    """Log platform and library version information for reproducibility."""
    logger.info("=" * 70)
    logger.info("PLATFORM INFORMATION (for reproducibility)")
    logger.info("=" * 70)
    logger.info("  Python:    %s", sys.version)
    logger.info("  Platform:  %s", platform.platform())
    logger.info("  NumPy:     %s", np.__version__)
    logger.info("  Float64 eps: %e", np.finfo(np.float64).eps)
    logger.info("=" * 70)


def hash_array(arr: np.ndarray) -> str:
    """SHA-256 hex digest of an array's bytes (for build reproducibility)."""
    return hashlib.sha256(np.ascontiguousarray(arr).tobytes()).hexdigest()
