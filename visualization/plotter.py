"""Visualization module for the globe line layers.

Generates static figures using matplotlib:
- 3D view of line-list meshes (tile wireframe, borders)
- Longitude/latitude map of tile centers with pentagons highlighted
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib

matplotlib.use("Agg")  # Non-interactive backend for headless rendering

import matplotlib.pyplot as plt
import numpy as np
from mpl_toolkits.mplot3d.art3d import Line3DCollection

from sphere_engine.hexsphere import HexSphere
from sphere_engine.line_mesh import LineMesh

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Style
# ---------------------------------------------------------------------------

_BACKGROUND = "#0f0f1a"
_PENTAGON_COLOR = "#ff5577"
_HEXAGON_COLOR = "#33cc88"
_DPI = 150


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def plot_line_meshes(
    meshes: Sequence[LineMesh],
    title: str = "Globe Line Layers",
    output_path: Path | str | None = None,
    elev_deg: float = 20.0,
    azim_deg: float = -60.0,
    dpi: int = _DPI,
) -> plt.Figure:
    """Plot line-list meshes in 3D, each in its own color.

    Parameters
    ----------
    meshes : sequence of LineMesh
        Meshes to draw; empty meshes are skipped.
    title : str
        Figure title.
    output_path : Path or str, optional
        If provided, save figure to this path.
    elev_deg, azim_deg : float
        Camera elevation and azimuth [deg].
    dpi : int
        Figure resolution.

    Returns
    -------
    matplotlib.figure.Figure
        The generated figure.
    """
    fig = plt.figure(figsize=(9, 9), facecolor=_BACKGROUND)
    ax = fig.add_subplot(1, 1, 1, projection="3d")
    ax.set_facecolor(_BACKGROUND)

    extent = 0.0
    for mesh in meshes:
        if mesh.is_empty:
            continue
        # Renderer convention is Y-up; matplotlib is Z-up
        segments = mesh.segments()[:, :, [0, 2, 1]].astype(np.float64)
        ax.add_collection3d(
            Line3DCollection(segments, colors=[mesh.color], linewidths=0.5)
        )
        extent = max(extent, float(np.abs(segments).max()))

    extent = extent or 1.0
    ax.set_xlim(-extent, extent)
    ax.set_ylim(-extent, extent)
    ax.set_zlim(-extent, extent)
    ax.set_box_aspect((1, 1, 1))
    ax.view_init(elev=elev_deg, azim=azim_deg)
    ax.set_axis_off()
    ax.set_title(title, fontsize=14, fontweight="bold", color="white")

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Line mesh plot saved: %s", output_path)

    plt.close(fig)
    return fig


def plot_tile_map(
    hex_sphere: HexSphere,
    title: str = "Tile Centers",
    output_path: Path | str | None = None,
    dpi: int = _DPI,
) -> plt.Figure:
    """Scatter tile centers on a longitude/latitude map.

    Longitude is measured in the X/Z plane and latitude from Y, matching the
    border projection.
    """
    centers = np.array([t.center for t in hex_sphere.tiles])
    unit = centers / np.linalg.norm(centers, axis=1, keepdims=True)
    lat = np.degrees(np.arcsin(np.clip(unit[:, 1], -1.0, 1.0)))
    lon = np.degrees(np.arctan2(unit[:, 2], unit[:, 0]))
    pentagon = np.array([t.is_pentagon for t in hex_sphere.tiles])

    fig, ax = plt.subplots(1, 1, figsize=(12, 6), facecolor=_BACKGROUND)
    ax.set_facecolor(_BACKGROUND)

    ax.scatter(
        lon[~pentagon], lat[~pentagon],
        s=4, c=_HEXAGON_COLOR, edgecolors="none", label="hexagon",
    )
    ax.scatter(
        lon[pentagon], lat[pentagon],
        s=40, c=_PENTAGON_COLOR, marker="p", label="pentagon",
    )

    stats = hex_sphere.get_stats()
    ax.set_title(
        f"{title}: {stats['total']} tiles "
        f"({stats['hexagons']} hexagons, {stats['pentagons']} pentagons)",
        fontsize=12, fontweight="bold", color="white",
    )
    ax.set_xlabel("Longitude [deg]", color="white")
    ax.set_ylabel("Latitude [deg]", color="white")
    ax.set_xlim(-180.0, 180.0)
    ax.set_ylim(-90.0, 90.0)
    ax.tick_params(colors="white")
    for spine in ax.spines.values():
        spine.set_edgecolor("#444")
    ax.legend(facecolor="#1a1a2e", edgecolor="#444", labelcolor="white")

    fig.tight_layout()

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        logger.info("Tile map saved: %s", output_path)

    plt.close(fig)
    return fig


def generate_all_plots(
    hex_sphere: HexSphere | None,
    meshes: Sequence[LineMesh],
    output_dir: Path | str = "output",
    dpi: int = _DPI,
) -> list[Path]:
    """Generate the standard set of figures.

    Returns
    -------
    list[Path]
        Paths to all saved figures.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: list[Path] = []

    # 1. 3D line layers
    if any(not m.is_empty for m in meshes):
        p = output_dir / "globe_lines.png"
        plot_line_meshes(meshes, output_path=p, dpi=dpi)
        saved.append(p)

    # 2. Tile center map
    if hex_sphere is not None:
        p = output_dir / "tile_map.png"
        plot_tile_map(hex_sphere, output_path=p, dpi=dpi)
        saved.append(p)

    logger.info("Generated %d plots in %s", len(saved), output_dir)
    return saved
