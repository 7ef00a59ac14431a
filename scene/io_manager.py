"""Data I/O manager: persist globe builds as NumPy arrays.

Saves the tiling and line meshes so they can be re-plotted or loaded by a
renderer without rebuilding.

File layout under output_dir/:
    tile_centers.npy       Tile center points, shape (N_tiles, 3)
    tile_corners.npy       Tile corners, shape (N_tiles, 6, 3); pentagons NaN-padded
    tile_neighbors.npy     Neighbor indices, shape (N_tiles, 6); -1 padded
    <name>_positions.npy   Flat float32 line-list buffer per LineMesh
    metadata.json          Build metadata, tile stats, mesh colors (JSON)
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Sequence

import numpy as np

from sphere_engine.constants import hash_array
from sphere_engine.hexsphere import HexSphere
from sphere_engine.line_mesh import LineMesh

logger = logging.getLogger(__name__)

_MAX_CORNERS = 6


def tile_arrays(hex_sphere: HexSphere) -> dict[str, np.ndarray]:
    """Pack tiles into fixed-width arrays.

    Returns
    -------
    dict
        'tile_centers' (N, 3), 'tile_corners' (N, 6, 3) NaN-padded,
        'tile_neighbors' (N, 6) int64 -1-padded.
    """
    tiles = hex_sphere.tiles
    n = len(tiles)

    centers = np.empty((n, 3), dtype=np.float64)
    corners = np.full((n, _MAX_CORNERS, 3), np.nan, dtype=np.float64)
    neighbors = np.full((n, _MAX_CORNERS), -1, dtype=np.int64)

    for i, tile in enumerate(tiles):
        centers[i] = tile.center
        corners[i, : tile.corner_count] = tile.corners
        neighbors[i, : len(tile.neighbors)] = tile.neighbors

    return {
        "tile_centers": centers,
        "tile_corners": corners,
        "tile_neighbors": neighbors,
    }


def save_results(
    output_dir: Path | str,
    hex_sphere: HexSphere | None,
    meshes: Sequence[LineMesh],
    metadata: dict,
) -> list[Path]:
    """Save the tiling and line meshes to disk as NumPy arrays + JSON.

    Parameters
    ----------
    output_dir : Path or str
        Output directory (created if needed).
    hex_sphere : HexSphere or None
        Tiling to save; skipped when None.
    meshes : sequence of LineMesh
        Line meshes to save (empty meshes are recorded in metadata only).
    metadata : dict
        Extra metadata merged into metadata.json.

    Returns
    -------
    list[Path]
        Paths to all saved files.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    saved: list[Path] = []
    meta = dict(metadata)

    if hex_sphere is not None:
        for name, arr in tile_arrays(hex_sphere).items():
            path = output_dir / f"{name}.npy"
            np.save(path, arr)
            saved.append(path)
            logger.debug("Saved %s: shape=%s, dtype=%s", path.name, arr.shape, arr.dtype)
        meta["hex_sphere"] = {**hex_sphere.metadata, **hex_sphere.get_stats()}

    mesh_meta = {}
    for mesh in meshes:
        mesh_meta[mesh.name] = {
            "color": list(mesh.color),
            "num_segments": mesh.num_segments,
            "sha256": hash_array(mesh.positions),
        }
        if mesh.is_empty:
            continue
        path = output_dir / f"{mesh.name}_positions.npy"
        np.save(path, mesh.positions)
        saved.append(path)
        logger.debug("Saved %s: %d segments", path.name, mesh.num_segments)
    meta["line_meshes"] = mesh_meta

    meta_path = output_dir / "metadata.json"
    with open(meta_path, "w", encoding="utf-8") as f:
        json.dump(_sanitize_for_json(meta), f, indent=2, ensure_ascii=False)
    saved.append(meta_path)

    logger.info("Saved %d files to %s", len(saved), output_dir)
    return saved


def load_results(output_dir: Path | str) -> dict:
    """Load previously saved globe data.

    Returns
    -------
    dict
        Keys: 'tile_centers', 'tile_corners', 'tile_neighbors' (None when
        missing), 'line_meshes' (name → LineMesh), 'metadata'.

    Raises
    ------
    FileNotFoundError
        If ``output_dir`` does not exist.
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        raise FileNotFoundError(f"Output directory not found: {output_dir}")

    data: dict = {}
    for key in ("tile_centers", "tile_corners", "tile_neighbors"):
        path = output_dir / f"{key}.npy"
        if path.exists():
            data[key] = np.load(path)
            logger.debug("Loaded %s: shape=%s", key, data[key].shape)
        else:
            data[key] = None

    meta_path = output_dir / "metadata.json"
    if meta_path.exists():
        with open(meta_path, "r", encoding="utf-8") as f:
            data["metadata"] = json.load(f)
    else:
        logger.warning("Missing file: %s", meta_path)
        data["metadata"] = {}

    meshes: dict[str, LineMesh] = {}
    for name, info in data["metadata"].get("line_meshes", {}).items():
        path = output_dir / f"{name}_positions.npy"
        positions = np.load(path) if path.exists() else np.zeros(0, dtype=np.float32)
        meshes[name] = LineMesh(name=name, positions=positions, color=tuple(info["color"]))
    data["line_meshes"] = meshes

    logger.info("Loaded results from %s (%d line meshes)", output_dir, len(meshes))
    return data


def _sanitize_for_json(obj: object) -> object:
    """Recursively convert NumPy types and other non-JSON types to Python natives."""
    if isinstance(obj, dict):
        return {k: _sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, np.bool_):
        return bool(obj)
    return obj
