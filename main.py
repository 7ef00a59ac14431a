"""HexGlobe — CLI entry point.

Builds the hexagon/pentagon globe tiling and the GeoJSON border layer,
then saves the line meshes and preview plots.

Usage
-----
    python main.py --subdivisions 4
    python main.py --config config/default_config.yaml --output output
    python main.py --geojson data/custom.geo.json --lon-offset 90 --flip-longitude
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path


def setup_logging(level: str = "INFO") -> None:
    """Configure structured logging."""
    fmt = "%(name)s [%(levelname)s] %(message)s"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=fmt,
        stream=sys.stdout,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="hexglobe",
        description="HexGlobe — hexagonal sphere tiling and great-circle GeoJSON borders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  python main.py --subdivisions 4\n"
            "  python main.py --geojson data/custom.geo.json --max-segment-angle 1.0\n"
            "  python main.py --no-plots --output output\n"
        ),
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/default_config.yaml",
        help="Path to globe config YAML (default: config/default_config.yaml)",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=None,
        help="Override globe radius (default: from config)",
    )
    parser.add_argument(
        "--subdivisions",
        type=int,
        default=None,
        help="Override icosahedron subdivision depth (default: from config)",
    )
    parser.add_argument(
        "--geojson",
        type=str,
        default=None,
        help="GeoJSON border document; enables the border layer",
    )
    parser.add_argument(
        "--lon-offset",
        type=float,
        default=None,
        help="Degrees added to every border longitude (default: from config)",
    )
    parser.add_argument(
        "--flip-longitude",
        action="store_true",
        default=False,
        help="Negate border longitudes before the offset",
    )
    parser.add_argument(
        "--max-segment-angle",
        type=float,
        default=None,
        help="Largest border chord angle in degrees (default: from config, 2.5)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="output",
        help="Output directory for arrays and plots (default: output/)",
    )
    parser.add_argument(
        "--no-plots",
        action="store_true",
        default=False,
        help="Skip matplotlib previews",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: INFO)",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger = logging.getLogger("hexglobe")
    logger.info("=" * 60)
    logger.info("  HexGlobe — Sphere Tiling & Borders")
    logger.info("=" * 60)

    from scene.io_manager import save_results
    from scene.orchestrator import GlobeScene
    from sphere_engine.constants import GlobeConfig, load_config, log_platform_info

    log_platform_info()

    # Load configuration (defaults when the file is absent)
    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
    else:
        logger.warning("Config %s not found, using defaults.", config_path)
        config = GlobeConfig()

    config = _apply_overrides(config, args)

    scene = GlobeScene()
    scene.apply_config(config)
    ran = scene.queue.run_pending()
    for task in ran:
        logger.info("Build task '%s' finished in %.3f s", task.name, task.elapsed_s)

    meshes = [m for m in (scene.wireframe, scene.border_mesh) if m is not None]

    output_dir = Path(args.output)
    saved = save_results(
        output_dir,
        scene.hex_sphere,
        meshes,
        metadata={"config": str(config_path), "radius": config.radius},
    )

    if not args.no_plots:
        from visualization.plotter import generate_all_plots

        saved.extend(generate_all_plots(scene.hex_sphere, meshes, output_dir=output_dir))

    # Summary
    logger.info("=" * 60)
    logger.info("  BUILD COMPLETE")
    logger.info("=" * 60)
    if scene.hex_sphere is not None:
        stats = scene.hex_sphere.get_stats()
        logger.info(
            "  Tiles: %d (%d hexagons, %d pentagons)",
            stats["total"], stats["hexagons"], stats["pentagons"],
        )
    for mesh in meshes:
        logger.info("  %s: %d segments", mesh.name, mesh.num_segments)
    logger.info("  Output files (%d):", len(saved))
    for p in saved:
        logger.info("    → %s", p)
    logger.info("=" * 60)

    return 0


def _apply_overrides(config, args: argparse.Namespace):
    """Fold CLI overrides into the loaded configuration."""
    from sphere_engine.constants import clamp_segment_angle, validate_config

    hex_grid = config.hex_grid
    borders = config.borders

    if args.radius is not None:
        hex_grid = replace(hex_grid, radius=args.radius)
        borders = replace(borders, radius=args.radius)
    if args.subdivisions is not None:
        hex_grid = replace(hex_grid, enabled=True, subdivisions=args.subdivisions)
    if args.geojson is not None:
        borders = replace(
            borders,
            enabled=True,
            geojson=replace(borders.geojson, enabled=True, path=args.geojson),
        )
    if args.lon_offset is not None:
        borders = replace(borders, lon_offset=args.lon_offset)
    if args.flip_longitude:
        borders = replace(borders, flip_longitude=True)
    if args.max_segment_angle is not None:
        borders = replace(
            borders, max_segment_angle_deg=clamp_segment_angle(args.max_segment_angle)
        )

    updated = replace(
        config,
        radius=args.radius if args.radius is not None else config.radius,
        hex_grid=hex_grid,
        borders=borders,
    )
    validate_config(updated)
    return updated


if __name__ == "__main__":
    sys.exit(main())
