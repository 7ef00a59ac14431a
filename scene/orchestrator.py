"""Globe scene orchestration.

Owns the two line layers of the globe and keeps them in step with the
configuration:

- **hex grid**: one ``HexSphere`` per (radius, subdivisions); its wireframe
  is attached to the scene when requested.
- **borders**: a GeoJSON document projected to a border ``LineMesh``. The
  document comes from a ``GeoJsonRepository`` (cached by path); the
  projection runs as a deferred ``BuildQueue`` task.

Border builds carry a generation number. A build that finishes after a newer
request (or after the layer was cleared) is dropped instead of attached.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from geo_ingestion.borders import BORDER_MESH_NAME, BorderProjectionOptions, create_border_lines
from geo_ingestion.source_cache import GeoJsonRepository
from scene.build_queue import BuildQueue, BuildTask
from sphere_engine.constants import BordersConfig, GlobeConfig, HexGridConfig
from sphere_engine.hexsphere import HexSphere
from sphere_engine.line_mesh import LineMesh, as_rgba

logger = logging.getLogger(__name__)

WIREFRAME_MESH_NAME: str = "HexGridWireframe"


# ---------------------------------------------------------------------------
# Rendering sink
# ---------------------------------------------------------------------------


class LineMeshSink(Protocol):
    """Anything that can show and hide named line-list renderables."""

    def attach(self, name: str, mesh: LineMesh) -> None: ...

    def detach(self, name: str) -> None: ...


class InMemoryScene:
    """Scene graph stand-in that records attached meshes by name."""

    def __init__(self) -> None:
        self.entities: dict[str, LineMesh] = {}

    def attach(self, name: str, mesh: LineMesh) -> None:
        self.entities[name] = mesh
        logger.debug("Attached '%s' (%d segments)", name, mesh.num_segments)

    def detach(self, name: str) -> None:
        if self.entities.pop(name, None) is not None:
            logger.debug("Detached '%s'", name)

    def __contains__(self, name: str) -> bool:
        return name in self.entities


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class GlobeScene:
    """Builds and swaps the hex grid and border layers.

    Parameters
    ----------
    sink : LineMeshSink, optional
        Where renderables are attached. Defaults to an ``InMemoryScene``.
    repository : GeoJsonRepository, optional
        Document cache. Defaults to one reading JSON files.
    queue : BuildQueue, optional
        Queue for deferred border builds.
    """

    def __init__(
        self,
        sink: LineMeshSink | None = None,
        repository: GeoJsonRepository | None = None,
        queue: BuildQueue | None = None,
    ) -> None:
        self.sink: LineMeshSink = sink if sink is not None else InMemoryScene()
        self.repository = repository if repository is not None else GeoJsonRepository()
        self.queue = queue if queue is not None else BuildQueue()

        self._hex_sphere: HexSphere | None = None
        self._wireframe: LineMesh | None = None
        self._wireframe_visible = False

        self._border_mesh: LineMesh | None = None
        self._border_generation = 0

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def hex_sphere(self) -> HexSphere | None:
        return self._hex_sphere

    @property
    def wireframe(self) -> LineMesh | None:
        return self._wireframe

    @property
    def wireframe_visible(self) -> bool:
        return self._wireframe_visible

    @property
    def border_mesh(self) -> LineMesh | None:
        return self._border_mesh

    # ------------------------------------------------------------------
    # Hex grid
    # ------------------------------------------------------------------

    def apply_hex_grid(self, config: HexGridConfig) -> HexSphere | None:
        """Build (or reuse) the tiling for ``config``.

        Nothing is built unless the grid is enabled or its wireframe is
        shown. An existing sphere with the same radius and depth is reused;
        otherwise a new one replaces it.
        """
        if not (config.enabled or config.show_wireframe):
            return self._hex_sphere

        current = self._hex_sphere
        if (
            current is None
            or current.radius != config.radius
            or current.subdivisions != config.subdivisions
        ):
            sphere = HexSphere(config.radius, config.subdivisions)
            wireframe = sphere.create_wireframe_mesh(config.wireframe_color)
            # Swap only once the new build is complete
            self._hex_sphere = sphere
            self._wireframe = wireframe
            if self._wireframe_visible:
                self.sink.attach(WIREFRAME_MESH_NAME, wireframe)

            stats = sphere.get_stats()
            logger.info(
                "Hex grid created: %d tiles (%d hexagons, %d pentagons)",
                stats["total"], stats["hexagons"], stats["pentagons"],
            )
        elif (
            self._wireframe is not None
            and self._wireframe.color != as_rgba(config.wireframe_color)
        ):
            self._wireframe = current.create_wireframe_mesh(config.wireframe_color)
            if self._wireframe_visible:
                self.sink.attach(WIREFRAME_MESH_NAME, self._wireframe)

        if config.show_wireframe:
            self.set_wireframe_visible(True)
        return self._hex_sphere

    def set_wireframe_visible(self, visible: bool) -> None:
        """Show or hide the tile wireframe (no-op before the grid exists)."""
        self._wireframe_visible = bool(visible)
        if self._wireframe is None:
            return
        if self._wireframe_visible:
            self.sink.attach(WIREFRAME_MESH_NAME, self._wireframe)
        else:
            self.sink.detach(WIREFRAME_MESH_NAME)

    # ------------------------------------------------------------------
    # Borders
    # ------------------------------------------------------------------

    def apply_borders(self, config: BordersConfig) -> BuildTask | None:
        """Schedule a border rebuild for ``config``.

        Disabled borders and documents that fail to load tear the layer
        down. Otherwise a build task is queued and returned; it runs on the
        next ``BuildQueue.run_pending``.
        """
        if not config.is_active:
            self.clear_borders()
            return None

        path = config.geojson.path
        try:
            document = self.repository.get(path)
        except (OSError, ValueError) as exc:
            logger.warning("Failed to load GeoJSON borders from %s: %s", path, exc)
            self.clear_borders()
            return None

        self._border_generation += 1
        options = BorderProjectionOptions.from_config(config)
        return self.queue.schedule(
            "borders",
            self._build_borders,
            document,
            options,
            self._border_generation,
        )

    def _build_borders(
        self,
        document: Any,
        options: BorderProjectionOptions,
        generation: int,
    ) -> LineMesh | None:
        mesh = create_border_lines(document, options)
        if generation != self._border_generation:
            logger.debug(
                "Discarding superseded border build (generation %d, current %d)",
                generation, self._border_generation,
            )
            return None

        self.sink.detach(BORDER_MESH_NAME)
        self._border_mesh = mesh
        if mesh.is_empty:
            logger.info("GeoJSON document has no drawable borders.")
        else:
            self.sink.attach(BORDER_MESH_NAME, mesh)
        return mesh

    def clear_borders(self) -> None:
        """Remove the border layer and void any pending border build."""
        self._border_generation += 1
        if self._border_mesh is not None:
            self.sink.detach(BORDER_MESH_NAME)
            self._border_mesh = None

    # ------------------------------------------------------------------
    # Whole config
    # ------------------------------------------------------------------

    def apply_config(self, config: GlobeConfig) -> BuildTask | None:
        """Apply both layers; returns the pending border task, if any."""
        self.apply_hex_grid(config.hex_grid)
        return self.apply_borders(config.borders)
