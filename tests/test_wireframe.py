"""Tests for the tile-boundary wireframe.

Validates the per-edge chord count N = max(2, ceil(θ/π · 8)), edge
wrap-around, and that every emitted point lies on the sphere.
"""

from __future__ import annotations

import numpy as np
import pytest

from sphere_engine.hexsphere import HexSphere
from sphere_engine.line_mesh import as_rgba
from sphere_engine.spherical import great_circle_angle
from sphere_engine.wireframe import (
    DEFAULT_WIREFRAME_COLOR,
    create_wireframe_mesh,
    tile_edges,
    wireframe_positions,
)


def _expected_segments(sphere: HexSphere) -> np.ndarray:
    """Chord count of every tile edge, tile by tile."""
    counts = []
    for tile in sphere.tiles:
        ends = np.roll(tile.corners, -1, axis=0)
        for a, b in zip(tile.corners, ends):
            counts.append(max(2, int(np.ceil(great_circle_angle(a, b) / np.pi * 8))))
    return np.array(counts)


class TestWireframe:
    """Test suite for the great-circle tile wireframe."""

    def test_depth_zero_segment_count(self) -> None:
        """12 pentagons → 60 edges (shared edges drawn twice), 2 chords each."""
        sphere = HexSphere(radius=1.0, subdivisions=0)
        mesh = sphere.create_wireframe_mesh()
        assert mesh.num_segments == 60 * 2
        assert mesh.num_vertices == 2 * mesh.num_segments

    @pytest.mark.parametrize("fixture_name", ["sphere_d2", "sphere_d3"])
    def test_segment_count_matches_formula(
        self, fixture_name: str, request: pytest.FixtureRequest
    ) -> None:
        sphere = request.getfixturevalue(fixture_name)
        mesh = sphere.create_wireframe_mesh()
        assert mesh.num_segments == int(_expected_segments(sphere).sum())

    def test_edge_count_counts_shared_edges_twice(self, sphere_d2: HexSphere) -> None:
        starts, ends = tile_edges(sphere_d2.tiles)
        assert starts.shape == ends.shape == (2 * sphere_d2.neighbor_graph.edge_count, 3)

    def test_points_on_sphere(self) -> None:
        sphere = HexSphere(radius=2.5, subdivisions=2)
        points = sphere.create_wireframe_mesh().segments().reshape(-1, 3).astype(np.float64)
        np.testing.assert_allclose(np.linalg.norm(points, axis=1), 2.5, rtol=1e-6)

    def test_each_tile_outline_closes(self, sphere_d2: HexSphere) -> None:
        """A tile's chords run corner 0 → … → corner k−1 → corner 0."""
        counts = _expected_segments(sphere_d2)
        segments = sphere_d2.create_wireframe_mesh().segments().astype(np.float64)

        edge = 0
        offset = 0
        for tile in sphere_d2.tiles:
            n_chords = int(counts[edge:edge + tile.corner_count].sum())
            outline = segments[offset:offset + n_chords]
            np.testing.assert_allclose(outline[0, 0], tile.corners[0], atol=1e-6)
            np.testing.assert_allclose(outline[-1, 1], tile.corners[0], atol=1e-6)
            np.testing.assert_allclose(outline[:-1, 1], outline[1:, 0], atol=1e-6)
            edge += tile.corner_count
            offset += n_chords
        assert offset == segments.shape[0]

    def test_empty_tiles_give_empty_buffer(self) -> None:
        buf = wireframe_positions((), radius=1.0)
        assert buf.shape == (0,)
        assert buf.dtype == np.float32
        assert create_wireframe_mesh((), radius=1.0).is_empty

    def test_default_and_custom_color(self, sphere_d2: HexSphere) -> None:
        assert sphere_d2.create_wireframe_mesh().color == DEFAULT_WIREFRAME_COLOR
        assert sphere_d2.create_wireframe_mesh((1.0, 0.0, 0.0)).color == (1.0, 0.0, 0.0, 1.0)


class TestAsRgba:
    """Test suite for color normalization."""

    def test_rgb_gets_opaque_alpha(self) -> None:
        assert as_rgba((0, 1, 0)) == (0.0, 1.0, 0.0, 1.0)

    def test_rgba_unchanged(self) -> None:
        assert as_rgba([0.1, 0.2, 0.3, 0.4]) == (0.1, 0.2, 0.3, 0.4)

    @pytest.mark.parametrize("color", [(), (1.0,), (0.1, 0.2, 0.3, 0.4, 0.5)])
    def test_wrong_length_raises(self, color: tuple) -> None:
        with pytest.raises(ValueError, match="RGB or RGBA"):
            as_rgba(color)
