"""Tests for GeoJSON parsing and border projection.

Validates the lon/lat → XYZ convention, great-circle segmentation, ring
closure, tolerance of malformed input, and the empty-result behavior.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from geo_ingestion.borders import (
    BORDER_MESH_NAME,
    BorderProjectionOptions,
    create_border_lines,
    lonlat_to_xyz,
    path_connections,
    project_geometries,
)
from geo_ingestion.geojson import (
    CoordinatePath,
    LineString,
    MultiLineString,
    MultiPolygon,
    Polygon,
    load_geojson,
    parse_geometries,
    parse_geometry,
)
from sphere_engine.constants import BordersConfig, GeoJsonSourceConfig


# ===================================================================
# FIXTURES
# ===================================================================


def _feature(geometry: dict | None) -> dict:
    return {"type": "Feature", "properties": {}, "geometry": geometry}


def _collection(*geometries: dict | None) -> dict:
    return {"type": "FeatureCollection", "features": [_feature(g) for g in geometries]}


@pytest.fixture
def options() -> BorderProjectionOptions:
    """Unit sphere, no altitude, 5° chords."""
    return BorderProjectionOptions(radius=1.0, max_segment_angle_deg=5.0)


@pytest.fixture
def equator_segment() -> dict:
    return _collection({"type": "LineString", "coordinates": [[0.0, 0.0], [10.0, 0.0]]})


# ===================================================================
# COORDINATE CONVERSION
# ===================================================================


class TestLonLatToXYZ:
    """Test suite for the Y-up lon/lat convention."""

    @pytest.mark.parametrize(
        "lon, lat, expected",
        [
            (0.0, 0.0, [1.0, 0.0, 0.0]),
            (90.0, 0.0, [0.0, 0.0, 1.0]),
            (180.0, 0.0, [-1.0, 0.0, 0.0]),
            (0.0, 90.0, [0.0, 1.0, 0.0]),
            (0.0, -90.0, [0.0, -1.0, 0.0]),
        ],
    )
    def test_cardinal_points(self, lon: float, lat: float, expected: list[float]) -> None:
        np.testing.assert_allclose(lonlat_to_xyz(lon, lat, 1.0), expected, atol=1e-15)

    def test_radius_scales(self) -> None:
        p = lonlat_to_xyz(37.0, -12.0, 3.5)
        assert np.linalg.norm(p) == pytest.approx(3.5)

    def test_flip_then_offset(self) -> None:
        """Flip negates before the offset: λ' = −λ + offset."""
        flipped = lonlat_to_xyz(30.0, 10.0, 1.0, lon_offset=90.0, flip_longitude=True)
        direct = lonlat_to_xyz(60.0, 10.0, 1.0)
        np.testing.assert_allclose(flipped, direct, atol=1e-12)

    def test_flip_and_offset_compose(self) -> None:
        np.testing.assert_allclose(
            lonlat_to_xyz(10.0, 0.0, 1.0, lon_offset=5.0, flip_longitude=True),
            lonlat_to_xyz(-5.0, 0.0, 1.0),
            atol=1e-12,
        )

    def test_offset_equals_shifted_longitude(self) -> None:
        lon = np.array([-170.0, -20.0, 45.0, 179.0])
        lat = np.array([5.0, -60.0, 33.0, 0.0])
        shifted = lonlat_to_xyz(lon, lat, 1.0, lon_offset=25.0)
        direct = lonlat_to_xyz(lon + 25.0, lat, 1.0)
        np.testing.assert_allclose(shifted, direct, atol=1e-12)

    def test_broadcast_shape(self) -> None:
        out = lonlat_to_xyz(np.zeros(7), np.zeros(7), 1.0)
        assert out.shape == (7, 3)


# ===================================================================
# PARSING
# ===================================================================


class TestParseGeometry:
    """Test suite for the GeoJSON geometry variants."""

    def test_linestring(self) -> None:
        geom = parse_geometry({"type": "LineString", "coordinates": [[0, 0], [1, 2]]})
        assert isinstance(geom, LineString)
        assert geom.kind == "LineString"
        np.testing.assert_array_equal(geom.coordinates, [[0.0, 0.0], [1.0, 2.0]])

    def test_polygon_paths_closed(self) -> None:
        geom = parse_geometry(
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1]], [[0.2, 0.2], [0.4, 0.2]]]}
        )
        assert isinstance(geom, Polygon)
        assert [p.closed for p in geom.paths()] == [True, True]

    def test_multilinestring_paths_open(self) -> None:
        geom = parse_geometry(
            {"type": "MultiLineString", "coordinates": [[[0, 0], [1, 0]], [[2, 0], [3, 0]]]}
        )
        assert isinstance(geom, MultiLineString)
        assert [p.closed for p in geom.paths()] == [False, False]

    def test_multipolygon_flattens_rings(self) -> None:
        geom = parse_geometry(
            {
                "type": "MultiPolygon",
                "coordinates": [
                    [[[0, 0], [1, 0], [1, 1]]],
                    [[[5, 5], [6, 5], [6, 6]], [[5.2, 5.2], [5.4, 5.2], [5.4, 5.4]]],
                ],
            }
        )
        assert isinstance(geom, MultiPolygon)
        assert len(geom.paths()) == 3

    @pytest.mark.parametrize(
        "obj",
        [
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "MultiPoint", "coordinates": [[0, 0], [1, 1]]},
            {"type": "GeometryCollection", "geometries": []},
            {"type": "Circle", "coordinates": [0, 0]},
            {"coordinates": [[0, 0], [1, 1]]},
            None,
            "LineString",
        ],
    )
    def test_unsupported_returns_none(self, obj) -> None:
        assert parse_geometry(obj) is None

    def test_malformed_positions_become_nan(self) -> None:
        geom = parse_geometry(
            {"type": "LineString", "coordinates": [[0, 0], ["a", 1], [5], None, [2, 2, 100]]}
        )
        coords = geom.coordinates
        assert coords.shape == (5, 2)
        assert np.isnan(coords[1:4]).all()
        np.testing.assert_array_equal(coords[4], [2.0, 2.0])

    def test_missing_coordinates_gives_empty_chain(self) -> None:
        geom = parse_geometry({"type": "LineString"})
        assert geom.coordinates.shape == (0, 2)


class TestParseGeometries:
    """Test suite for document-level parsing."""

    def test_feature_collection(self) -> None:
        doc = _collection(
            {"type": "LineString", "coordinates": [[0, 0], [1, 1]]},
            None,
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1]]]},
        )
        kinds = [g.kind for g in parse_geometries(doc)]
        assert kinds == ["LineString", "Polygon"]

    def test_single_feature(self) -> None:
        doc = _feature({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})
        assert len(parse_geometries(doc)) == 1

    def test_bare_geometry(self) -> None:
        doc = {"type": "MultiLineString", "coordinates": [[[0, 0], [1, 1]]]}
        assert [g.kind for g in parse_geometries(doc)] == ["MultiLineString"]

    @pytest.mark.parametrize(
        "doc",
        [
            {},
            {"type": "FeatureCollection"},
            {"type": "FeatureCollection", "features": "nope"},
            {"type": "FeatureCollection", "features": [1, "x", None]},
            [],
            None,
        ],
    )
    def test_degenerate_documents_give_nothing(self, doc) -> None:
        assert parse_geometries(doc) == []


class TestLoadGeoJson:
    """Test suite for reading documents from disk."""

    def test_round_trip(self, tmp_path: Path, equator_segment: dict) -> None:
        path = tmp_path / "borders.geo.json"
        path.write_text(json.dumps(equator_segment), encoding="utf-8")
        assert load_geojson(path) == equator_segment

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_geojson(tmp_path / "absent.json")

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError):
            load_geojson(path)

    def test_non_object_root_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]", encoding="utf-8")
        with pytest.raises(ValueError, match="root must be an object"):
            load_geojson(path)

    def test_sample_document(self) -> None:
        sample = Path(__file__).parent.parent / "data" / "custom.geo.json"
        kinds = [g.kind for g in parse_geometries(load_geojson(sample))]
        assert kinds == ["LineString", "MultiLineString", "Polygon", "MultiPolygon"]


# ===================================================================
# CONNECTIONS AND PROJECTION
# ===================================================================


class TestPathConnections:
    """Test suite for per-path endpoint pairs."""

    def test_open_path(self) -> None:
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]])
        starts, ends, skipped = path_connections(CoordinatePath(coords, closed=False))
        assert starts.shape == (2, 2)
        np.testing.assert_array_equal(ends[-1], [2.0, 0.0])
        assert skipped == 0

    def test_closed_ring_adds_closing_connection(self) -> None:
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0]])
        starts, ends, _ = path_connections(CoordinatePath(coords, closed=True))
        assert starts.shape == (3, 2)
        np.testing.assert_array_equal(starts[-1], [1.0, 1.0])
        np.testing.assert_array_equal(ends[-1], [0.0, 0.0])

    @pytest.mark.parametrize("closed", [False, True])
    def test_short_paths_contribute_nothing(self, closed: bool) -> None:
        for coords in (np.zeros((0, 2)), np.array([[3.0, 4.0]])):
            starts, _, skipped = path_connections(CoordinatePath(coords, closed))
            assert starts.shape == (0, 2)
            assert skipped == 0

    def test_non_finite_connections_skipped(self) -> None:
        coords = np.array([[0.0, 0.0], [np.nan, np.nan], [2.0, 0.0], [3.0, np.inf], [4.0, 0.0]])
        starts, ends, skipped = path_connections(CoordinatePath(coords, closed=False))
        assert skipped == 4
        assert starts.shape == (0, 2)

    def test_only_touching_connections_skipped(self) -> None:
        coords = np.array([[0.0, 0.0], [1.0, 0.0], [np.nan, np.nan], [3.0, 0.0], [4.0, 0.0]])
        starts, ends, skipped = path_connections(CoordinatePath(coords, closed=False))
        assert skipped == 2
        np.testing.assert_array_equal(starts, [[0.0, 0.0], [3.0, 0.0]])
        np.testing.assert_array_equal(ends, [[1.0, 0.0], [4.0, 0.0]])


class TestBorderProjection:
    """Test suite for border line-list generation."""

    def test_ten_degrees_at_five_gives_two_segments(
        self, equator_segment: dict, options: BorderProjectionOptions
    ) -> None:
        mesh = create_border_lines(equator_segment, options)
        assert mesh.num_segments == 2
        points = mesh.segments().astype(np.float64)
        np.testing.assert_allclose(points[0, 0], [1.0, 0.0, 0.0], atol=1e-6)
        np.testing.assert_allclose(points[0, 1], lonlat_to_xyz(5.0, 0.0, 1.0), atol=1e-6)
        np.testing.assert_allclose(points[1, 1], lonlat_to_xyz(10.0, 0.0, 1.0), atol=1e-6)

    def test_points_on_projection_radius(self) -> None:
        doc = _collection({"type": "LineString", "coordinates": [[-40, 10], [60, 50], [120, -30]]})
        options = BorderProjectionOptions(radius=2.0, altitude=0.05, max_segment_angle_deg=1.0)
        mesh = create_border_lines(doc, options)
        radii = np.linalg.norm(mesh.segments().reshape(-1, 3), axis=1)
        np.testing.assert_allclose(radii, 2.05, rtol=1e-5)

    def test_chords_within_max_angle(self) -> None:
        doc = _collection({"type": "LineString", "coordinates": [[0, 0], [87, 33]]})
        options = BorderProjectionOptions(radius=1.0, max_segment_angle_deg=2.5)
        seg = create_border_lines(doc, options).segments().astype(np.float64)
        unit = seg / np.linalg.norm(seg, axis=2, keepdims=True)
        angles = np.degrees(np.arccos(np.clip(np.sum(unit[:, 0] * unit[:, 1], axis=1), -1, 1)))
        assert angles.max() <= 2.5 + 1e-3

    def test_polygon_closes(self, options: BorderProjectionOptions) -> None:
        doc = _collection({"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10]]]})
        seg = create_border_lines(doc, options).segments().astype(np.float64)
        np.testing.assert_allclose(seg[-1, 1], lonlat_to_xyz(0.0, 0.0, 1.0), atol=1e-6)
        np.testing.assert_allclose(seg[0, 0], lonlat_to_xyz(0.0, 0.0, 1.0), atol=1e-6)

    def test_repeated_closing_point_yields_point_chord(self, options: BorderProjectionOptions) -> None:
        """A ring that already repeats its first point emits a zero-length closing chord."""
        doc = _collection(
            {"type": "Polygon", "coordinates": [[[0, 0], [10, 0], [10, 10], [0, 0]]]}
        )
        seg = create_border_lines(doc, options).segments()
        np.testing.assert_allclose(seg[-1, 0], seg[-1, 1], atol=1e-7)

    def test_flip_offset_matches_transformed_input(self) -> None:
        coords = [[-30.0, 10.0], [15.0, 40.0], [60.0, -5.0]]
        flipped = BorderProjectionOptions(
            radius=1.0, lon_offset=45.0, flip_longitude=True, max_segment_angle_deg=3.0
        )
        plain = BorderProjectionOptions(radius=1.0, max_segment_angle_deg=3.0)
        transformed = [[-lon + 45.0, lat] for lon, lat in coords]

        a = create_border_lines(_collection({"type": "LineString", "coordinates": coords}), flipped)
        b = create_border_lines(
            _collection({"type": "LineString", "coordinates": transformed}), plain
        )
        np.testing.assert_allclose(a.positions, b.positions, atol=1e-6)

    def test_idempotent(self, options: BorderProjectionOptions) -> None:
        doc = _collection(
            {"type": "MultiPolygon", "coordinates": [[[[0, 0], [20, 0], [20, 20]]]]},
            {"type": "LineString", "coordinates": [[100, -10], [130, 20]]},
        )
        a = create_border_lines(doc, options)
        b = create_border_lines(doc, options)
        np.testing.assert_array_equal(a.positions, b.positions)

    def test_non_finite_coordinates_skipped_not_fatal(self, options: BorderProjectionOptions) -> None:
        doc = _collection(
            {"type": "LineString", "coordinates": [[0, 0], [10, 0], [None, 5], [20, 0], [30, 0]]}
        )
        mesh = create_border_lines(doc, options)
        assert mesh.num_segments == 4
        assert np.isfinite(mesh.positions).all()

    def test_oversized_integer_coordinate_skipped(self, options: BorderProjectionOptions) -> None:
        """An integer beyond float range drops only its own connections."""
        huge = "9" * 400
        doc = json.loads(
            '{"type": "LineString", '
            f'"coordinates": [[0, 0], [10, 0], [{huge}, 0], [20, 0]]}}'
        )
        mesh = create_border_lines(doc, options)
        assert mesh.num_segments == 2
        assert np.isfinite(mesh.positions).all()

    def test_unknown_types_ignored(self, options: BorderProjectionOptions) -> None:
        with_extras = _collection(
            {"type": "Point", "coordinates": [0, 0]},
            {"type": "LineString", "coordinates": [[0, 0], [10, 0]]},
            {"type": "Hexagon", "coordinates": [[0, 0], [1, 1]]},
            None,
        )
        mesh = create_border_lines(with_extras, options)
        assert mesh.num_segments == 2

    @pytest.mark.parametrize(
        "doc",
        [
            {"type": "FeatureCollection", "features": []},
            _collection({"type": "Point", "coordinates": [0, 0]}),
            _collection({"type": "LineString", "coordinates": [[5, 5]]}),
            {"type": "Polygon", "coordinates": []},
        ],
    )
    def test_nothing_drawable_gives_empty_mesh(
        self, doc: dict, options: BorderProjectionOptions
    ) -> None:
        mesh = create_border_lines(doc, options)
        assert mesh.is_empty
        assert mesh.positions.dtype == np.float32
        assert mesh.name == BORDER_MESH_NAME

    def test_segment_angle_clamped(self) -> None:
        """Requests below 0.1° behave exactly like 0.1°."""
        doc = _collection({"type": "LineString", "coordinates": [[0, 0], [1, 0]]})
        tiny = create_border_lines(doc, BorderProjectionOptions(radius=1.0, max_segment_angle_deg=0.001))
        floor = create_border_lines(doc, BorderProjectionOptions(radius=1.0, max_segment_angle_deg=0.1))
        assert tiny.num_segments == floor.num_segments == 10

    def test_coincident_points_one_chord(self, options: BorderProjectionOptions) -> None:
        doc = _collection({"type": "LineString", "coordinates": [[7, 7], [7, 7]]})
        assert create_border_lines(doc, options).num_segments == 1

    def test_project_geometries_direct(self, options: BorderProjectionOptions) -> None:
        geoms = [LineString(np.array([[0.0, 0.0], [0.0, 10.0]]))]
        buf = project_geometries(geoms, options)
        assert buf.size == 2 * 6


class TestBorderProjectionOptions:
    """Test suite for projection option validation."""

    @pytest.mark.parametrize(
        "radius, altitude",
        [(0.0, 0.0), (1.0, -1.0), (-2.0, 0.5), (np.nan, 0.0), (1.0, np.inf)],
    )
    def test_invalid_projection_radius_raises(self, radius: float, altitude: float) -> None:
        with pytest.raises(ValueError, match="Projection radius"):
            BorderProjectionOptions(radius=radius, altitude=altitude)

    def test_from_config(self) -> None:
        config = BordersConfig(
            enabled=True,
            lon_offset=12.0,
            flip_longitude=True,
            color=(0.1, 0.2, 0.3, 0.9),
            radius=2.0,
            altitude=0.01,
            max_segment_angle_deg=0.05,
            geojson=GeoJsonSourceConfig(enabled=True, path="x.json"),
        )
        options = BorderProjectionOptions.from_config(config)
        assert options.projection_radius == pytest.approx(2.01)
        assert options.lon_offset == 12.0
        assert options.flip_longitude is True
        assert options.max_segment_angle_rad == pytest.approx(np.radians(0.1))
        assert options.color == (0.1, 0.2, 0.3, 0.9)
