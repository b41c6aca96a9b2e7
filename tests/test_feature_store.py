from __future__ import annotations

from pathlib import Path

import pytest
from shapely.geometry import GeometryCollection, LineString, MultiLineString, Point

from streetview_app.config import FeatureSourceConfig, FieldCandidates
from streetview_app.io.feature_reader import parse_decimal
from streetview_app.map.feature_store import EMPTY_BOUNDS, GeoFeatureStore
from streetview_app.models.features import Bounds, Node, Way
from streetview_app.models.load_result import LoadStatus


def test_load_points_assigns_dense_ids_in_order(tmp_path: Path, write_points):
    coords = [(114.1, 30.1), (114.2, 30.2), (114.3, 30.3), (114.4, 30.4)]
    source = write_points(tmp_path / "nodes.shp", coords)

    store = GeoFeatureStore()
    result = store.load_points(source)

    assert result.status == LoadStatus.SUCCESS
    assert result.loaded == 4
    assert [node.id for node in store.nodes] == [0, 1, 2, 3]
    assert [(node.lon, node.lat) for node in store.nodes] == pytest.approx(coords)
    assert all(node.image_path is None for node in store.nodes)


def test_attribute_fields_take_priority_over_geometry(tmp_path: Path, write_points):
    source = write_points(
        tmp_path / "nodes.shp",
        [(0.0, 0.0), (1.0, 1.0)],
        LON=[120.5, 121.5],
        Latitude=[30.25, 31.25],
    )

    store = GeoFeatureStore()
    store.load_points(source)

    assert (store.nodes[0].lon, store.nodes[0].lat) == pytest.approx((120.5, 30.25))
    assert (store.nodes[1].lon, store.nodes[1].lat) == pytest.approx((121.5, 31.25))


def test_unparsable_field_falls_through_to_next_candidate(tmp_path: Path, write_points):
    source = write_points(
        tmp_path / "nodes.shp",
        [(1.0, 2.0)],
        longitude=["n/a"],
        x=["7.5"],
        lat=["bad"],
    )

    store = GeoFeatureStore()
    store.load_points(source)

    node = store.nodes[0]
    assert node.lon == pytest.approx(7.5)
    # No latitude candidate parses, so the geometry is used.
    assert node.lat == pytest.approx(2.0)


def test_field_candidates_are_configurable(tmp_path: Path, write_points):
    source = write_points(tmp_path / "nodes.shp", [(1.0, 2.0)], lon=[9.0], east=[50.0], north=[60.0])
    config = FeatureSourceConfig(fields=FieldCandidates(longitude=("east",), latitude=("north",)))

    store = GeoFeatureStore(config)
    store.load_points(source)

    assert (store.nodes[0].lon, store.nodes[0].lat) == pytest.approx((50.0, 60.0))


def test_non_point_records_are_skipped(tmp_path: Path, write_geometries):
    source = write_geometries(
        tmp_path / "mixed.geojson",
        [Point(1.0, 1.0), LineString([(0, 0), (1, 1)]), None, Point(2.0, 2.0)],
    )

    store = GeoFeatureStore()
    result = store.load_points(source)

    assert result.status == LoadStatus.PARTIAL
    assert result.loaded == 2
    assert result.skipped == 2
    assert [node.id for node in store.nodes] == [0, 1]
    assert (store.nodes[1].lon, store.nodes[1].lat) == pytest.approx((2.0, 2.0))


def test_missing_source_yields_empty_result(tmp_path: Path):
    store = GeoFeatureStore()
    store.nodes.append(Node(0, 1.0, 1.0))

    result = store.load_points(tmp_path / "absent.shp")

    assert result.status == LoadStatus.EMPTY
    assert not result.ok
    assert store.nodes == []


def test_missing_companion_file_aborts_point_load(tmp_path: Path, write_points):
    source = write_points(tmp_path / "nodes.shp", [(1.0, 1.0), (2.0, 2.0)])
    store = GeoFeatureStore()
    assert store.load_points(source).loaded == 2
    store.ways.append(Way(0, ((0.0, 0.0), (1.0, 1.0))))

    source.with_suffix(".dbf").unlink()
    result = store.load_points(source)

    assert result.status == LoadStatus.EMPTY
    assert "missing companion" in result.reasons[0]
    assert store.nodes == []
    assert len(store.ways) == 1


def test_unreadable_source_yields_empty_result(tmp_path: Path):
    source = tmp_path / "garbage.geojson"
    source.write_text("this is not geojson", encoding="utf-8")

    store = GeoFeatureStore()
    result = store.load_points(source)

    assert result.status == LoadStatus.EMPTY
    assert store.nodes == []


def test_projected_sources_are_reprojected_to_wgs84(tmp_path: Path, write_points):
    source = write_points(tmp_path / "mercator.shp", [(0.0, 0.0), (111_319.49079327357, 0.0)], crs="EPSG:3857")

    store = GeoFeatureStore()
    store.load_points(source)

    assert store.nodes[0].lon == pytest.approx(0.0, abs=1e-9)
    assert store.nodes[1].lon == pytest.approx(1.0, abs=1e-6)
    assert store.nodes[1].lat == pytest.approx(0.0, abs=1e-6)


def test_reprojection_can_be_disabled(tmp_path: Path, write_points):
    source = write_points(tmp_path / "mercator.shp", [(1000.0, 2000.0)], crs="EPSG:3857")

    store = GeoFeatureStore(FeatureSourceConfig(target_crs=None))
    store.load_points(source)

    assert (store.nodes[0].lon, store.nodes[0].lat) == pytest.approx((1000.0, 2000.0))


def test_load_lines_splits_multipart_geometries(tmp_path: Path, write_geometries):
    source = write_geometries(
        tmp_path / "roads.geojson",
        [
            LineString([(0, 0), (1, 0), (2, 1)]),
            MultiLineString([[(0, 1), (0, 2)], [(3, 3), (4, 4), (5, 5)]]),
            Point(9, 9),
        ],
    )

    store = GeoFeatureStore()
    result = store.load_lines(source)

    assert result.status == LoadStatus.PARTIAL
    assert result.loaded == 3
    assert [way.id for way in store.ways] == [0, 1, 2]
    assert store.ways[0].coordinates == ((0.0, 0.0), (1.0, 0.0), (2.0, 1.0))
    assert store.ways[2].coordinates == ((3.0, 3.0), (4.0, 4.0), (5.0, 5.0))


def test_collections_keep_only_line_parts(tmp_path: Path, write_geometries):
    source = write_geometries(
        tmp_path / "collection.geojson",
        [GeometryCollection([Point(0, 0), LineString([(1, 1), (2, 2)])])],
    )

    store = GeoFeatureStore()
    store.load_lines(source)

    assert len(store.ways) == 1
    assert store.ways[0].coordinates == ((1.0, 1.0), (2.0, 2.0))


def test_line_layers_accumulate_with_continuing_ids(tmp_path: Path, write_geometries):
    first = write_geometries(tmp_path / "a.geojson", [LineString([(0, 0), (1, 1)])])
    second = write_geometries(tmp_path / "b.geojson", [LineString([(2, 2), (3, 3)]), LineString([(4, 4), (5, 5)])])

    store = GeoFeatureStore()
    store.load_lines(first)
    store.load_lines(second)

    assert [way.id for way in store.ways] == [0, 1, 2]
    store.clear_lines()
    assert store.ways == []


def test_failed_line_load_leaves_ways_untouched(tmp_path: Path):
    store = GeoFeatureStore()
    store.ways.append(Way(0, ((0.0, 0.0), (1.0, 1.0))))

    result = store.load_lines(tmp_path / "absent.geojson")

    assert result.status == LoadStatus.EMPTY
    assert len(store.ways) == 1


def test_data_bounds_without_data_is_placeholder():
    store = GeoFeatureStore()
    assert store.data_bounds() == EMPTY_BOUNDS == Bounds(0.0, 0.0, 100.0, 100.0)


def test_data_bounds_adds_ten_percent_margin():
    store = GeoFeatureStore()
    store.nodes.extend([Node(0, 0.0, 0.0), Node(1, 10.0, 0.0)])
    store.ways.append(Way(0, ((0.0, -5.0), (10.0, 20.0))))

    bounds = store.data_bounds()

    assert bounds.min_x == pytest.approx(-1.0)
    assert bounds.max_x == pytest.approx(11.0)
    assert bounds.min_y == pytest.approx(-7.5)
    assert bounds.max_y == pytest.approx(22.5)
    for node in store.nodes:
        assert bounds.contains(node.lon, node.lat)


def test_data_bounds_pads_degenerate_extent():
    store = GeoFeatureStore()
    store.nodes.append(Node(0, 5.0, 5.0))

    bounds = store.data_bounds()

    assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == pytest.approx((4.999, 4.999, 5.001, 5.001))
    assert bounds.width > 0 and bounds.height > 0


def test_data_bounds_from_ways_only():
    store = GeoFeatureStore()
    store.ways.append(Way(0, ((0.0, 0.0), (10.0, 0.0))))

    bounds = store.data_bounds()

    assert bounds.min_x == pytest.approx(-1.0)
    assert bounds.max_x == pytest.approx(11.0)
    assert bounds.height == pytest.approx(0.002)


def test_node_lookup_and_image_nodes(tmp_path: Path):
    image = tmp_path / "1.0_1.0.jpg"
    image.write_bytes(b"")
    store = GeoFeatureStore()
    store.nodes.extend([Node(0, 0.0, 0.0), Node(1, 1.0, 1.0, image_path=image, match_score=0.0)])

    assert store.node_by_id(1) is store.nodes[1]
    assert store.node_by_id(7) is None
    assert store.image_nodes() == [store.nodes[1]]

    image.unlink()
    assert store.image_nodes() == []


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("114.38663", 114.38663),
        (" -30.5 ", -30.5),
        ("+.5", 0.5),
        ("7.", 7.0),
        ("1e-05", 1e-05),
        ("1_000", None),
        ("1,5", None),
        ("١٢", None),
        ("１.０", None),
        ("nan", None),
        ("inf", None),
        ("1e999", None),
        ("", None),
    ],
)
def test_parse_decimal_accepts_plain_decimals_only(text, expected):
    assert parse_decimal(text) == expected


def test_digit_separators_in_fields_are_not_numbers(tmp_path: Path, write_points):
    source = write_points(tmp_path / "nodes.shp", [(3.0, 4.0)], lon=["1_000"], lat=["2_0"])

    store = GeoFeatureStore()
    store.load_points(source)

    assert (store.nodes[0].lon, store.nodes[0].lat) == pytest.approx((3.0, 4.0))
