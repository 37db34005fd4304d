import geopandas as gpd
import pytest
from shapely.geometry import MultiPoint, Point, Polygon, box

from nwis_map.models import RegionTransform
from nwis_map.shift import (
    CRSMismatchError,
    DegenerateReferenceError,
    RepositionError,
    apply_transform,
    reposition,
    reposition_frame,
)

# irregular so rotation / mirroring mistakes show up
KITE = Polygon([(0, 0), (4, 1), (5, 4), (1, 3), (0, 0)])


def _extent(geom):
    minx, miny, maxx, maxy = geom.bounds
    return max(maxx - minx, maxy - miny)


def test_unit_square_example():
    square = box(-1, -1, 1, 1)
    out = reposition(square, scale=0.5, shift=(10, 0), rotation=0)
    assert out.bounds == pytest.approx((9.5, -0.5, 10.5, 0.5))
    assert out.centroid.x == pytest.approx(10.0)
    assert out.centroid.y == pytest.approx(0.0)


def test_identity_parameters_leave_geometry_unchanged():
    out = reposition(KITE, scale=1, shift=(0, 0), rotation=0)
    assert out.equals_exact(KITE, 1e-9)


@pytest.mark.parametrize("rotation", [0, 35, -50, 90, 180])
@pytest.mark.parametrize("scale", [0.47, 1.0, 2.5])
def test_shift_is_absolute_offset_of_reference_centroid(rotation, scale):
    anchor = KITE.centroid
    out = reposition(KITE, scale=scale, shift=(3, -2), rotation=rotation, shift_unit=10)
    assert out.centroid.x == pytest.approx(anchor.x + 30, abs=1e-9)
    assert out.centroid.y == pytest.approx(anchor.y - 20, abs=1e-9)


@pytest.mark.parametrize("scale", [0.25, 1.5, 4.0])
def test_larger_bbox_side_scales_by_factor(scale):
    out = reposition(KITE, scale=scale, shift=(7, 7))
    assert _extent(out) == pytest.approx(scale * _extent(KITE))


def test_rotated_reference_sets_the_scale_baseline():
    rect = box(0, 0, 2, 1)
    rotated_extent = 3 / 2 ** 0.5
    out = reposition(rect, scale=0.5, rotation=45)
    assert _extent(out) == pytest.approx(0.5 * rotated_extent)


def test_rotation_0_and_360_agree():
    a = reposition(KITE, scale=0.8, shift=(1, 2), rotation=0)
    b = reposition(KITE, scale=0.8, shift=(1, 2), rotation=360)
    assert a.equals_exact(b, 1e-9)


def test_positive_rotation_is_clockwise():
    ref = box(-1, -1, 1, 1)
    out = reposition(Point(1, 0), ref, rotation=90)
    assert out.x == pytest.approx(0.0, abs=1e-12)
    assert out.y == pytest.approx(-1.0)


def test_points_follow_polygon_vertices():
    params = RegionTransform(scale=0.47, shift=(9, -46.5), rotation=-50)
    vertices = [Point(xy) for xy in KITE.exterior.coords[:-1]]
    pts = gpd.GeoSeries(vertices)

    moved_poly = apply_transform(KITE, KITE, params)
    moved_pts = apply_transform(pts, KITE, params)

    for got, want in zip(moved_pts, moved_poly.exterior.coords[:-1]):
        assert got.x == pytest.approx(want[0])
        assert got.y == pytest.approx(want[1])


def test_points_anchor_on_reference_not_on_themselves():
    # a single point has no extent; the outline supplies the baseline
    out = reposition(Point(2, 2), KITE, scale=2.0)
    anchor = KITE.centroid
    assert out.x == pytest.approx(anchor.x + 2 * (2 - anchor.x))
    assert out.y == pytest.approx(anchor.y + 2 * (2 - anchor.y))


def test_input_series_is_not_mutated():
    series = gpd.GeoSeries([KITE, box(10, 10, 11, 11)], crs="EPSG:3857")
    before = series.copy()
    out = reposition(series, scale=0.5, shift=(1, 1), rotation=20)
    assert out is not series
    assert series.geom_equals(before).all()
    assert out.crs == series.crs


def test_frame_keeps_columns_and_takes_ids():
    frame = gpd.GeoDataFrame(
        {"region_id": ["X"], "pop": [5]}, geometry=[KITE], crs="EPSG:3857"
    )
    params = RegionTransform(scale=0.5, shift=(1, 0), shift_unit=100)
    out = reposition_frame(frame, frame.geometry, params, ids=["AK"])
    assert list(out["region_id"]) == ["AK"]
    assert list(out["pop"]) == [5]
    assert list(frame["region_id"]) == ["X"]
    assert out.geometry.iloc[0].centroid.x == pytest.approx(KITE.centroid.x + 100)


def test_frame_id_count_must_match():
    frame = gpd.GeoDataFrame(geometry=[KITE, KITE])
    with pytest.raises(ValueError):
        reposition_frame(frame, KITE, RegionTransform(scale=1), ids=["A"])


def test_crs_override():
    series = gpd.GeoSeries([KITE], crs="EPSG:3857")
    out = reposition(series, crs="EPSG:32633")
    assert out.crs.to_epsg() == 32633


@pytest.mark.parametrize(
    "reference",
    [Point(1, 1), MultiPoint([(1, 1), (1, 1)]), Polygon(), gpd.GeoSeries([], dtype="geometry")],
)
def test_degenerate_reference_raises(reference):
    with pytest.raises(DegenerateReferenceError):
        reposition(KITE, reference, scale=0.5)


def test_crs_mismatch_raises():
    geom = gpd.GeoSeries([KITE], crs="EPSG:3857")
    ref = gpd.GeoSeries([KITE], crs="EPSG:4326")
    with pytest.raises(CRSMismatchError):
        reposition(geom, ref)


def test_non_positive_scale_rejected():
    with pytest.raises(RepositionError):
        reposition(KITE, scale=0)
