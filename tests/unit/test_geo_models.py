"""Tests for polymap.models.geo and polymap.utils.geo_utils."""

import math

import pytest
from pydantic import ValidationError

from polymap.models.geo import BoundingBoxGeo, GeoPoint, Polygon
from polymap.utils.geo_utils import bbox_extent_meters, geo_to_pixel, longitude_correction, pixel_to_geo


@pytest.fixture
def bbox():
    return BoundingBoxGeo(north=10.0, south=0.0, east=20.0, west=0.0)


class TestBoundingBoxGeo:
    def test_dimensions(self, bbox):
        assert bbox.width == 20.0
        assert bbox.height == 10.0
        assert bbox.center == (5.0, 10.0)
        assert bbox.mean_latitude == 5.0

    def test_pad_is_proportional(self, bbox):
        padded = bbox.pad(0.1)
        assert padded.north == pytest.approx(11.0)
        assert padded.south == pytest.approx(-1.0)
        assert padded.east == pytest.approx(22.0)
        assert padded.west == pytest.approx(-2.0)

    def test_pad_returns_new_box(self, bbox):
        bbox.pad(0.5)
        assert bbox.north == 10.0

    def test_frozen(self, bbox):
        with pytest.raises(ValidationError):
            bbox.north = 5.0

    def test_expanded_for_render(self, bbox):
        expanded = bbox.expanded_for_render(0.1, 0.5)
        # 0.1 then 0.5 of the already padded size: 10 -> 12 -> 24
        assert expanded.height == pytest.approx(24.0)
        assert expanded.width == pytest.approx(48.0)
        assert expanded.center == pytest.approx(bbox.center)

    def test_expanded_for_render_zero_extent(self):
        point = BoundingBoxGeo(north=1.0, south=1.0, east=2.0, west=2.0)
        expanded = point.expanded_for_render()
        assert expanded.width > 0
        assert expanded.height > 0

    def test_contains(self, bbox):
        assert bbox.contains(5.0, 5.0)
        assert bbox.contains(10.0, 20.0)
        assert not bbox.contains(11.0, 5.0)

    def test_overpass_order(self, bbox):
        assert bbox.to_overpass_bbox() == "0.0,0.0,20.0,10.0"


class TestPolygon:
    def test_from_lon_lat_order(self):
        polygon = Polygon.from_lon_lat([(10.0, 50.0), (11.0, 50.0), (11.0, 51.0)])
        assert polygon.points[0] == GeoPoint(lat=50.0, lon=10.0)

    def test_closing_point_dropped(self):
        polygon = Polygon.from_lon_lat([(0, 0), (1, 0), (1, 1), (0, 0)])
        assert len(polygon) == 3

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            Polygon(())

    def test_single_point_accepted(self):
        polygon = Polygon.from_lon_lat([(3.0, 4.0)])
        assert len(polygon) == 1
        assert polygon.is_degenerate

    def test_collinear_is_degenerate(self):
        assert Polygon.from_lon_lat([(0, 0), (1, 1), (2, 2)]).is_degenerate

    def test_signed_area_orientation(self):
        ccw = Polygon.from_lon_lat([(0, 0), (1, 0), (1, 1), (0, 1)])
        cw = Polygon.from_lon_lat([(0, 0), (0, 1), (1, 1), (1, 0)])
        assert ccw.signed_area() == pytest.approx(1.0)
        assert cw.signed_area() == pytest.approx(-1.0)
        assert not ccw.is_degenerate

    def test_bounding_box(self):
        polygon = Polygon.from_lon_lat([(0, 0), (2, -1), (1, 3)])
        box = polygon.bounding_box()
        assert (box.north, box.south, box.east, box.west) == (3, -1, 2, 0)

    def test_iteration(self):
        polygon = Polygon.from_lon_lat([(0, 0), (1, 0), (1, 1)])
        assert [p.lon for p in polygon] == [0, 1, 1]


class TestGeoUtils:
    def test_longitude_correction(self):
        box = BoundingBoxGeo(north=61.0, south=59.0, east=1.0, west=0.0)
        assert longitude_correction(box) == pytest.approx(0.5)

    def test_pixel_round_trip(self, bbox):
        x, y = geo_to_pixel(7.5, 3.25, bbox, 0.8, 100.0)
        assert (x, y) == pytest.approx((600.0, 675.0))
        assert pixel_to_geo(x, y, bbox, 0.8, 100.0) == pytest.approx((7.5, 3.25))

    def test_extent_meters(self):
        box = BoundingBoxGeo(north=1.0, south=0.0, east=1.0, west=0.0)
        width, height = bbox_extent_meters(box)
        assert height == pytest.approx(111320)
        assert width == pytest.approx(111320 * math.cos(math.radians(0.5)))
