"""Shared test fixtures."""

import pytest
from PIL import Image

from polymap.models.features import FeatureSet
from polymap.models.geo import Polygon
from polymap.models.settings import PageSettings, RenderSettings
from polymap.services.osm_service import OSMService

SQUARE_KML = """<?xml version="1.0" encoding="UTF-8"?>
<kml xmlns="http://www.opengis.net/kml/2.2">
  <Document>
    <name>Test Square</name>
    <Placemark>
      <name>Boundary</name>
      <Polygon>
        <outerBoundaryIs>
          <LinearRing>
            <coordinates>
              0.0,0.0,0 0.01,0.0,0 0.01,0.01,0 0.0,0.01,0 0.0,0.0,0
            </coordinates>
          </LinearRing>
        </outerBoundaryIs>
      </Polygon>
    </Placemark>
  </Document>
</kml>
"""

# A north-south primary road through the middle of the square, a lake,
# a stream, a building and a village.
SAMPLE_OSM = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6">
  <node id="1" lat="0.002" lon="0.005"/>
  <node id="2" lat="0.004" lon="0.005"/>
  <node id="3" lat="0.006" lon="0.005"/>
  <node id="4" lat="0.008" lon="0.005"/>
  <node id="10" lat="0.0065" lon="0.0065"/>
  <node id="11" lat="0.0065" lon="0.0090"/>
  <node id="12" lat="0.0090" lon="0.0090"/>
  <node id="13" lat="0.0090" lon="0.0065"/>
  <node id="20" lat="0.001" lon="0.001"/>
  <node id="21" lat="0.003" lon="0.002"/>
  <node id="30" lat="0.0020" lon="0.0070"/>
  <node id="31" lat="0.0020" lon="0.0072"/>
  <node id="32" lat="0.0022" lon="0.0072"/>
  <node id="33" lat="0.0022" lon="0.0070"/>
  <node id="40" lat="0.0070" lon="0.0015">
    <tag k="place" v="village"/>
    <tag k="name" v="Smallville"/>
  </node>
  <way id="100">
    <nd ref="1"/><nd ref="2"/><nd ref="3"/><nd ref="4"/>
    <tag k="highway" v="primary"/>
    <tag k="name" v="Main Street"/>
  </way>
  <way id="101">
    <nd ref="10"/><nd ref="11"/><nd ref="12"/><nd ref="13"/><nd ref="10"/>
    <tag k="natural" v="water"/>
    <tag k="name" v="Mirror Lake"/>
  </way>
  <way id="102">
    <nd ref="20"/><nd ref="21"/>
    <tag k="waterway" v="stream"/>
  </way>
  <way id="103">
    <nd ref="30"/><nd ref="31"/><nd ref="32"/><nd ref="33"/><nd ref="30"/>
    <tag k="building" v="yes"/>
  </way>
</osm>
"""

EMPTY_OSM = """<?xml version="1.0" encoding="UTF-8"?>
<osm version="0.6"></osm>
"""


@pytest.fixture
def square_polygon():
    """0.01 degree square just north-east of (0, 0)."""
    return Polygon.from_lon_lat([(0.0, 0.0), (0.01, 0.0), (0.01, 0.01), (0.0, 0.01)])


@pytest.fixture
def small_page():
    """Portrait page small enough to keep render tests fast."""
    return PageSettings(width=500, height=650)


@pytest.fixture
def small_settings(small_page):
    return RenderSettings(page=small_page)


@pytest.fixture
def sample_osm_bytes():
    return SAMPLE_OSM.encode("utf-8")


@pytest.fixture
def sample_features(sample_osm_bytes) -> FeatureSet:
    return OSMService().parse(sample_osm_bytes)


@pytest.fixture
def square_kml(tmp_path):
    path = tmp_path / "square.kml"
    path.write_text(SQUARE_KML)
    return path


@pytest.fixture
def sample_osm_file(tmp_path, sample_osm_bytes):
    path = tmp_path / "sample.osm"
    path.write_bytes(sample_osm_bytes)
    return path


@pytest.fixture
def solid_red_image():
    """64x64 solid red RGBA image."""
    return Image.new("RGBA", (64, 64), (255, 0, 0, 255))


@pytest.fixture
def empty_osm_file(tmp_path):
    path = tmp_path / "empty.osm"
    path.write_text(EMPTY_OSM)
    return path


@pytest.fixture
def write_square_kml():
    """Write a 0.01 degree square KML with its south-west corner at (lon, lat)."""

    def write(path, lon=0.0, lat=0.0):
        text = SQUARE_KML.replace(
            "0.0,0.0,0 0.01,0.0,0 0.01,0.01,0 0.0,0.01,0 0.0,0.0,0",
            " ".join(
                f"{x},{y},0"
                for x, y in [(lon, lat), (lon + 0.01, lat), (lon + 0.01, lat + 0.01), (lon, lat + 0.01), (lon, lat)]
            ),
        )
        path.write_text(text)
        return path

    return write
