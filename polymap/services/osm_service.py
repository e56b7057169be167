"""OpenStreetMap data loading: XML parsing and Overpass download."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

import httpx

from ..config import DEFAULT_OVERPASS_URL
from ..exceptions import DownloadError, FeatureDataError
from ..models.features import Building, FeatureSet, MapNode, Place, Road, WaterBody, Waterway
from ..models.geo import BoundingBoxGeo
from .cache_service import CacheService

logger = logging.getLogger(__name__)

# Waterways are drawn at least this wide, whatever their width tag says
WATERWAY_MIN_WIDTHS = {
    "river": 4.0,
    "stream": 2.0,
    "canal": 3.0,
}
DEFAULT_WATERWAY_MIN_WIDTH = 1.5


def cache_key(bbox: BoundingBoxGeo) -> str:
    """Cache file name for a downloaded box."""
    return (
        f"osm_{bbox.south:.5f}_m{abs(bbox.west):.5f}"
        f"_{bbox.north:.5f}_m{abs(bbox.east):.5f}.osm"
    )


def waterway_width(category: str, width_tag: Optional[str]) -> float:
    """Stroke width for a waterway from its ``width`` tag and category minimum."""
    width = 1.0
    if width_tag:
        try:
            width = float(width_tag)
        except ValueError:
            logger.debug("Ignoring unparseable waterway width %r", width_tag)
    return max(width, WATERWAY_MIN_WIDTHS.get(category, DEFAULT_WATERWAY_MIN_WIDTH))


class OSMService:
    """Service for loading OpenStreetMap vector data."""

    def __init__(
        self,
        cache: Optional[CacheService] = None,
        overpass_url: str = DEFAULT_OVERPASS_URL,
        timeout: float = 120.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Args:
            cache: Disk cache for downloads; downloads are not cached when unset.
            overpass_url: Overpass ``map`` endpoint.
            timeout: HTTP timeout in seconds.
            client: HTTP client to use instead of creating one.
        """
        self.cache = cache
        self.overpass_url = overpass_url
        self._client = client or httpx.Client(timeout=timeout, follow_redirects=True)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fetch(self, bbox: BoundingBoxGeo) -> FeatureSet:
        """Download (or read from cache) and parse all data in a box."""
        if self.cache is None:
            return self.parse(self.download(bbox))
        data = self.cache.get_or_fetch(cache_key(bbox), lambda: self.download(bbox))
        return self.parse(data)

    def download(self, bbox: BoundingBoxGeo) -> bytes:
        """Raw OSM XML for a box from the Overpass API.

        Raises:
            DownloadError: On transport errors and non-success responses.
        """
        url = f"{self.overpass_url}?bbox={bbox.to_overpass_bbox()}"
        logger.info("Downloading OSM data from %s", url)
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DownloadError(f"Failed to download OSM data from {url}: {e}") from e
        logger.info("Downloaded %d bytes", len(response.content))
        return response.content

    def load(self, path: Union[str, Path]) -> FeatureSet:
        """Parse a local ``.osm`` file."""
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FeatureDataError(f"Cannot read OSM file {path}: {e}") from e
        return self.parse(data)

    def parse(self, data: bytes) -> FeatureSet:
        """Parse OSM XML into a feature set.

        Ways are classified by the first matching tag: ``highway``, then
        ``waterway``, then ``natural=water`` / ``landuse=reservoir``, then
        ``building``. Other ways are ignored.

        Raises:
            FeatureDataError: If the data is not well-formed XML.
        """
        try:
            root = ET.fromstring(data)
        except ET.ParseError as e:
            raise FeatureDataError(f"Invalid OSM XML: {e}") from e

        features = FeatureSet()
        for element in root:
            if element.tag == "node":
                self._parse_node(element, features)
            elif element.tag == "way":
                self._parse_way(element, features)

        logger.info("Parsed OSM data: %s", features.summary())
        return features

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    @staticmethod
    def _tags(element: ET.Element) -> dict[str, str]:
        return {
            tag.get("k"): tag.get("v", "")
            for tag in element.findall("tag")
            if tag.get("k") is not None
        }

    def _parse_node(self, element: ET.Element, features: FeatureSet) -> None:
        try:
            node_id = int(element.get("id"))
            lat = float(element.get("lat"))
            lon = float(element.get("lon"))
        except (TypeError, ValueError):
            return

        tags = self._tags(element)
        name = tags.get("name")
        features.nodes[node_id] = MapNode(id=node_id, lat=lat, lon=lon, name=name)
        if "place" in tags and name:
            features.add(Place(lat=lat, lon=lon, name=name, category=tags["place"]))

    def _parse_way(self, element: ET.Element, features: FeatureSet) -> None:
        node_ids = []
        for nd in element.findall("nd"):
            try:
                node_ids.append(int(nd.get("ref")))
            except (TypeError, ValueError):
                continue
        node_ids = tuple(node_ids)

        tags = self._tags(element)
        name = tags.get("name")

        if "highway" in tags:
            features.add(
                Road(
                    node_ids=node_ids,
                    category=tags["highway"],
                    name=name,
                    ref=tags.get("ref"),
                    junction=tags.get("junction"),
                )
            )
        elif "waterway" in tags:
            category = tags["waterway"]
            features.add(
                Waterway(
                    node_ids=node_ids,
                    category=category,
                    name=name,
                    width=waterway_width(category, tags.get("width")),
                )
            )
        elif tags.get("natural") == "water" or tags.get("landuse") == "reservoir":
            category = tags.get("natural", "reservoir")
            features.add(WaterBody(node_ids=node_ids, category=category, name=name))
        elif "building" in tags:
            features.add(Building(node_ids=node_ids, category=tags["building"], name=name))
