"""KML boundary reader."""

import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional, Union

from ..exceptions import BoundaryError
from ..models.geo import Polygon

logger = logging.getLogger(__name__)


def _local_name(tag: str) -> str:
    """Tag name without its ``{namespace}`` prefix."""
    return tag.rsplit("}", 1)[-1]


def _find_child(element: ET.Element, name: str) -> Optional[ET.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def parse_coordinates(text: str) -> list[tuple[float, float]]:
    """Parse a KML ``coordinates`` string into ``(lon, lat)`` pairs.

    Tuples are ``lon,lat[,alt]`` separated by whitespace; altitude is
    ignored.

    Raises:
        BoundaryError: If a tuple is malformed.
    """
    coordinates = []
    for token in text.split():
        parts = token.split(",")
        if len(parts) < 2:
            raise BoundaryError(f"Malformed coordinate tuple: {token!r}")
        try:
            coordinates.append((float(parts[0]), float(parts[1])))
        except ValueError as e:
            raise BoundaryError(f"Malformed coordinate tuple: {token!r}") from e
    return coordinates


class KmlService:
    """Reads the boundary polygon and display name from KML files.

    Namespaces are ignored, so KML 2.2, Google Earth extensions and plain
    un-namespaced files all parse the same way.
    """

    def parse_polygon(self, path: Union[str, Path]) -> Polygon:
        """Read the first polygon's outer ring from a KML file.

        Raises:
            BoundaryError: If the file cannot be read or holds no polygon
                coordinates.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise BoundaryError(f"Cannot read KML file {path}: {e}") from e
        return self.parse_polygon_bytes(data, source=str(path))

    def parse_polygon_bytes(self, data: bytes, source: str = "<bytes>") -> Polygon:
        root = self._parse_xml(data, source)

        for element in root.iter():
            if _local_name(element.tag) != "Polygon":
                continue
            outer = _find_child(element, "outerBoundaryIs")
            ring = _find_child(outer, "LinearRing") if outer is not None else None
            coords = _find_child(ring, "coordinates") if ring is not None else None
            if coords is None:
                continue

            coordinates = parse_coordinates(coords.text or "")
            if not coordinates:
                raise BoundaryError(f"Polygon in {source} has no coordinates")
            polygon = Polygon.from_lon_lat(coordinates)
            logger.info("Read boundary with %d points from %s", len(polygon), source)
            return polygon

        raise BoundaryError(f"No polygon found in {source}")

    def document_name(self, path: Union[str, Path]) -> str:
        """Name of the KML document, falling back to the file stem."""
        path = Path(path)
        try:
            root = self._parse_xml(path.read_bytes(), str(path))
        except (OSError, BoundaryError):
            return path.stem

        for element in root.iter():
            if _local_name(element.tag) in ("Document", "Placemark"):
                name = _find_child(element, "name")
                if name is not None and name.text and name.text.strip():
                    return name.text.strip()
        return path.stem

    @staticmethod
    def _parse_xml(data: bytes, source: str) -> ET.Element:
        try:
            return ET.fromstring(data)
        except ET.ParseError as e:
            raise BoundaryError(f"Invalid KML in {source}: {e}") from e
