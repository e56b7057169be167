"""Geographic primitives: points, boundary rings and bounding boxes."""

import math
from dataclasses import dataclass
from typing import Iterable

from pydantic import BaseModel, ConfigDict, Field

# Padding applied to a box side that has no extent at all (a point or a
# straight north-south / east-west line), in degrees.
ZERO_EXTENT_PADDING = 0.001


@dataclass(frozen=True)
class GeoPoint:
    """A WGS84 coordinate in degrees."""

    lat: float
    lon: float


class BoundingBoxGeo(BaseModel):
    """Geographic bounding box.

    Padding operations always return a new box; the original is never
    modified.
    """

    model_config = ConfigDict(frozen=True)

    north: float = Field(..., description="Northern latitude boundary")
    south: float = Field(..., description="Southern latitude boundary")
    east: float = Field(..., description="Eastern longitude boundary")
    west: float = Field(..., description="Western longitude boundary")

    @property
    def width(self) -> float:
        """Width in degrees longitude."""
        return self.east - self.west

    @property
    def height(self) -> float:
        """Height in degrees latitude."""
        return self.north - self.south

    @property
    def center(self) -> tuple[float, float]:
        """Return center point (lat, lon)."""
        return ((self.north + self.south) / 2, (self.east + self.west) / 2)

    @property
    def mean_latitude(self) -> float:
        return (self.north + self.south) / 2

    def pad(self, fraction: float) -> "BoundingBoxGeo":
        """Grow the box proportionally to its own size.

        Each latitude side moves by ``height * fraction`` and each longitude
        side by ``width * fraction``.
        """
        lat_padding = self.height * fraction
        lon_padding = self.width * fraction
        return BoundingBoxGeo(
            north=self.north + lat_padding,
            south=self.south - lat_padding,
            east=self.east + lon_padding,
            west=self.west - lon_padding,
        )

    def pad_fixed(self, degrees: float) -> "BoundingBoxGeo":
        """Grow every side of the box by a fixed number of degrees."""
        return BoundingBoxGeo(
            north=self.north + degrees,
            south=self.south - degrees,
            east=self.east + degrees,
            west=self.west - degrees,
        )

    def expanded_for_render(
        self,
        polygon_padding: float = 0.1,
        context_padding: float = 0.5,
    ) -> "BoundingBoxGeo":
        """Return the working box used to fetch and draw surrounding context.

        The polygon box is padded slightly, then padded again so that the map
        covers roughly twice the polygon extent in each direction.
        """
        box = self
        if box.width <= 0 or box.height <= 0:
            box = box.pad_fixed(ZERO_EXTENT_PADDING)
        return box.pad(polygon_padding).pad(context_padding)

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east

    def to_overpass_bbox(self) -> str:
        """Format as ``west,south,east,north`` for the Overpass map call."""
        return f"{self.west},{self.south},{self.east},{self.north}"


@dataclass(frozen=True)
class Polygon:
    """A single simple closed ring of geographic points.

    Closure is implicit: a repeated closing point is dropped on construction.
    Degenerate rings (one point, a line, collinear points) are accepted.
    """

    points: tuple[GeoPoint, ...]

    def __post_init__(self):
        if not self.points:
            raise ValueError("Polygon requires at least one point")
        points = tuple(self.points)
        if len(points) > 1 and points[0] == points[-1]:
            points = points[:-1]
        object.__setattr__(self, "points", points)

    @classmethod
    def from_lon_lat(cls, coordinates: Iterable[tuple[float, float]]) -> "Polygon":
        """Build a polygon from ``(lon, lat)`` pairs, the order KML uses."""
        return cls(tuple(GeoPoint(lat=lat, lon=lon) for lon, lat in coordinates))

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    @property
    def distinct_count(self) -> int:
        """Number of distinct vertices."""
        return len(set(self.points))

    @property
    def is_degenerate(self) -> bool:
        """True when the ring encloses no area."""
        if self.distinct_count < 3:
            return True
        return math.isclose(self.signed_area(), 0.0, abs_tol=1e-18)

    def signed_area(self) -> float:
        """Shoelace area in square degrees (positive when counter-clockwise)."""
        total = 0.0
        n = len(self.points)
        for i in range(n):
            a = self.points[i]
            b = self.points[(i + 1) % n]
            total += a.lon * b.lat - b.lon * a.lat
        return total / 2

    def bounding_box(self) -> BoundingBoxGeo:
        lats = [p.lat for p in self.points]
        lons = [p.lon for p in self.points]
        return BoundingBoxGeo(
            north=max(lats),
            south=min(lats),
            east=max(lons),
            west=min(lons),
        )
