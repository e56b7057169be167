"""Vector feature records parsed from OpenStreetMap data.

Each feature kind is its own frozen dataclass with named fields. Ways refer
to nodes by id; ids missing from the node table are tolerated and skipped
when the path is resolved.
"""

from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from .geo import GeoPoint


@dataclass(frozen=True)
class MapNode:
    """A node from the OSM node table."""

    id: int
    lat: float
    lon: float
    name: Optional[str] = None


@dataclass(frozen=True)
class Road:
    node_ids: tuple[int, ...]
    category: str
    name: Optional[str] = None
    ref: Optional[str] = None
    junction: Optional[str] = None
    kind: Literal["road"] = "road"

    @property
    def label_text(self) -> Optional[str]:
        """Name if present, otherwise the road reference number."""
        return self.name or self.ref or None


@dataclass(frozen=True)
class Waterway:
    node_ids: tuple[int, ...]
    category: str
    name: Optional[str] = None
    width: float = 1.5
    kind: Literal["waterway"] = "waterway"


@dataclass(frozen=True)
class WaterBody:
    node_ids: tuple[int, ...]
    category: str
    name: Optional[str] = None
    kind: Literal["water_body"] = "water_body"


@dataclass(frozen=True)
class Building:
    node_ids: tuple[int, ...]
    category: str
    name: Optional[str] = None
    kind: Literal["building"] = "building"


@dataclass(frozen=True)
class Place:
    lat: float
    lon: float
    name: str
    category: str
    kind: Literal["place"] = "place"


Feature = Union[Road, Waterway, WaterBody, Building, Place]


@dataclass
class FeatureSet:
    """Node table plus every parsed feature, grouped by kind."""

    nodes: dict[int, MapNode] = field(default_factory=dict)
    roads: list[Road] = field(default_factory=list)
    waterways: list[Waterway] = field(default_factory=list)
    water_bodies: list[WaterBody] = field(default_factory=list)
    buildings: list[Building] = field(default_factory=list)
    places: list[Place] = field(default_factory=list)

    def has_data(self) -> bool:
        """Check if any drawable feature was parsed."""
        return any(
            len(layer) > 0
            for layer in [
                self.roads,
                self.waterways,
                self.water_bodies,
                self.buildings,
                self.places,
            ]
        )

    def resolve(self, node_ids: tuple[int, ...]) -> list[GeoPoint]:
        """Look up node coordinates, skipping ids not in the node table."""
        points: list[GeoPoint] = []
        for node_id in node_ids:
            node = self.nodes.get(node_id)
            if node is None:
                continue
            points.append(GeoPoint(lat=node.lat, lon=node.lon))
        return points

    def add(self, feature: Feature) -> None:
        """Append a feature to the list matching its kind."""
        if isinstance(feature, Road):
            self.roads.append(feature)
        elif isinstance(feature, Waterway):
            self.waterways.append(feature)
        elif isinstance(feature, WaterBody):
            self.water_bodies.append(feature)
        elif isinstance(feature, Building):
            self.buildings.append(feature)
        elif isinstance(feature, Place):
            self.places.append(feature)
        else:
            raise TypeError(f"Unknown feature type: {type(feature).__name__}")

    def summary(self) -> dict[str, int]:
        return {
            "nodes": len(self.nodes),
            "roads": len(self.roads),
            "waterways": len(self.waterways),
            "water_bodies": len(self.water_bodies),
            "buildings": len(self.buildings),
            "places": len(self.places),
        }
