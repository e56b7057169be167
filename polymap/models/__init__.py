"""Data models for polygon map rendering."""

from .features import (
    Building,
    Feature,
    FeatureSet,
    MapNode,
    Place,
    Road,
    WaterBody,
    Waterway,
)
from .geo import BoundingBoxGeo, GeoPoint, Polygon
from .labels import LabelCandidate, LabelKind, PlacedLabel
from .settings import (
    LabelSettings,
    NetworkSettings,
    OrientationSettings,
    PageSettings,
    RenderSettings,
)
from .style import MapStyleConfig, RoadStyle

__all__ = [
    "Building",
    "Feature",
    "FeatureSet",
    "MapNode",
    "Place",
    "Road",
    "WaterBody",
    "Waterway",
    "BoundingBoxGeo",
    "GeoPoint",
    "Polygon",
    "LabelCandidate",
    "LabelKind",
    "PlacedLabel",
    "LabelSettings",
    "NetworkSettings",
    "OrientationSettings",
    "PageSettings",
    "RenderSettings",
    "MapStyleConfig",
    "RoadStyle",
]
