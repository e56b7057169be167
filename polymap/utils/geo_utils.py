"""Geographic and coordinate utilities."""

import math

import numpy as np

from ..models.geo import BoundingBoxGeo


def longitude_correction(bbox: BoundingBoxGeo) -> float:
    """Factor that makes one unit of longitude comparable to one of latitude.

    Uses the cosine of the box's mean latitude.
    """
    return math.cos(math.radians(bbox.mean_latitude))


def geo_to_pixel(
    lon: float,
    lat: float,
    bbox: BoundingBoxGeo,
    lon_correction: float,
    scale: float,
) -> tuple[float, float]:
    """
    Convert a coordinate to working-bitmap pixels.

    The origin is the box's north-west corner; y grows southwards.

    Args:
        lon: Longitude
        lat: Latitude
        bbox: Working bounding box
        lon_correction: Longitude correction factor
        scale: Pixels per corrected degree

    Returns:
        (x, y) pixel coordinates
    """
    x = (lon - bbox.west) * lon_correction * scale
    y = (bbox.north - lat) * scale
    return (x, y)


def pixel_to_geo(
    x: float,
    y: float,
    bbox: BoundingBoxGeo,
    lon_correction: float,
    scale: float,
) -> tuple[float, float]:
    """
    Convert working-bitmap pixels back to a coordinate.

    Returns:
        (lon, lat)
    """
    lon = bbox.west + x / (lon_correction * scale)
    lat = bbox.north - y / scale
    return (lon, lat)


def geo_array_to_pixels(
    lons: np.ndarray,
    lats: np.ndarray,
    bbox: BoundingBoxGeo,
    lon_correction: float,
    scale: float,
) -> np.ndarray:
    """Vectorised :func:`geo_to_pixel`; returns an ``(n, 2)`` array."""
    xs = (np.asarray(lons, dtype=float) - bbox.west) * lon_correction * scale
    ys = (bbox.north - np.asarray(lats, dtype=float)) * scale
    return np.column_stack([xs, ys])


def bbox_extent_meters(bbox: BoundingBoxGeo) -> tuple[float, float]:
    """Approximate (width, height) of the box in meters."""
    lat_rad = math.radians(bbox.mean_latitude)
    meters_per_deg_lat = 111320
    meters_per_deg_lon = 111320 * math.cos(lat_rad)
    return (bbox.width * meters_per_deg_lon, bbox.height * meters_per_deg_lat)
