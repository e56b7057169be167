"""Utility functions for map rendering."""

from .geo_utils import (
    bbox_extent_meters,
    geo_to_pixel,
    longitude_correction,
    pixel_to_geo,
)
from .geometry import AffineTransform, PolygonRegion, bounds, rotate_points
from .image_utils import flatten, hex_to_rgba, load_image, save_image, with_alpha

__all__ = [
    "bbox_extent_meters",
    "geo_to_pixel",
    "longitude_correction",
    "pixel_to_geo",
    "AffineTransform",
    "PolygonRegion",
    "bounds",
    "rotate_points",
    "flatten",
    "hex_to_rgba",
    "load_image",
    "save_image",
    "with_alpha",
]
