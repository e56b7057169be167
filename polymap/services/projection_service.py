"""Geographic to pixel projection and page placement.

Two coordinate spaces are used:

* working pixels: the padded working box drawn at the region scale, origin
  at its north-west corner, y growing southwards;
* page pixels: the output canvas, reached from working pixels through a
  single affine transform (centre on the polygon, scale to fit, rotate,
  move to the page centre).
"""

import logging
import math
from typing import Iterable, Sequence

import numpy as np

from ..models.geo import BoundingBoxGeo, GeoPoint, Polygon
from ..models.settings import PageSettings
from ..utils.geo_utils import (
    geo_array_to_pixels,
    geo_to_pixel,
    longitude_correction,
    pixel_to_geo,
)
from ..utils.geometry import AffineTransform, bounds, rotate_points

logger = logging.getLogger(__name__)


class Projection:
    """Maps coordinates of one render job onto its working bitmap and page."""

    def __init__(
        self,
        polygon: Polygon,
        working_box: BoundingBoxGeo,
        page: PageSettings,
        rotation_degrees: float = 0.0,
    ):
        """
        Args:
            polygon: Boundary polygon of the map.
            working_box: Padded box covering the polygon and its context.
            page: Output canvas geometry.
            rotation_degrees: Page rotation from the orientation solver.
        """
        self.polygon = polygon
        self.working_box = working_box
        self.page = page
        self.rotation_degrees = rotation_degrees

        self.polygon_box = polygon.bounding_box()
        self.lon_correction = longitude_correction(working_box)
        self.scale = self._region_scale()
        self.working_size = self._working_size()

        min_x, min_y = self.geo_to_pixel(self.polygon_box.west, self.polygon_box.north)
        max_x, max_y = self.geo_to_pixel(self.polygon_box.east, self.polygon_box.south)
        self.polygon_pixel_bounds = (min_x, min_y, max_x, max_y)
        self.poly_center = ((min_x + max_x) / 2.0, (min_y + max_y) / 2.0)

        self.scale_to_fit = self._scale_to_fit()
        self.transform = (
            AffineTransform.translation(page.width / 2.0, page.height / 2.0)
            @ AffineTransform.rotation(rotation_degrees)
            @ AffineTransform.scaling(self.scale_to_fit)
            @ AffineTransform.translation(-self.poly_center[0], -self.poly_center[1])
        )
        self.inverse_transform = self.transform.inverse()

    @classmethod
    def for_polygon(
        cls,
        polygon: Polygon,
        page: PageSettings,
        rotation_degrees: float = 0.0,
    ) -> "Projection":
        """Build a projection whose working box is derived from the polygon."""
        working_box = polygon.bounding_box().expanded_for_render(
            polygon_padding=page.polygon_padding,
            context_padding=page.context_padding,
        )
        return cls(polygon, working_box, page, rotation_degrees)

    def with_rotation(self, rotation_degrees: float) -> "Projection":
        """Same job, different page rotation."""
        return Projection(self.polygon, self.working_box, self.page, rotation_degrees)

    # ------------------------------------------------------------------
    # Scales
    # ------------------------------------------------------------------

    def _region_scale(self) -> float:
        """Pixels per corrected degree so the polygon fills the page area."""
        lat_diff = self.polygon_box.height
        lon_diff = self.polygon_box.width * self.lon_correction

        effective_width = int(self.page.width * (1 - self.page.margin))
        effective_height = int(self.page.height * (1 - self.page.margin))

        candidates = []
        if lon_diff > 0:
            candidates.append(effective_width / lon_diff)
        if lat_diff > 0:
            candidates.append(effective_height / lat_diff)

        if not candidates:
            logger.warning("Polygon has no extent; defaulting region scale to 1.0")
            return 1.0
        return min(candidates)

    def _working_size(self) -> tuple[int, int]:
        lat_diff = self.working_box.height
        lon_diff = self.working_box.width * self.lon_correction
        width = max(1, math.ceil(lon_diff * self.scale))
        height = max(1, math.ceil(lat_diff * self.scale))
        return (width, height)

    def _scale_to_fit(self) -> float:
        """Scale that fits the rotated polygon into the page minus its margin."""
        effective_width, effective_height = self.page.effective_size

        pixels = self.polygon_pixels()
        rotated = rotate_points(pixels, math.radians(self.rotation_degrees), self.poly_center)
        min_x, min_y, max_x, max_y = bounds(rotated)
        rotated_width = max_x - min_x
        rotated_height = max_y - min_y

        if rotated_width > 0 and rotated_height > 0:
            return min(effective_width / rotated_width, effective_height / rotated_height)

        min_x, min_y, max_x, max_y = self.polygon_pixel_bounds
        width = max_x - min_x
        height = max_y - min_y
        if width <= 0 or height <= 0:
            logger.warning("Polygon has zero unrotated dimensions; defaulting scale to fit to 1.0")
            return 1.0

        logger.warning("Rotated polygon dimensions are degenerate; fitting the unrotated box")
        return min(effective_width / width, effective_height / height)

    # ------------------------------------------------------------------
    # Working pixels
    # ------------------------------------------------------------------

    def geo_to_pixel(self, lon: float, lat: float) -> tuple[float, float]:
        return geo_to_pixel(lon, lat, self.working_box, self.lon_correction, self.scale)

    def pixel_to_geo(self, x: float, y: float) -> tuple[float, float]:
        """Returns ``(lon, lat)``."""
        return pixel_to_geo(x, y, self.working_box, self.lon_correction, self.scale)

    def points_to_pixels(self, points: Iterable[GeoPoint]) -> np.ndarray:
        pts = list(points)
        if not pts:
            return np.zeros((0, 2))
        return geo_array_to_pixels(
            np.array([p.lon for p in pts]),
            np.array([p.lat for p in pts]),
            self.working_box,
            self.lon_correction,
            self.scale,
        )

    def polygon_pixels(self) -> np.ndarray:
        return self.points_to_pixels(self.polygon.points)

    # ------------------------------------------------------------------
    # Page pixels
    # ------------------------------------------------------------------

    def pixel_to_page(self, x: float, y: float) -> tuple[float, float]:
        return self.transform.apply(x, y)

    def page_to_pixel(self, x: float, y: float) -> tuple[float, float]:
        return self.inverse_transform.apply(x, y)

    def geo_to_page(self, lon: float, lat: float) -> tuple[float, float]:
        return self.transform.apply(*self.geo_to_pixel(lon, lat))

    def page_to_geo(self, x: float, y: float) -> tuple[float, float]:
        """Returns ``(lon, lat)``."""
        return self.pixel_to_geo(*self.page_to_pixel(x, y))

    def pixels_to_page(self, pixels: np.ndarray | Sequence[tuple[float, float]]) -> np.ndarray:
        return self.transform.apply_many(pixels)

    def points_to_page(self, points: Iterable[GeoPoint]) -> np.ndarray:
        return self.transform.apply_many(self.points_to_pixels(points))

    def polygon_page_points(self) -> np.ndarray:
        return self.pixels_to_page(self.polygon_pixels())

    def describe(self) -> dict[str, float]:
        """Key numbers for logging and the ``info`` command."""
        return {
            "rotation": self.rotation_degrees,
            "lon_correction": self.lon_correction,
            "region_scale": self.scale,
            "scale_to_fit": self.scale_to_fit,
            "working_width": self.working_size[0],
            "working_height": self.working_size[1],
        }
