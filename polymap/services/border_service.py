"""Boundary finishing: dim everything outside the polygon and outline it."""

import logging
import math
from typing import Sequence

import numpy as np
from PIL import Image, ImageChops, ImageDraw, ImageEnhance, ImageOps

from ..models.style import MapStyleConfig
from ..utils.image_utils import hex_to_rgba
from .projection_service import Projection

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# Vertex offsets never exceed this multiple of the requested offset
MAX_MITER_RATIO = 5.0


def _signed_area(points: Sequence[Point]) -> float:
    area = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        area += x0 * y1 - x1 * y0
    return area / 2.0


def offset_ring(points: Sequence[Point], offset: float, outward: bool = True) -> list[Point]:
    """Move every vertex of a closed ring along its corner bisector.

    Each vertex moves by ``offset / sin(alpha / 2)`` where ``alpha`` is the
    interior angle at the vertex, capped at ``MAX_MITER_RATIO * offset`` so
    acute corners do not spike. Straight-through vertices move by exactly
    ``offset``.

    Args:
        points: Ring vertices in a y-down pixel space, without closing point.
        offset: Distance from each edge.
        outward: Orient the ring first so the offset grows it. Otherwise
            the direction follows the ring's own winding.

    Returns:
        The offset ring, vertex for vertex. Rings of fewer than 3 points
        are returned unchanged.
    """
    pts = [(float(x), float(y)) for x, y in points]
    if len(pts) < 3:
        return pts

    # The (ey, -ex) normal points outward on rings with positive y-down area
    reverse = outward and _signed_area(pts) < 0
    if reverse:
        pts.reverse()

    n = len(pts)
    cap = offset * MAX_MITER_RATIO
    result: list[Point] = []
    for i in range(n):
        prev_x, prev_y = pts[(i - 1) % n]
        x, y = pts[i]
        next_x, next_y = pts[(i + 1) % n]

        n1 = np.array([y - prev_y, -(x - prev_x)])
        n2 = np.array([next_y - y, -(next_x - x)])
        len1 = np.hypot(*n1)
        len2 = np.hypot(*n2)
        if len1 > 0:
            n1 = n1 / len1
        if len2 > 0:
            n2 = n2 / len2

        bisector = (n1 + n2) / 2.0
        bisector_len = np.hypot(*bisector)
        if bisector_len > 0:
            bisector = bisector / bisector_len

        # Interior angle is pi minus the turn between the two normals
        turn = math.acos(max(-1.0, min(1.0, float(n1 @ n2))))
        half_sin = math.sin((math.pi - turn) / 2.0)
        move = cap if half_sin <= 0 else min(offset / half_sin, cap)

        result.append((x + float(bisector[0]) * move, y + float(bisector[1]) * move))

    if reverse:
        result.reverse()
    return result


def apply_outside_mask(
    image: Image.Image,
    polygon: Sequence[Point],
    brightness: float = 0.8,
) -> Image.Image:
    """Desaturate and darken every pixel outside the polygon.

    Args:
        image: RGBA page.
        polygon: Ring in page pixels.
        brightness: Brightness factor applied after desaturation.

    Returns:
        A new image. Inside pixels are unchanged. With fewer than 3
        polygon points nothing is masked and a copy is returned.
    """
    if len(polygon) < 3:
        logger.warning("Boundary has fewer than 3 points; skipping outside mask")
        return image.copy()

    rgba = image.convert("RGBA")
    mask = Image.new("L", rgba.size, 0)
    ImageDraw.Draw(mask).polygon([(float(x), float(y)) for x, y in polygon], fill=255)

    # Enhance RGB only so the alpha channel is not dimmed as well
    gray = ImageOps.grayscale(rgba.convert("RGB")).convert("RGB")
    dimmed = ImageEnhance.Brightness(gray).enhance(brightness).convert("RGBA")
    dimmed.putalpha(rgba.getchannel("A"))

    return Image.composite(rgba, dimmed, mask)


class BorderService:
    """Applies the outside mask and draws the boundary outline for one render."""

    def __init__(self, style: MapStyleConfig, brightness: float = 0.8):
        self.style = style
        self.brightness = brightness

    def outline_ring(self, projection: Projection) -> list[Point]:
        """Offset boundary ring in page pixels.

        The offset is a sixth of the border width, applied in working pixels
        before the page transform.
        """
        offset = self.style.border_offset / 6.0
        ring = offset_ring([tuple(p) for p in projection.polygon_pixels()], offset)
        return [tuple(p) for p in projection.pixels_to_page(ring)]

    def apply_mask(self, image: Image.Image, projection: Projection) -> Image.Image:
        page_polygon = [tuple(p) for p in projection.polygon_page_points()]
        return apply_outside_mask(image, page_polygon, self.brightness)

    def draw_outline(self, image: Image.Image, projection: Projection) -> None:
        """Stroke the offset ring outside the polygon.

        The width scales with the page like features do. The stroke is
        clipped to the outside of the page polygon, so wide strokes never
        paint over the map itself.
        """
        ring = self.outline_ring(projection)
        if len(ring) < 2:
            return
        width = max(1, int(round(self.style.border_offset * projection.scale_to_fit)))
        stroke = Image.new("L", image.size, 0)
        ImageDraw.Draw(stroke).line(ring + [ring[0]], fill=255, width=width, joint="curve")

        page_polygon = [(float(x), float(y)) for x, y in projection.polygon_page_points()]
        if len(page_polygon) >= 3:
            inside = Image.new("L", image.size, 0)
            ImageDraw.Draw(inside).polygon(page_polygon, fill=255)
            stroke = ImageChops.subtract(stroke, inside)

        image.paste(hex_to_rgba(self.style.border_color), (0, 0, *image.size), stroke)
