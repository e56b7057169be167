"""Orientation solver: which rotation makes a boundary fit the page best.

Points are planar ``(x, y)`` with y pointing up (longitude-corrected
degrees work well). The returned angle is the rotation to apply to a y-down
canvas before drawing; rotating the canvas by the angle of a y-up edge lays
that edge flat.
"""

import logging
import math
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Sequence

from ..models.geo import Polygon
from ..models.settings import OrientationSettings

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# Portrait page used when no target ratio is given (width / height).
DEFAULT_TARGET_RATIO = 2500.0 / 3250.0


@dataclass(frozen=True)
class OrientationResult:
    """Rotation decision for one boundary.

    ``width`` and ``height`` describe the minimum-area rectangle after the
    rotation has been applied.
    """

    angle: float
    width: float = 0.0
    height: float = 0.0
    rotated_90: bool = False
    line_like: bool = False


def normalize_angle(degrees: float) -> float:
    """Map any angle into (-90, 90]."""
    angle = math.fmod(degrees, 180.0)
    if angle < 0:
        angle += 180.0
    if angle > 90.0:
        angle -= 180.0
    return angle


def _cross(o: Point, a: Point, b: Point) -> float:
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def _graham_scan(points: Sequence[Point]) -> list[Point]:
    pts = [(float(x), float(y)) for x, y in points]
    if len(pts) < 2:
        return pts

    # Pivot: lowest y, leftmost on ties
    pivot = min(pts, key=lambda p: (p[1], p[0]))
    rest = list(pts)
    rest.remove(pivot)

    def compare(a: Point, b: Point) -> int:
        cross = _cross(pivot, a, b)
        if cross == 0:
            da = (a[0] - pivot[0]) ** 2 + (a[1] - pivot[1]) ** 2
            db = (b[0] - pivot[0]) ** 2 + (b[1] - pivot[1]) ** 2
            return (da > db) - (da < db)
        return -1 if cross > 0 else 1

    rest.sort(key=cmp_to_key(compare))

    hull = [pivot]
    for point in rest:
        # Discard everything that does not make a strict left turn
        while len(hull) > 1 and _cross(hull[-2], hull[-1], point) <= 0:
            hull.pop()
        if point != hull[-1]:
            hull.append(point)
    return hull


def convex_hull(points: Sequence[Point]) -> list[Point]:
    """Convex hull in counter-clockwise order (Graham scan).

    Inputs of three points or fewer are returned unchanged.
    """
    if len(points) <= 3:
        return [(float(x), float(y)) for x, y in points]
    return _graham_scan(points)


def minimum_area_rectangle(
    hull: Sequence[Point],
    min_edge_length: float = 1e-5,
) -> tuple[float, float, float]:
    """Rotating calipers over a convex hull.

    For every hull edge the hull is rotated so the edge is axis-aligned and
    the bounding box is measured. The first edge giving the smallest area
    wins.

    Returns:
        ``(angle_degrees, width, height)`` where width runs along the winning
        edge. ``(0, 0, 0)`` for a hull of one point or fewer.
    """
    if len(hull) <= 1:
        return (0.0, 0.0, 0.0)

    min_area = math.inf
    best = (0.0, 0.0, 0.0)
    n = len(hull)
    for i in range(n):
        x0, y0 = hull[i]
        x1, y1 = hull[(i + 1) % n]
        ex, ey = x1 - x0, y1 - y0
        if math.hypot(ex, ey) < min_edge_length:
            continue

        angle = math.atan2(ey, ex)
        c, s = math.cos(-angle), math.sin(-angle)
        xs = [px * c - py * s for px, py in hull]
        ys = [px * s + py * c for px, py in hull]
        width = max(xs) - min(xs)
        height = max(ys) - min(ys)
        area = width * height
        # Equal areas up to rounding keep the earlier edge
        if min_area == math.inf or area < min_area * (1.0 - 1e-9):
            min_area = area
            best = (math.degrees(angle), width, height)

    return best


class OrientationService:
    """Chooses the page rotation for a boundary polygon."""

    def __init__(
        self,
        target_ratio: float = DEFAULT_TARGET_RATIO,
        settings: OrientationSettings | None = None,
    ):
        """
        Args:
            target_ratio: Page width / height the boundary should fit.
            settings: Thresholds for degenerate boundaries.
        """
        self.target_ratio = target_ratio
        self.settings = settings or OrientationSettings()

    def solve_polygon(self, polygon: Polygon, lon_correction: float = 1.0) -> OrientationResult:
        """Orient a geographic polygon using longitude-corrected degrees."""
        points = [(p.lon * lon_correction, p.lat) for p in polygon.points]
        return self.solve(points)

    def solve(self, points: Sequence[Point]) -> OrientationResult:
        """Compute the rotation angle for a boundary given as y-up points.

        Returns:
            OrientationResult with the angle normalized to (-90, 90].
        """
        pts = [(float(x), float(y)) for x, y in points]
        if not pts:
            logger.warning("Empty boundary; using unrotated orientation")
            return OrientationResult(angle=0.0)

        hull = convex_hull(pts)

        collapsed = _graham_scan(list(dict.fromkeys(pts)))
        if len(collapsed) <= 2 and len(pts) < self.settings.line_point_threshold:
            return self._orient_line(pts)

        angle, width, height = minimum_area_rectangle(hull, self.settings.min_edge_length)
        if not (width > 0 and height > 0) or not (math.isfinite(width) and math.isfinite(height)):
            logger.warning("Boundary has no area; using unrotated orientation")
            return OrientationResult(angle=0.0, width=width, height=height)

        ratio = width / height
        inverse = height / width
        rotate_90 = abs(inverse - self.target_ratio) < abs(ratio - self.target_ratio)
        if rotate_90:
            angle += 90.0
            width, height = height, width

        result = OrientationResult(
            angle=normalize_angle(angle),
            width=width,
            height=height,
            rotated_90=rotate_90,
        )
        logger.info("Polygon rotation angle: %.2f°", result.angle)
        return result

    def _orient_line(self, pts: list[Point]) -> OrientationResult:
        """Orient a boundary that collapsed to a line along the page's long axis."""
        (x0, y0), (x1, y1) = pts[0], pts[-1]
        dx, dy = x1 - x0, y1 - y0
        length = math.hypot(dx, dy)
        if length == 0:
            return OrientationResult(angle=0.0, line_like=True)

        angle = math.degrees(math.atan2(dy, dx))
        # Lines nearer horizontal turn a quarter turn further and end up at
        # 90; lines nearer vertical turn a quarter turn back and stay close
        # to 0, so both render upright.
        if abs(dx) >= abs(dy):
            angle += 90.0
        else:
            angle -= 90.0

        result = OrientationResult(
            angle=normalize_angle(angle),
            width=0.0,
            height=length,
            rotated_90=True,
            line_like=True,
        )
        logger.info("Line-like boundary, rotation angle: %.2f°", result.angle)
        return result
