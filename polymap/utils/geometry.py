"""Planar geometry helpers shared by the render services."""

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
import shapely
from shapely.geometry import Polygon as ShapelyPolygon

Point = tuple[float, float]


@dataclass(frozen=True)
class AffineTransform:
    """A 2D affine transform stored as a 3x3 homogeneous matrix.

    Transforms compose left to right the way they are written:
    ``a @ b`` applies ``b`` first, then ``a``.
    """

    matrix: np.ndarray

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls(np.eye(3))

    @classmethod
    def translation(cls, dx: float, dy: float) -> "AffineTransform":
        m = np.eye(3)
        m[0, 2] = dx
        m[1, 2] = dy
        return cls(m)

    @classmethod
    def rotation(cls, degrees: float) -> "AffineTransform":
        """Rotation about the origin; positive is clockwise on a y-down canvas."""
        rad = math.radians(degrees)
        c, s = math.cos(rad), math.sin(rad)
        return cls(np.array([[c, -s, 0.0], [s, c, 0.0], [0.0, 0.0, 1.0]]))

    @classmethod
    def scaling(cls, sx: float, sy: float | None = None) -> "AffineTransform":
        sy = sx if sy is None else sy
        return cls(np.array([[sx, 0.0, 0.0], [0.0, sy, 0.0], [0.0, 0.0, 1.0]]))

    def __matmul__(self, other: "AffineTransform") -> "AffineTransform":
        return AffineTransform(self.matrix @ other.matrix)

    def inverse(self) -> "AffineTransform":
        return AffineTransform(np.linalg.inv(self.matrix))

    @property
    def scale_factor(self) -> float:
        """Uniform scale of the linear part (sqrt of the determinant)."""
        return math.sqrt(abs(np.linalg.det(self.matrix[:2, :2])))

    def apply(self, x: float, y: float) -> Point:
        m = self.matrix
        return (
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    def apply_many(self, points: np.ndarray | Sequence[Point]) -> np.ndarray:
        """Transform an ``(n, 2)`` array of points."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        if len(pts) == 0:
            return pts
        homogeneous = np.column_stack([pts, np.ones(len(pts))])
        return (homogeneous @ self.matrix.T)[:, :2]


def bounds(points: Iterable[Point]) -> tuple[float, float, float, float]:
    """(min_x, min_y, max_x, max_y) of a point sequence."""
    pts = np.asarray(list(points), dtype=float).reshape(-1, 2)
    if len(pts) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    return (
        float(pts[:, 0].min()),
        float(pts[:, 1].min()),
        float(pts[:, 0].max()),
        float(pts[:, 1].max()),
    )


def rotate_points(points: np.ndarray, radians: float, origin: Point = (0.0, 0.0)) -> np.ndarray:
    """Rotate points about ``origin``."""
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    c, s = math.cos(radians), math.sin(radians)
    shifted = pts - np.asarray(origin)
    rotated = np.column_stack(
        [
            shifted[:, 0] * c - shifted[:, 1] * s,
            shifted[:, 0] * s + shifted[:, 1] * c,
        ]
    )
    return rotated + np.asarray(origin)


def rotated_rect_corners(
    center: Point,
    rect: tuple[float, float, float, float],
    radians: float,
) -> list[Point]:
    """Corners of ``rect`` (relative to the anchor) rotated and moved to ``center``."""
    left, top, right, bottom = rect
    corners = np.array([[left, top], [right, top], [left, bottom], [right, bottom]], dtype=float)
    rotated = rotate_points(corners, radians)
    rotated += np.asarray(center)
    return [(float(x), float(y)) for x, y in rotated]


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def path_length(points: Sequence[Point]) -> float:
    total = 0.0
    for i in range(1, len(points)):
        total += distance(points[i - 1], points[i])
    return total


class PolygonRegion:
    """Point-in-polygon tests against a pixel-space ring.

    Wraps a prepared shapely polygon. Rings with fewer than three distinct
    points or no area contain nothing.
    """

    def __init__(self, points: Sequence[Point]):
        self.points = [(float(x), float(y)) for x, y in points]
        self._polygon = None
        if len(set(self.points)) >= 3:
            polygon = ShapelyPolygon(self.points)
            if not polygon.is_valid:
                polygon = polygon.buffer(0)
            if polygon.area > 0:
                self._polygon = polygon
                shapely.prepare(polygon)

    @property
    def is_empty(self) -> bool:
        return self._polygon is None

    @property
    def area(self) -> float:
        return 0.0 if self._polygon is None else float(self._polygon.area)

    def contains(self, x: float, y: float) -> bool:
        if self._polygon is None:
            return False
        return bool(shapely.contains_xy(self._polygon, x, y))

    def contains_many(self, points: np.ndarray | Sequence[Point]) -> np.ndarray:
        """Boolean mask over an ``(n, 2)`` array."""
        pts = np.asarray(points, dtype=float).reshape(-1, 2)
        if self._polygon is None or len(pts) == 0:
            return np.zeros(len(pts), dtype=bool)
        return shapely.contains_xy(self._polygon, pts[:, 0], pts[:, 1])

    def contains_all(self, points: Iterable[Point]) -> bool:
        pts = list(points)
        return bool(len(pts) > 0 and self.contains_many(pts).all())
