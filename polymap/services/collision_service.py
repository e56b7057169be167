"""Collision bookkeeping for placed labels."""

import math
from dataclasses import dataclass
from typing import Iterable

Point = tuple[float, float]


@dataclass(frozen=True)
class LabelBox:
    """Axis-aligned rectangle occupied by a label, in page pixels."""

    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def around(cls, corners: Iterable[Point]) -> "LabelBox":
        """Smallest box containing the given (usually rotated) corners."""
        xs, ys = zip(*corners)
        return cls(min(xs), min(ys), max(xs), max(ys))

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Point:
        return ((self.x1 + self.x2) / 2.0, (self.y1 + self.y2) / 2.0)

    def as_tuple(self) -> tuple[float, float, float, float]:
        return (self.x1, self.y1, self.x2, self.y2)

    def intersects(self, other: "LabelBox") -> bool:
        """Overlap on both axes; boxes that only touch do not intersect."""
        return (
            self.x1 < other.x2
            and self.x2 > other.x1
            and self.y1 < other.y2
            and self.y2 > other.y1
        )


class LabelIndex:
    """Boxes of every label placed so far, plus anchors grouped by text.

    One index is shared by all label kinds of a render so water, road and
    place labels never overlap each other.
    """

    def __init__(self):
        self.boxes: list[LabelBox] = []
        self.positions: dict[str, list[Point]] = {}

    def __len__(self) -> int:
        return len(self.boxes)

    def collides(self, box: LabelBox) -> bool:
        """Check the box against every placed box.

        Uses brute-force checks, which is fine for the few hundred labels
        a page holds.
        """
        return any(box.intersects(other) for other in self.boxes)

    def too_close(self, name: str, anchor: Point, min_distance: float) -> bool:
        """Whether a label with the same text sits within ``min_distance``."""
        for x, y in self.positions.get(name, ()):
            if math.hypot(anchor[0] - x, anchor[1] - y) < min_distance:
                return True
        return False

    def can_place(self, name: str, anchor: Point, box: LabelBox, min_distance: float) -> bool:
        return not self.collides(box) and not self.too_close(name, anchor, min_distance)

    def add(self, name: str, anchor: Point, box: LabelBox) -> None:
        self.boxes.append(box)
        self.positions.setdefault(name, []).append(anchor)
