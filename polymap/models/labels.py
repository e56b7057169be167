"""Label layout records."""

from dataclasses import dataclass
from enum import Enum


class LabelKind(str, Enum):
    """What a label annotates; decides its style and placement rules."""

    ROAD = "road"
    WATER = "water"
    PLACE = "place"


@dataclass(frozen=True)
class LabelCandidate:
    """A possible anchor for a label, in page pixels.

    ``length`` is the chord length of the road window the candidate came from
    and serves as its straightness score.
    """

    feature_index: int
    kind: LabelKind
    text: str
    anchor: tuple[float, float]
    angle: float  # radians
    length: float = 0.0
    inside_count: int = 0


@dataclass(frozen=True)
class PlacedLabel:
    """A label that passed every placement check."""

    kind: LabelKind
    text: str
    anchor: tuple[float, float]
    angle: float  # degrees, within [-90, 90]
    box: tuple[float, float, float, float]  # (x1, y1, x2, y2), axis aligned
    font_size: int
    bold: bool = False
    semibold: bool = False
    italic: bool = False
    feature_index: int = -1

    @property
    def name(self) -> str:
        """Key used for same-name spacing."""
        return self.text
