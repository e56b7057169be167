"""Collision-aware label placement for roads, water bodies and places.

Everything here works in page pixels, after the page transform, so label
sizes and spacings are independent of the map scale. Labels that cannot be
placed are dropped; a crowded map simply shows fewer labels.
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from PIL import Image

from ..models.labels import LabelCandidate, LabelKind, PlacedLabel
from ..models.settings import LabelSettings
from ..models.style import FontStyle, MapStyleConfig
from ..utils.geometry import PolygonRegion, bounds, distance, path_length, rotated_rect_corners
from .collision_service import LabelBox, LabelIndex
from .typography_service import FontWeight, TypographyService

logger = logging.getLogger(__name__)

Point = tuple[float, float]

# Most important first; categories not listed sort after all of these
PLACE_IMPORTANCE = ["city", "town", "village", "hamlet", "suburb", "neighbourhood", "locality"]

# (font multiplier, weight) per place category
PLACE_FONT = {
    "city": (1.5, FontWeight.BOLD),
    "town": (1.3, FontWeight.SEMIBOLD),
    "village": (1.1, FontWeight.NORMAL),
    "hamlet": (0.9, FontWeight.NORMAL),
    "suburb": (0.9, FontWeight.NORMAL),
}
DEFAULT_PLACE_FONT = (0.8, FontWeight.NORMAL)


@dataclass(frozen=True)
class PathFeature:
    """A named line or area feature projected to page pixels."""

    index: int
    name: Optional[str]
    category: str
    points: tuple[Point, ...]
    junction: Optional[str] = None


@dataclass(frozen=True)
class PointFeature:
    """A named point feature projected to page pixels."""

    index: int
    name: str
    category: str
    anchor: Point


def normalize_text_angle(degrees: float) -> float:
    """Keep text upright: fold an angle into [-90, 90]."""
    if degrees > 90.0:
        degrees -= 180.0
    if degrees < -90.0:
        degrees += 180.0
    return degrees


def water_font_multiplier(area: float) -> float:
    if area > 50000:
        return 1.4
    if area > 20000:
        return 1.2
    if area > 5000:
        return 1.1
    if area < 1000:
        return 0.85
    return 1.0


def place_rank(category: str) -> int:
    try:
        return PLACE_IMPORTANCE.index(category)
    except ValueError:
        return len(PLACE_IMPORTANCE)


class LabelService:
    """Places labels against one shared collision index.

    Water labels go first, then roads, then places; earlier labels win
    collisions with later ones.
    """

    def __init__(
        self,
        style: MapStyleConfig,
        settings: LabelSettings,
        typography: TypographyService,
        render_polygon: Sequence[Point],
    ):
        """
        Args:
            style: Label fonts and colours.
            settings: Placement distances and thresholds.
            typography: Font loading and measurement.
            render_polygon: Boundary ring in page pixels.
        """
        self.style = style
        self.settings = settings
        self.typography = typography
        self.region = PolygonRegion(render_polygon)
        self.index = LabelIndex()
        self.placed: list[PlacedLabel] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def place_all(
        self,
        water_bodies: Sequence[PathFeature] = (),
        roads: Sequence[PathFeature] = (),
        places: Sequence[PointFeature] = (),
    ) -> list[PlacedLabel]:
        """Place water, road and place labels in that order."""
        water = self.place_water_labels(water_bodies)
        road = self.place_road_labels(roads)
        place = self.place_place_labels(places)
        logger.info(
            "Placed %d labels (%d water, %d road, %d place)",
            len(self.placed),
            len(water),
            len(road),
            len(place),
        )
        return list(self.placed)

    def draw(self, image: Image.Image, labels: Optional[Sequence[PlacedLabel]] = None) -> None:
        """Draw placed labels onto the page."""
        for label in self.placed if labels is None else labels:
            font = self.typography.font(label.font_size, self._weight(label), label.italic)
            if label.kind == LabelKind.ROAD:
                self.typography.draw_road_label(
                    image,
                    label.text,
                    label.anchor,
                    label.angle,
                    font,
                    self.style.label_style,
                    self.style.background_color,
                    padding=self.settings.label_padding,
                )
            else:
                halo = (
                    self.style.water_label_style
                    if label.kind == LabelKind.WATER
                    else self.style.place_label_style
                )
                self.typography.draw_halo_label(
                    image,
                    label.text,
                    label.anchor,
                    font,
                    halo.color,
                    halo_color=halo.halo_color,
                    halo_alpha=halo.halo_alpha,
                    halo_width=halo.halo_width,
                    angle=label.angle,
                )

    # ------------------------------------------------------------------
    # Roads
    # ------------------------------------------------------------------

    def road_candidates(self, road: PathFeature) -> list[LabelCandidate]:
        """Sliding-window anchors along a road, longest chord first.

        A window qualifies when its chord is long enough and enough of its
        points lie inside the polygon. When none qualifies the longest
        single segment is used regardless of the inside test.
        """
        text = road.name or ""
        points = road.points
        window = self.settings.window
        candidates: list[LabelCandidate] = []

        for start in range(len(points) - window + 1):
            segment = points[start : start + window]
            first, last = segment[0], segment[-1]
            length = distance(first, last)
            if length < self.settings.min_segment_length:
                continue
            inside_count = int(self.region.contains_many(segment).sum())
            if inside_count < self.settings.inside_fraction * window:
                continue
            candidates.append(
                LabelCandidate(
                    feature_index=road.index,
                    kind=LabelKind.ROAD,
                    text=text,
                    anchor=((first[0] + last[0]) / 2.0, (first[1] + last[1]) / 2.0),
                    angle=math.atan2(last[1] - first[1], last[0] - first[0]),
                    length=length,
                    inside_count=inside_count,
                )
            )

        if not candidates:
            best: Optional[LabelCandidate] = None
            for a, b in zip(points, points[1:]):
                length = distance(a, b)
                if length > 0 and (best is None or length > best.length):
                    best = LabelCandidate(
                        feature_index=road.index,
                        kind=LabelKind.ROAD,
                        text=text,
                        anchor=((a[0] + b[0]) / 2.0, (a[1] + b[1]) / 2.0),
                        angle=math.atan2(b[1] - a[1], b[0] - a[0]),
                        length=length,
                    )
            if best is not None:
                candidates.append(best)

        candidates.sort(key=lambda c: c.length, reverse=True)
        return candidates

    def place_road_labels(self, roads: Sequence[PathFeature]) -> list[PlacedLabel]:
        excluded = set(self.settings.excluded_road_categories)
        wide = set(self.settings.wide_road_categories)
        placed: list[PlacedLabel] = []

        for road in roads:
            if road.category in excluded or road.junction == "roundabout":
                continue
            if not road.name or len(road.points) < 2:
                continue

            is_wide = road.category in wide
            font_size = self.style.label_style.font_size
            if is_wide:
                font_size = font_size * self.settings.wide_font_scale
            weight = FontWeight.BOLD if is_wide else FontWeight.NORMAL
            font = self.typography.font(font_size, weight)
            text_rect = self.typography.label_rect(road.name, font)
            box_rect = self.typography.label_rect(road.name, font, self.settings.label_padding)

            max_labels = max(1, int(path_length(road.points) / self.settings.label_spacing))
            used_midpoints: list[Point] = []

            for candidate in self.road_candidates(road):
                if len(used_midpoints) >= max_labels:
                    break
                if any(
                    distance(m, candidate.anchor) < self.settings.label_spacing
                    for m in used_midpoints
                ):
                    continue

                angle = normalize_text_angle(math.degrees(candidate.angle))
                label = self._place_on_road(
                    road, candidate, angle, is_wide, text_rect, box_rect, int(round(font_size))
                )
                if label is None:
                    logger.debug("No room for road label %r", road.name)
                    continue
                used_midpoints.append(candidate.anchor)
                placed.append(label)

        return placed

    def _place_on_road(
        self,
        road: PathFeature,
        candidate: LabelCandidate,
        angle: float,
        is_wide: bool,
        text_rect: tuple[float, float, float, float],
        box_rect: tuple[float, float, float, float],
        font_size: int,
    ) -> Optional[PlacedLabel]:
        radians = math.radians(angle)
        normal = candidate.angle + math.pi / 2.0
        attempts = 1 if is_wide else self.settings.max_nudge_attempts

        for attempt in range(attempts):
            offset = attempt * self.settings.nudge_step
            anchor = (
                candidate.anchor[0] + math.cos(normal) * offset,
                candidate.anchor[1] + math.sin(normal) * offset,
            )
            if not self.region.contains(*anchor):
                continue
            if not is_wide:
                corners = rotated_rect_corners(anchor, text_rect, radians)
                if not self.region.contains_all(corners):
                    continue

            box = LabelBox.around(rotated_rect_corners(anchor, box_rect, radians))
            if not self.index.can_place(road.name, anchor, box, self.settings.min_label_distance):
                continue

            return self._commit(
                PlacedLabel(
                    kind=LabelKind.ROAD,
                    text=road.name,
                    anchor=anchor,
                    angle=angle,
                    box=box.as_tuple(),
                    font_size=font_size,
                    bold=is_wide,
                    feature_index=road.index,
                )
            )
        return None

    # ------------------------------------------------------------------
    # Water bodies
    # ------------------------------------------------------------------

    def water_anchor(self, points: Sequence[Point]) -> tuple[Point, float]:
        """Label anchor and bounding-box area of a water body.

        Small bodies use their box centre. Large ones sample an interior
        grid and keep the sample inside the outline that lies farthest from
        the box edges.
        """
        min_x, min_y, max_x, max_y = bounds(points)
        width, height = max_x - min_x, max_y - min_y
        area = width * height
        anchor = ((min_x + max_x) / 2.0, (min_y + max_y) / 2.0)

        if area > self.settings.water_grid_area:
            outline = PolygonRegion(points)
            grid = self.settings.water_grid_size
            best_clearance = -1.0
            for gx in range(1, grid):
                for gy in range(1, grid):
                    x = min_x + width * gx / grid
                    y = min_y + height * gy / grid
                    if not outline.contains(x, y):
                        continue
                    clearance = min(x - min_x, max_x - x, y - min_y, max_y - y)
                    if clearance > best_clearance:
                        best_clearance = clearance
                        anchor = (x, y)
        return anchor, area

    def place_water_labels(self, water_bodies: Sequence[PathFeature]) -> list[PlacedLabel]:
        style = self.style.water_label_style
        italic = style.font_style == FontStyle.ITALIC
        weight = FontWeight.BOLD if style.font_style == FontStyle.BOLD else FontWeight.NORMAL

        measured = []
        for body in water_bodies:
            if not body.name or len(body.points) < 3:
                continue
            anchor, area = self.water_anchor(body.points)
            if area <= self.settings.min_water_label_area:
                continue
            measured.append((area, body, anchor))
        measured.sort(key=lambda item: item[0], reverse=True)

        placed: list[PlacedLabel] = []
        for area, body, anchor in measured:
            font_size = int(round(style.font_size * water_font_multiplier(area)))
            font = self.typography.font(font_size, weight, italic)
            label = self._place_point(
                LabelKind.WATER, body.name, anchor, font, font_size, style.halo_width, body.index,
                bold=weight == FontWeight.BOLD, italic=italic,
            )
            if label is None:
                logger.debug("No room for water label %r", body.name)
                continue
            placed.append(label)
        return placed

    # ------------------------------------------------------------------
    # Places
    # ------------------------------------------------------------------

    def place_place_labels(self, places: Sequence[PointFeature]) -> list[PlacedLabel]:
        style = self.style.place_label_style
        italic = style.font_style == FontStyle.ITALIC

        # Most important entry per name, then most important first
        by_name: dict[str, PointFeature] = {}
        for place in places:
            if not place.name:
                continue
            current = by_name.get(place.name)
            if current is None or place_rank(place.category) < place_rank(current.category):
                by_name[place.name] = place
        ordered = sorted(by_name.values(), key=lambda p: place_rank(p.category))

        placed: list[PlacedLabel] = []
        for place in ordered:
            multiplier, weight = PLACE_FONT.get(place.category, DEFAULT_PLACE_FONT)
            if style.font_style == FontStyle.BOLD:
                weight = FontWeight.BOLD
            font_size = int(round(style.font_size * multiplier))
            font = self.typography.font(font_size, weight, italic)
            label = self._place_point(
                LabelKind.PLACE, place.name, place.anchor, font, font_size, style.halo_width, place.index,
                bold=weight == FontWeight.BOLD,
                semibold=weight == FontWeight.SEMIBOLD,
                italic=italic,
            )
            if label is None:
                logger.debug("No room for place label %r", place.name)
                continue
            placed.append(label)
        return placed

    # ------------------------------------------------------------------
    # Shared
    # ------------------------------------------------------------------

    def _place_point(
        self,
        kind: LabelKind,
        text: str,
        anchor: Point,
        font,
        font_size: int,
        padding: float,
        feature_index: int,
        bold: bool = False,
        semibold: bool = False,
        italic: bool = False,
    ) -> Optional[PlacedLabel]:
        if not self.region.contains(*anchor):
            return None
        left, top, right, bottom = self.typography.label_rect(text, font, padding)
        box = LabelBox(anchor[0] + left, anchor[1] + top, anchor[0] + right, anchor[1] + bottom)
        if not self.index.can_place(text, anchor, box, self.settings.min_label_distance):
            return None
        return self._commit(
            PlacedLabel(
                kind=kind,
                text=text,
                anchor=anchor,
                angle=0.0,
                box=box.as_tuple(),
                font_size=font_size,
                bold=bold,
                semibold=semibold,
                italic=italic,
                feature_index=feature_index,
            )
        )

    def _commit(self, label: PlacedLabel) -> PlacedLabel:
        self.index.add(label.name, label.anchor, LabelBox(*label.box))
        self.placed.append(label)
        return label

    @staticmethod
    def _weight(label: PlacedLabel) -> FontWeight:
        if label.bold:
            return FontWeight.BOLD
        if label.semibold:
            return FontWeight.SEMIBOLD
        return FontWeight.NORMAL
