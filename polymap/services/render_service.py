"""Render pipeline: boundary polygon plus vector features to a page image."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from PIL import Image, ImageDraw

from ..models.features import FeatureSet
from ..models.geo import Polygon
from ..models.labels import PlacedLabel
from ..models.settings import RenderSettings
from ..models.style import MapStyleConfig
from ..utils.image_utils import hex_to_rgba, with_alpha
from .border_service import BorderService
from .label_service import LabelService, PathFeature, PointFeature
from .orientation_service import OrientationResult, OrientationService
from .projection_service import Projection
from .road_network_service import NetworkSelection, RoadNetworkService
from .typography_service import TypographyService

logger = logging.getLogger(__name__)

# Draw order, least important first; unknown categories go under all of these
ROAD_DRAW_PRIORITY = ["service", "residential", "tertiary", "secondary", "primary", "trunk", "motorway"]


def road_draw_rank(category: str) -> int:
    try:
        return ROAD_DRAW_PRIORITY.index(category)
    except ValueError:
        return -1


@dataclass
class RenderResult:
    """Everything a render produced, for saving and for inspection."""

    image: Image.Image
    orientation: OrientationResult
    projection: Projection
    labels: list[PlacedLabel] = field(default_factory=list)
    selected_roads: set[int] = field(default_factory=set)
    context_roads: set[int] = field(default_factory=set)


class RenderService:
    """Renders one boundary polygon and its features onto a page.

    The service holds only immutable configuration and can render any
    number of jobs; every call builds its own projection, graph and image.
    """

    def __init__(
        self,
        style: Optional[MapStyleConfig] = None,
        settings: Optional[RenderSettings] = None,
        typography: Optional[TypographyService] = None,
    ):
        """
        Args:
            style: Colours, stroke widths and fonts.
            settings: Page geometry and layout parameters.
            typography: Font loader; shared so fonts are cached across renders.
        """
        self.style = style or MapStyleConfig()
        self.settings = settings or RenderSettings()
        self.typography = typography or TypographyService()
        self.network = RoadNetworkService(self.settings.network)
        self.border = BorderService(self.style, self.settings.mask_brightness)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, polygon: Polygon, features: FeatureSet) -> RenderResult:
        """Render the map.

        Args:
            polygon: Boundary ring.
            features: Parsed vector features around the boundary.

        Returns:
            RenderResult holding the RGBA page image.

        Raises:
            ValueError: If the polygon is missing or empty, or the feature
                set is missing.
        """
        if polygon is None or len(polygon) == 0:
            raise ValueError("A boundary polygon with at least one point is required")
        if features is None:
            raise ValueError("A feature set is required")

        page = self.settings.page
        projection, orientation = self.project(polygon)
        logger.info(
            "Rotation %.2f°, region scale %.2f, scale to fit %.3f, working size %dx%d",
            orientation.angle,
            projection.scale,
            projection.scale_to_fit,
            *projection.working_size,
        )

        image = Image.new("RGBA", (page.width, page.height), hex_to_rgba(self.style.background_color))

        selection = self.network.select(projection, features)
        self._draw_water_bodies(image, projection, features)
        self._draw_waterways(image, projection, features)
        self._draw_roads(image, projection, features, selection)
        self._draw_buildings(image, projection, features)

        image = self.border.apply_mask(image, projection)
        self.border.draw_outline(image, projection)

        labels = self._place_labels(image, projection, features, selection)

        return RenderResult(
            image=image,
            orientation=orientation,
            projection=projection,
            labels=labels,
            selected_roads=selection.selected,
            context_roads=selection.context,
        )

    def project(self, polygon: Polygon) -> tuple[Projection, OrientationResult]:
        """Orient the polygon and build the final projection for it."""
        page = self.settings.page
        unrotated = Projection.for_polygon(polygon, page)
        solver = OrientationService(page.aspect_ratio, self.settings.orientation)
        orientation = solver.solve_polygon(polygon, unrotated.lon_correction)
        return unrotated.with_rotation(orientation.angle), orientation

    # ------------------------------------------------------------------
    # Feature layers
    # ------------------------------------------------------------------

    @staticmethod
    def _page_path(projection: Projection, features: FeatureSet, node_ids: Sequence[int]) -> list[tuple[float, float]]:
        points = features.resolve(tuple(node_ids))
        return [(float(x), float(y)) for x, y in projection.points_to_page(points)]

    def _stroke_width(self, projection: Projection, width: float) -> int:
        return max(1, int(round(width * projection.scale_to_fit)))

    def _draw_water_bodies(self, image: Image.Image, projection: Projection, features: FeatureSet) -> None:
        draw = ImageDraw.Draw(image)
        fill = hex_to_rgba(self.style.water_style.color)
        for body in features.water_bodies:
            path = self._page_path(projection, features, body.node_ids)
            if len(path) < 3:
                continue
            draw.polygon(path, fill=fill)

    def _draw_waterways(self, image: Image.Image, projection: Projection, features: FeatureSet) -> None:
        style = self.style.water_style
        overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        fill = with_alpha(style.color, style.waterway_alpha)

        for waterway in features.waterways:
            node_ids = list(waterway.node_ids)
            if len(node_ids) > 2 and node_ids[0] == node_ids[-1]:
                node_ids = node_ids[:-1]
            path = self._page_path(projection, features, node_ids)
            if len(path) < 2:
                continue
            width = self._stroke_width(projection, waterway.width)
            for a, b in zip(path, path[1:]):
                draw.line([a, b], fill=fill, width=width)

        image.alpha_composite(overlay)

    def _draw_roads(
        self,
        image: Image.Image,
        projection: Projection,
        features: FeatureSet,
        selection: NetworkSelection,
    ) -> None:
        drawn = selection.drawn if self.settings.draw_context_roads else selection.selected
        order = sorted(drawn, key=lambda i: (road_draw_rank(features.roads[i].category), i))
        draw = ImageDraw.Draw(image)

        for index in order:
            road = features.roads[index]
            path = self._page_path(projection, features, road.node_ids)
            if len(path) < 2:
                continue
            style = self.style.road_style(road.category)
            if style.outline_color and style.outline_width > style.width:
                _stroke(draw, path, hex_to_rgba(style.outline_color), self._stroke_width(projection, style.outline_width))
            _stroke(draw, path, hex_to_rgba(style.color), self._stroke_width(projection, style.width))

    def _draw_buildings(self, image: Image.Image, projection: Projection, features: FeatureSet) -> None:
        style = self.style.building_style
        draw = ImageDraw.Draw(image)
        fill = hex_to_rgba(style.color)
        outline = hex_to_rgba(style.outline_color)
        for building in features.buildings:
            path = self._page_path(projection, features, building.node_ids)
            if len(path) < 3:
                continue
            draw.polygon(path, fill=fill, outline=outline, width=1)

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def _place_labels(
        self,
        image: Image.Image,
        projection: Projection,
        features: FeatureSet,
        selection: NetworkSelection,
    ) -> list[PlacedLabel]:
        labeler = LabelService(
            self.style,
            self.settings.labels,
            self.typography,
            [tuple(p) for p in projection.polygon_page_points()],
        )

        water = [
            PathFeature(
                index=i,
                name=body.name,
                category=body.category,
                points=tuple(self._page_path(projection, features, body.node_ids)),
            )
            for i, body in enumerate(features.water_bodies)
            if body.name
        ]
        roads = [
            PathFeature(
                index=i,
                name=features.roads[i].label_text,
                category=features.roads[i].category,
                points=tuple(self._page_path(projection, features, features.roads[i].node_ids)),
                junction=features.roads[i].junction,
            )
            for i in sorted(selection.selected)
            if features.roads[i].label_text
        ]
        places = [
            PointFeature(
                index=i,
                name=place.name,
                category=place.category,
                anchor=projection.geo_to_page(place.lon, place.lat),
            )
            for i, place in enumerate(features.places)
        ]

        labels = labeler.place_all(water, roads, places)
        labeler.draw(image)
        return labels


def _stroke(
    draw: ImageDraw.ImageDraw,
    path: list[tuple[float, float]],
    fill: tuple[int, int, int, int],
    width: int,
) -> None:
    """Polyline with round joins and round caps."""
    draw.line(path, fill=fill, width=width, joint="curve")
    if width > 2:
        radius = width / 2.0
        for x, y in (path[0], path[-1]):
            draw.ellipse((x - radius, y - radius, x + radius, y + radius), fill=fill)
