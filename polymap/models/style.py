"""Map style configuration: colours, stroke widths and label fonts."""

from enum import Enum
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field


class FontStyle(str, Enum):
    """Font style names accepted in style files."""

    NORMAL = "normal"
    BOLD = "bold"
    ITALIC = "italic"


class RoadStyle(BaseModel):
    """Stroke style for one road category."""

    model_config = ConfigDict(frozen=True)

    color: str = Field(default="#000000", description="Fill stroke colour")
    width: float = Field(default=1.0, gt=0, description="Fill stroke width in working pixels")
    outline_color: Optional[str] = Field(default="#888888", description="Casing colour")

    @property
    def outline_width(self) -> float:
        """Casing width; always wider than the fill stroke."""
        if self.width <= 2.0:
            return self.width + 0.5
        return self.width + 2.0


def _default_road_styles() -> dict[str, RoadStyle]:
    return {
        "motorway": RoadStyle(color="#FF4500", width=16, outline_color="#B22222"),
        "trunk": RoadStyle(color="#FFA500", width=16, outline_color="#B8860B"),
        "primary": RoadStyle(color="#FFFF00", width=16, outline_color="#CCCC00"),
        "secondary": RoadStyle(color="#FFFFE0", width=14, outline_color="#BDB76B"),
        "tertiary": RoadStyle(color="#FFFFFF", width=12, outline_color="#BCBCBC"),
        "residential": RoadStyle(color="#FFFFFF", width=10, outline_color="#BCBCBC"),
        "service": RoadStyle(color="#FFFFFF", width=8, outline_color="#BCBCBC"),
        "unclassified": RoadStyle(color="#FFFFFF", width=8, outline_color="#BCBCBC"),
        "default": RoadStyle(color="#FFFFFF", width=8, outline_color="#BCBCBC"),
    }


DEFAULT_ROAD_STYLE = RoadStyle(color="#FFFFFF", width=8, outline_color="#BCBCBC")


class WaterStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str = "#B4DCFF"
    waterway_alpha: int = Field(default=230, ge=0, le=255)


class BuildingStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str = "#C0B9B0"
    outline_color: str = "#999285"


class LabelStyle(BaseModel):
    """Road label font and background box."""

    model_config = ConfigDict(frozen=True)

    font_size: int = Field(default=28, ge=4, le=400)
    color: str = "#000000"
    background_color: Optional[str] = Field(
        default=None,
        description="Box fill behind road labels (map background when unset)",
    )
    border_color: str = "#80808096"
    corner_radius: float = Field(default=4.0, ge=0)


class WaterLabelStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    font_size: int = Field(default=22, ge=4, le=400)
    color: str = "#3B78A3"
    font_style: FontStyle = FontStyle.ITALIC
    halo_color: str = "#FFFFFF"
    halo_alpha: int = Field(default=230, ge=0, le=255)
    halo_width: int = Field(default=2, ge=0, le=20)


class PlaceLabelStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    font_size: int = Field(default=30, ge=4, le=400)
    color: str = "#333333"
    font_style: FontStyle = FontStyle.ITALIC
    halo_color: str = "#FFFFFF"
    halo_alpha: int = Field(default=230, ge=0, le=255)
    halo_width: int = Field(default=2, ge=0, le=20)


class MapStyleConfig(BaseModel):
    """Immutable style for one render.

    Passed explicitly into every service that draws; there is no global
    style instance.
    """

    model_config = ConfigDict(frozen=True)

    road_styles: dict[str, RoadStyle] = Field(default_factory=_default_road_styles)
    water_style: WaterStyle = Field(default_factory=WaterStyle)
    building_style: BuildingStyle = Field(default_factory=BuildingStyle)
    label_style: LabelStyle = Field(default_factory=LabelStyle)
    water_label_style: WaterLabelStyle = Field(default_factory=WaterLabelStyle)
    place_label_style: PlaceLabelStyle = Field(default_factory=PlaceLabelStyle)
    border_offset: float = Field(default=10.0, gt=0, description="Outline stroke width in working pixels")
    border_color: str = "#FF0000"
    background_color: str = "#F1EFE9"

    def road_style(self, category: str) -> RoadStyle:
        """Style for a road category, falling back to the ``default`` entry."""
        style = self.road_styles.get(category)
        if style is not None:
            return style
        return self.road_styles.get("default", DEFAULT_ROAD_STYLE)

    @classmethod
    def from_yaml(cls, path: Path) -> "MapStyleConfig":
        """Load a style file. Missing sections keep their defaults.

        A ``road_styles`` section is merged over the built-in road styles so
        a file only needs to list the categories it changes.
        """
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        road_overrides = data.pop("road_styles", None) or {}
        road_styles = {
            name: style.model_dump() for name, style in _default_road_styles().items()
        }
        for name, values in road_overrides.items():
            merged = dict(road_styles.get(name, DEFAULT_ROAD_STYLE.model_dump()))
            merged.update(values or {})
            road_styles[name] = merged

        return cls(road_styles=road_styles, **data)

    def to_yaml(self, path: Path) -> None:
        """Save style to YAML file."""
        data = self.model_dump(mode="json")
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
