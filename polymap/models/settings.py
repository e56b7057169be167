"""Render geometry and layout tuning parameters."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field


class PageSettings(BaseModel):
    """Output canvas size and the margin kept free around the polygon."""

    model_config = ConfigDict(frozen=True)

    width: int = Field(default=2500, ge=16, le=20000, description="Canvas width in pixels")
    height: int = Field(default=3250, ge=16, le=20000, description="Canvas height in pixels")
    margin: float = Field(
        default=0.1,
        ge=0.0,
        lt=1.0,
        description="Fraction of the canvas left around the polygon (0.0 = polygon fills canvas)",
    )
    polygon_padding: float = Field(default=0.1, ge=0.0, description="Proportional padding of the polygon box")
    context_padding: float = Field(default=0.5, ge=0.0, description="Extra padding for surrounding context")

    @property
    def aspect_ratio(self) -> float:
        """Width / height."""
        return self.width / self.height

    @property
    def effective_size(self) -> tuple[float, float]:
        """Canvas area available to the polygon after the margin."""
        return (self.width * (1.0 - self.margin), self.height * (1.0 - self.margin))


class OrientationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_point_threshold: int = Field(
        default=10,
        ge=1,
        description="Boundaries with fewer points whose hull collapses to a line are oriented as lines",
    )
    min_edge_length: float = Field(default=1e-5, gt=0)


class NetworkSettings(BaseModel):
    """Road connectivity filtering."""

    model_config = ConfigDict(frozen=True)

    anchor_categories: tuple[str, ...] = ("motorway", "trunk", "primary", "secondary")
    border_threshold: float = Field(default=2.0, ge=0.0, description="Pixels from a boundary vertex")
    max_stub_nodes: int = Field(default=3, ge=1)


class LabelSettings(BaseModel):
    """Label placement parameters, in page pixels."""

    model_config = ConfigDict(frozen=True)

    min_label_distance: float = Field(default=800.0, ge=0.0, description="Between labels with the same text")
    min_segment_length: float = Field(default=80.0, ge=0.0)
    window: int = Field(default=2, ge=2)
    inside_fraction: float = Field(default=0.75, ge=0.0, le=1.0)
    label_spacing: float = Field(default=1200.0, gt=0.0, description="Between labels on the same road")
    max_nudge_attempts: int = Field(default=12, ge=1)
    nudge_step: float = Field(default=24.0, ge=0.0)
    label_padding: float = Field(default=8.0, ge=0.0, description="Box padding around label text")
    wide_font_scale: float = Field(default=1.2, gt=0.0)
    excluded_road_categories: tuple[str, ...] = (
        "service",
        "residential",
        "track",
        "footway",
        "path",
        "cycleway",
        "bridleway",
        "steps",
        "pedestrian",
    )
    wide_road_categories: tuple[str, ...] = ("motorway", "trunk", "primary", "secondary")
    min_water_label_area: float = Field(default=500.0, ge=0.0)
    water_grid_area: float = Field(default=5000.0, ge=0.0)
    water_grid_size: int = Field(default=5, ge=2)


class RenderSettings(BaseModel):
    """Everything geometric about a render, separate from colours and fonts."""

    model_config = ConfigDict(frozen=True)

    page: PageSettings = Field(default_factory=PageSettings)
    orientation: OrientationSettings = Field(default_factory=OrientationSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)
    labels: LabelSettings = Field(default_factory=LabelSettings)
    mask_brightness: float = Field(default=0.8, ge=0.0, le=1.0)
    draw_context_roads: bool = Field(
        default=True,
        description="Draw roads that never enter the polygon (they end up under the mask)",
    )

    @classmethod
    def from_yaml(cls, path: Path) -> "RenderSettings":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: Path) -> None:
        data = self.model_dump(mode="json")
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
