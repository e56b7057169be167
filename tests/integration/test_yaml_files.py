"""Style and settings files written by one run load back unchanged."""

from polymap.models.settings import LabelSettings, PageSettings, RenderSettings
from polymap.models.style import MapStyleConfig, RoadStyle


def test_style_file_round_trip(tmp_path):
    road_styles = dict(MapStyleConfig().road_styles, track=RoadStyle(color="#806040", width=1.0))
    style = MapStyleConfig(border_color="#00FF00", border_offset=14.0, road_styles=road_styles)
    path = tmp_path / "style.yaml"

    style.to_yaml(path)
    loaded = MapStyleConfig.from_yaml(path)

    assert loaded == style
    assert loaded.road_style("track").color == "#806040"


def test_settings_file_round_trip(tmp_path):
    settings = RenderSettings(
        page=PageSettings(width=800, height=600, margin=0.05),
        labels=LabelSettings(excluded_road_categories=("service",), window=3),
    )
    path = tmp_path / "settings.yaml"

    settings.to_yaml(path)

    assert RenderSettings.from_yaml(path) == settings
