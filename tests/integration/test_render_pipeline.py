"""End-to-end render of a boundary with a small feature set."""

import pytest

from polymap.models.features import FeatureSet
from polymap.models.geo import Polygon
from polymap.models.labels import LabelKind
from polymap.services.render_service import RenderService, road_draw_rank


@pytest.fixture
def renderer(small_settings):
    return RenderService(settings=small_settings)


@pytest.fixture
def result(renderer, square_polygon, sample_features):
    return renderer.render(square_polygon, sample_features)


class TestRenderPipeline:
    def test_page_image(self, result, small_page):
        assert result.image.mode == "RGBA"
        assert result.image.size == (small_page.width, small_page.height)

    def test_square_is_not_rotated(self, result):
        assert result.orientation.angle == pytest.approx(0.0, abs=1e-6)

    def test_main_road_selected(self, result):
        assert result.selected_roads == {0}
        assert result.context_roads == set()

    def test_one_vertical_road_label(self, result):
        road_labels = [label for label in result.labels if label.kind == LabelKind.ROAD]
        assert len(road_labels) == 1
        assert road_labels[0].text == "Main Street"
        assert abs(road_labels[0].angle) == pytest.approx(90.0)

    def test_labels_do_not_overlap(self, result):
        boxes = [label.box for label in result.labels]
        for i, a in enumerate(boxes):
            for b in boxes[i + 1:]:
                assert a[2] <= b[0] or b[2] <= a[0] or a[3] <= b[1] or b[3] <= a[1]

    def test_outside_is_masked(self, result):
        r, g, b, _ = result.image.getpixel((2, 2))
        assert r == g == b

    def test_outline_drawn_in_border_colour(self, result, renderer):
        colors = {color for _, color in result.image.getcolors(1 << 20)}
        assert (255, 0, 0, 255) in colors
        assert renderer.style.border_color.upper() == "#FF0000"

    def test_renders_are_independent(self, renderer, square_polygon, sample_features, result):
        again = renderer.render(square_polygon, sample_features)
        assert again.image.tobytes() == result.image.tobytes()
        assert [label.anchor for label in again.labels] == [label.anchor for label in result.labels]


class TestRenderEdgeCases:
    def test_missing_polygon(self, renderer, sample_features):
        with pytest.raises(ValueError):
            renderer.render(None, sample_features)

    def test_missing_features(self, renderer, square_polygon):
        with pytest.raises(ValueError):
            renderer.render(square_polygon, None)

    def test_wide_boundary_turned_for_portrait_page(self, renderer):
        wide = Polygon.from_lon_lat([(0.0, 0.0), (0.02, 0.0), (0.02, 0.01), (0.0, 0.01)])
        result = renderer.render(wide, FeatureSet())
        assert abs(result.orientation.angle) == pytest.approx(90.0)
        assert result.labels == []

    def test_single_point_boundary(self, renderer, sample_features):
        point = Polygon.from_lon_lat([(0.005, 0.005)])
        result = renderer.render(point, sample_features)
        assert result.image.size == (500, 650)


def test_draw_rank():
    assert road_draw_rank("motorway") > road_draw_rank("primary") > road_draw_rank("residential")
    assert road_draw_rank("bridleway") == -1
