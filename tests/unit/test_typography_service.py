"""Tests for polymap.services.typography_service."""

import logging
from concurrent.futures import ThreadPoolExecutor

import pytest
from PIL import Image, ImageChops

from polymap.models.style import LabelStyle
from polymap.services import typography_service
from polymap.services.typography_service import FontWeight, TypographyService


@pytest.fixture
def typography():
    return TypographyService()


def blank(size=(400, 400)):
    return Image.new("RGBA", size, (240, 240, 240, 255))


def ink_box(image):
    return ImageChops.difference(image, blank(image.size)).getbbox()


class TestFonts:
    def test_fonts_are_cached(self, typography):
        assert typography.font(20) is typography.font(20.2)
        assert typography.font(20) is not typography.font(20, FontWeight.BOLD)

    def test_size_is_at_least_one(self, typography):
        assert typography.font(0) is typography.font(1)

    def test_semibold_and_italic_always_load(self, typography):
        assert typography.font(18, FontWeight.SEMIBOLD, italic=True) is not None

    def test_missing_fonts_fall_back_once(self, monkeypatch, caplog):
        missing = {key: ["/nonexistent/font.ttf"] for key in typography_service._FONT_CANDIDATES}
        monkeypatch.setattr(typography_service, "_FONT_CANDIDATES", missing)
        service = TypographyService()

        with caplog.at_level(logging.WARNING, logger="polymap.services.typography_service"):
            first = service.font(16)
            service.font(24, FontWeight.BOLD)

        assert first.getbbox("Abc")[2] > 0
        warnings = [r for r in caplog.records if "No TrueType font" in r.getMessage()]
        assert len(warnings) == 1

    def test_shared_cache_across_threads(self, typography):
        with ThreadPoolExecutor(max_workers=8) as pool:
            fonts = list(pool.map(lambda _: typography.font(33, FontWeight.BOLD), range(32)))
        assert all(font is fonts[0] for font in fonts)
        assert typography.font(33, FontWeight.BOLD) is fonts[0]

    def test_fallback_warns_once_across_threads(self, monkeypatch, caplog):
        missing = {key: ["/nonexistent/font.ttf"] for key in typography_service._FONT_CANDIDATES}
        monkeypatch.setattr(typography_service, "_FONT_CANDIDATES", missing)
        service = TypographyService()

        with caplog.at_level(logging.WARNING, logger="polymap.services.typography_service"):
            with ThreadPoolExecutor(max_workers=8) as pool:
                list(pool.map(service.font, range(10, 42)))

        warnings = [r for r in caplog.records if "No TrueType font" in r.getMessage()]
        assert len(warnings) == 1


class TestMeasurement:
    def test_label_rect_is_centred(self, typography):
        font = typography.font(24)
        left, top, right, bottom = typography.label_rect("Main Street", font)
        assert left == pytest.approx(-right)
        assert top == pytest.approx(-bottom)
        assert right > bottom

    def test_padding_added_on_each_side(self, typography):
        font = typography.font(24)
        plain = typography.label_rect("Main Street", font)
        padded = typography.label_rect("Main Street", font, padding=5)
        assert padded[2] - padded[0] == pytest.approx(plain[2] - plain[0] + 10)
        assert padded[3] - padded[1] == pytest.approx(plain[3] - plain[1] + 10)

    def test_longer_text_is_wider(self, typography):
        font = typography.font(24)
        assert typography.measure("Main Street West", font)[0] > typography.measure("Main", font)[0]


class TestDrawing:
    def test_road_label_follows_rotation(self, typography):
        font = typography.font(24)
        style = LabelStyle()

        flat = blank()
        typography.draw_road_label(flat, "Main Street", (200, 200), 0.0, font, style, "#FFFFFF")
        upright = blank()
        typography.draw_road_label(upright, "Main Street", (200, 200), 90.0, font, style, "#FFFFFF")

        fx1, fy1, fx2, fy2 = ink_box(flat)
        ux1, uy1, ux2, uy2 = ink_box(upright)
        assert fx2 - fx1 > fy2 - fy1
        assert uy2 - uy1 > ux2 - ux1

    def test_label_centred_on_anchor(self, typography):
        image = blank()
        typography.draw_road_label(image, "Centre", (200, 150), 0.0, typography.font(24), LabelStyle(), "#FFFFFF")
        x1, y1, x2, y2 = ink_box(image)
        assert (x1 + x2) / 2 == pytest.approx(200, abs=2)
        assert (y1 + y2) / 2 == pytest.approx(150, abs=2)

    def test_halo_label_draws(self, typography):
        image = blank()
        typography.draw_halo_label(image, "Mirror Lake", (200, 200), typography.font(22), "#1A5276")
        assert ink_box(image) is not None

    def test_blank_text_draws_nothing(self, typography):
        image = blank()
        typography.draw_halo_label(image, "   ", (200, 200), typography.font(22), "#000000")
        assert ink_box(image) is None

    def test_offscreen_label_ignored(self, typography):
        image = blank()
        typography.draw_road_label(image, "Far", (5000, 5000), 0.0, typography.font(24), LabelStyle(), "#FFFFFF")
        assert ink_box(image) is None
