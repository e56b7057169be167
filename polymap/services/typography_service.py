"""Font loading, text measurement and label drawing.

Placement decisions live in ``label_service``; this module only knows how
big a piece of text is and how to put it on an image.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from PIL import Image, ImageDraw, ImageFont

from ..models.style import LabelStyle
from ..utils.image_utils import hex_to_rgba, with_alpha

logger = logging.getLogger(__name__)

Font = ImageFont.FreeTypeFont | ImageFont.ImageFont


class FontWeight(str, Enum):
    NORMAL = "normal"
    SEMIBOLD = "semibold"
    BOLD = "bold"


# Candidate font files per (weight, italic), in preference order
_FONT_CANDIDATES: dict[tuple[FontWeight, bool], list[str]] = {
    (FontWeight.NORMAL, False): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/Library/Fonts/Arial.ttf",
        "C:/Windows/Fonts/arial.ttf",
        "DejaVuSans.ttf",
    ],
    (FontWeight.NORMAL, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Oblique.ttf",
        "/Library/Fonts/Arial Italic.ttf",
        "C:/Windows/Fonts/ariali.ttf",
        "DejaVuSans-Oblique.ttf",
    ],
    (FontWeight.SEMIBOLD, False): [
        "/usr/share/fonts/truetype/noto/NotoSans-SemiBold.ttf",
        "C:/Windows/Fonts/seguisb.ttf",
    ],
    (FontWeight.SEMIBOLD, True): [
        "/usr/share/fonts/truetype/noto/NotoSans-SemiBoldItalic.ttf",
        "C:/Windows/Fonts/seguisbi.ttf",
    ],
    (FontWeight.BOLD, False): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/Library/Fonts/Arial Bold.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
        "DejaVuSans-Bold.ttf",
    ],
    (FontWeight.BOLD, True): [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-BoldOblique.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-BoldItalic.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-BoldOblique.ttf",
        "/Library/Fonts/Arial Bold Italic.ttf",
        "C:/Windows/Fonts/arialbi.ttf",
        "DejaVuSans-BoldOblique.ttf",
    ],
}

# Where a weight or slant has no font of its own, try these next
_FALLBACK_ORDER: dict[tuple[FontWeight, bool], list[tuple[FontWeight, bool]]] = {
    (FontWeight.SEMIBOLD, False): [(FontWeight.BOLD, False), (FontWeight.NORMAL, False)],
    (FontWeight.SEMIBOLD, True): [(FontWeight.BOLD, True), (FontWeight.NORMAL, True), (FontWeight.NORMAL, False)],
    (FontWeight.BOLD, False): [(FontWeight.NORMAL, False)],
    (FontWeight.BOLD, True): [(FontWeight.NORMAL, True), (FontWeight.NORMAL, False)],
    (FontWeight.NORMAL, True): [(FontWeight.NORMAL, False)],
}


class TypographyService:
    """Loads fonts and draws label text.

    Fonts are cached per (size, weight, italic). When no TrueType font is
    found the Pillow built-in font is used, so rendering never fails for
    lack of fonts. The cache is locked, so one instance can be shared by
    jobs running in worker threads.
    """

    def __init__(self):
        self._font_cache: dict[tuple[int, FontWeight, bool], Font] = {}
        self._warned_fallback = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Fonts
    # ------------------------------------------------------------------

    def font(
        self,
        size: float,
        weight: FontWeight = FontWeight.NORMAL,
        italic: bool = False,
    ) -> Font:
        """Get a font, loading it on first use.

        Args:
            size: Pixel size; rounded to an integer, at least 1.
            weight: Normal, semibold or bold.
            italic: Use the italic/oblique face when available.

        Returns:
            A PIL font object.
        """
        size = max(1, int(round(size)))
        key = (size, weight, italic)
        with self._lock:
            cached = self._font_cache.get(key)
            if cached is not None:
                return cached

            font = self._load_font(size, weight, italic)
            self._font_cache[key] = font
            return font

    def _load_font(self, size: int, weight: FontWeight, italic: bool) -> Font:
        variants = [(weight, italic)] + _FALLBACK_ORDER.get((weight, italic), [])
        for variant in variants:
            for path in _FONT_CANDIDATES[variant]:
                try:
                    return ImageFont.truetype(path, size)
                except OSError:
                    continue

        if not self._warned_fallback:
            logger.warning("No TrueType font found; using the Pillow default font")
            self._warned_fallback = True
        return ImageFont.load_default(size)

    # ------------------------------------------------------------------
    # Measurement
    # ------------------------------------------------------------------

    @staticmethod
    def measure(text: str, font: Font) -> tuple[float, float]:
        """Width and height of the inked text."""
        left, top, right, bottom = font.getbbox(text)
        return (float(right - left), float(bottom - top))

    def label_rect(
        self,
        text: str,
        font: Font,
        padding: float = 0.0,
    ) -> tuple[float, float, float, float]:
        """Text box centred on the anchor, inflated by ``padding`` on each side.

        Returns:
            ``(left, top, right, bottom)`` relative to the anchor.
        """
        width, height = self.measure(text, font)
        half_w = width / 2.0 + padding
        half_h = height / 2.0 + padding
        return (-half_w, -half_h, half_w, half_h)

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def draw_road_label(
        self,
        image: Image.Image,
        text: str,
        anchor: tuple[float, float],
        angle: float,
        font: Font,
        style: LabelStyle,
        background_color: str,
        padding: float = 8.0,
    ) -> None:
        """Draw text on a rounded box, rotated to follow the road.

        Args:
            image: Target RGBA page.
            text: Label text.
            anchor: Box centre in page pixels.
            angle: Clockwise rotation in degrees (y-down page).
            font: PIL font to use.
            style: Text colour, box border and corner radius.
            background_color: Box fill when the style sets none.
            padding: Space between text and box edge.
        """
        left, top, right, bottom = font.getbbox(text)
        text_w, text_h = right - left, bottom - top
        box_w = int(round(text_w + 2 * padding))
        box_h = int(round(text_h + 2 * padding))
        if box_w <= 0 or box_h <= 0:
            return

        label_img = Image.new("RGBA", (box_w + 2, box_h + 2), (0, 0, 0, 0))
        draw = ImageDraw.Draw(label_img)
        draw.rounded_rectangle(
            (1, 1, box_w, box_h),
            radius=style.corner_radius,
            fill=hex_to_rgba(style.background_color or background_color),
            outline=hex_to_rgba(style.border_color),
            width=1,
        )
        draw.text(
            (1 + padding - left, 1 + padding - top),
            text,
            font=font,
            fill=hex_to_rgba(style.color),
        )
        self._paste_centered(image, label_img, anchor, angle)

    def draw_halo_label(
        self,
        image: Image.Image,
        text: str,
        anchor: tuple[float, float],
        font: Font,
        color: str,
        halo_color: Optional[str] = "#FFFFFF",
        halo_alpha: int = 230,
        halo_width: int = 2,
        angle: float = 0.0,
    ) -> None:
        """Render text with a halo for legibility.

        The halo is the text drawn in ``halo_color`` offset by ``halo_width``
        pixels in the 8 compass directions, with the text drawn on top.
        """
        if not text.strip():
            return

        left, top, right, bottom = font.getbbox(text)
        text_w, text_h = right - left, bottom - top
        pad = halo_width + 2
        canvas_w = int(text_w + pad * 2)
        canvas_h = int(text_h + pad * 2)
        if canvas_w <= 0 or canvas_h <= 0:
            return

        text_img = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
        draw = ImageDraw.Draw(text_img)
        draw_x = pad - left
        draw_y = pad - top

        if halo_color and halo_width > 0:
            fill = with_alpha(halo_color, halo_alpha)
            offsets = [
                (0, -halo_width),
                (halo_width, -halo_width),
                (halo_width, 0),
                (halo_width, halo_width),
                (0, halo_width),
                (-halo_width, halo_width),
                (-halo_width, 0),
                (-halo_width, -halo_width),
            ]
            for dx, dy in offsets:
                draw.text((draw_x + dx, draw_y + dy), text, font=font, fill=fill)

        draw.text((draw_x, draw_y), text, font=font, fill=hex_to_rgba(color))
        self._paste_centered(image, text_img, anchor, angle)

    @staticmethod
    def _paste_centered(
        image: Image.Image,
        piece: Image.Image,
        anchor: tuple[float, float],
        angle: float,
    ) -> None:
        if abs(angle) > 0.01:
            # PIL rotates counter-clockwise; page angles are clockwise
            piece = piece.rotate(-angle, resample=Image.BICUBIC, expand=True)

        paste_x = int(round(anchor[0] - piece.width / 2.0))
        paste_y = int(round(anchor[1] - piece.height / 2.0))

        img_w, img_h = image.size
        if (
            paste_x + piece.width < 0
            or paste_y + piece.height < 0
            or paste_x >= img_w
            or paste_y >= img_h
        ):
            return

        image.paste(piece, (paste_x, paste_y), piece)
