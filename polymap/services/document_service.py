"""PDF document assembly with Pillow."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

from PIL import Image, ImageDraw

from ..utils.image_utils import flatten
from .typography_service import FontWeight, TypographyService

logger = logging.getLogger(__name__)

# A4 in points
A4_POINTS = (595.0, 842.0)
PAGE_MARGIN_PT = 10.0
HEADER_HEIGHT_PT = 50.0
TITLE_SIZE_PT = 14.0
TIMESTAMP_SIZE_PT = 8.0


class DocumentService:
    """Lays a rendered map out on an A4 page with a small header."""

    def __init__(self, dpi: int = 300, typography: Optional[TypographyService] = None):
        self.dpi = dpi
        self.typography = typography or TypographyService()

    def _px(self, points: float) -> int:
        return int(round(points / 72.0 * self.dpi))

    @property
    def page_size(self) -> tuple[int, int]:
        return (self._px(A4_POINTS[0]), self._px(A4_POINTS[1]))

    def content_box(self) -> tuple[int, int, int, int]:
        """Area below the header available to the map, as ``(x1, y1, x2, y2)``."""
        width, height = self.page_size
        margin = self._px(PAGE_MARGIN_PT)
        return (margin, margin + self._px(HEADER_HEIGHT_PT), width - margin, height - margin)

    def compose_page(
        self,
        image: Image.Image,
        title: str,
        generated_at: Optional[datetime] = None,
    ) -> Image.Image:
        """Build the page raster.

        Args:
            image: Rendered map.
            title: Shown as ``Map from KML: <title>``.
            generated_at: Timestamp for the header; now when unset.

        Returns:
            RGB page image at the service's dpi.
        """
        generated_at = generated_at or datetime.now()
        page = Image.new("RGB", self.page_size, (255, 255, 255))
        draw = ImageDraw.Draw(page)

        margin = self._px(PAGE_MARGIN_PT)
        title_font = self.typography.font(self._px(TITLE_SIZE_PT), FontWeight.BOLD)
        stamp_font = self.typography.font(self._px(TIMESTAMP_SIZE_PT))
        draw.text((margin, margin), f"Map from KML: {title}", font=title_font, fill=(0, 0, 0))
        _, title_height = self.typography.measure("Map", title_font)
        draw.text(
            (margin, margin + title_height * 1.5),
            f"Generated: {generated_at:%Y-%m-%d %H:%M}",
            font=stamp_font,
            fill=(0, 0, 0),
        )

        # Fit the map into the content area, keeping its aspect ratio
        x1, y1, x2, y2 = self.content_box()
        box_w, box_h = x2 - x1, y2 - y1
        ratio = min(box_w / image.width, box_h / image.height)
        fitted_size = (max(1, int(image.width * ratio)), max(1, int(image.height * ratio)))
        fitted = flatten(image).resize(fitted_size, Image.Resampling.LANCZOS)
        page.paste(
            fitted,
            (x1 + (box_w - fitted_size[0]) // 2, y1 + (box_h - fitted_size[1]) // 2),
        )
        return page

    def write_pdf(
        self,
        image: Image.Image,
        path: Union[str, Path],
        title: str,
        generated_at: Optional[datetime] = None,
    ) -> Path:
        """Write a single-page PDF holding the map."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        page = self.compose_page(image, title, generated_at)
        page.save(path, "PDF", resolution=float(self.dpi))
        logger.info("Wrote PDF: %s", path)
        return path
