"""Colour parsing and image file helpers shared by the drawing services."""

from pathlib import Path
from typing import Union

from PIL import Image


def hex_to_rgba(hex_color: str, alpha: int = 255) -> tuple[int, int, int, int]:
    """Convert a ``#RRGGBB`` or ``#RRGGBBAA`` string to an RGBA tuple.

    An explicit alpha byte in the string wins over ``alpha``. Malformed
    strings map to opaque-by-``alpha`` black.
    """
    hex_color = hex_color.lstrip("#")
    try:
        if len(hex_color) == 6:
            r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
        elif len(hex_color) == 8:
            r, g, b = int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16)
            alpha = int(hex_color[6:8], 16)
        else:
            r, g, b = 0, 0, 0
    except ValueError:
        r, g, b = 0, 0, 0
    return (r, g, b, alpha)


def with_alpha(color: str, alpha: int) -> tuple[int, int, int, int]:
    """Parse ``color`` and replace its alpha channel."""
    r, g, b, _ = hex_to_rgba(color)
    return (r, g, b, alpha)


def load_image(path: Union[str, Path]) -> Image.Image:
    """Open an image as RGBA."""
    return Image.open(path).convert("RGBA")


def save_image(image: Image.Image, path: Union[str, Path], quality: int = 95) -> None:
    """Write PNG or JPEG by suffix, creating parent directories.

    JPEG has no alpha channel, so RGBA pages are flattened onto white first.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if path.suffix.lower() in (".jpg", ".jpeg"):
        image = flatten(image)
        image.save(path, quality=quality)
    else:
        image.save(path)


def flatten(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite an RGBA image onto an opaque background, returning RGB."""
    if image.mode != "RGBA":
        return image.convert("RGB")
    base = Image.new("RGB", image.size, background)
    base.paste(image, mask=image.split()[3])
    return base
