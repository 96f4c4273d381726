import math
from typing import Tuple

from .models import BoundingBox, DisplayRect, FontBounds, ImageSize, OverlayPlacement

# Font clamp for an overlay covering a whole selection
REGION_FONT_BOUNDS: FontBounds = (12, 32)
# Per-block regions are usually smaller
BLOCK_FONT_BOUNDS: FontBounds = (10, 24)

FONT_AREA_FACTOR = 0.8

def calculate_font_size(width: float, height: float, text_length: int,
                        min_size: float = 10, max_size: float = 32) -> float:
    """Area-per-character heuristic: longer text in the same box gets smaller"""
    area = width * height
    size = math.sqrt(area / max(text_length, 1)) * FONT_AREA_FACTOR
    return min(max(min_size, size), max_size)

def scale_factors(display_rect: DisplayRect, natural_size: ImageSize) -> Tuple[float, float]:
    natural_width = natural_size.width if natural_size.width > 0 else display_rect.width
    natural_height = natural_size.height if natural_size.height > 0 else display_rect.height
    scale_x = display_rect.width / natural_width if natural_width else 1.0
    scale_y = display_rect.height / natural_height if natural_height else 1.0
    return scale_x, scale_y

def placement(bbox: BoundingBox, translated_text: str, display_rect: DisplayRect,
              natural_size: ImageSize, scroll: Tuple[float, float] = (0, 0),
              font_bounds: FontBounds = BLOCK_FONT_BOUNDS) -> OverlayPlacement:
    """Map a box from recognized image pixels to display coordinates.

    The recognized image is in natural pixels; it is shown at display_rect,
    which differs by responsive scaling and by the device pixel ratio used
    at capture time.
    """
    scale_x, scale_y = scale_factors(display_rect, natural_size)
    scroll_x, scroll_y = scroll

    left = display_rect.left + scroll_x + bbox.x0 * scale_x
    top = display_rect.top + scroll_y + bbox.y0 * scale_y
    width = bbox.width * scale_x
    height = bbox.height * scale_y

    min_size, max_size = font_bounds
    font_size = calculate_font_size(width, height, len(translated_text), min_size, max_size)
    return OverlayPlacement(left, top, width, height, font_size)

def region_placement(display_rect: DisplayRect, translated_text: str,
                     scroll: Tuple[float, float] = (0, 0)) -> OverlayPlacement:
    """Overlay covering an entire selection"""
    min_size, max_size = REGION_FONT_BOUNDS
    font_size = calculate_font_size(display_rect.width, display_rect.height,
                                    len(translated_text), min_size, max_size)
    return OverlayPlacement(display_rect.left + scroll[0], display_rect.top + scroll[1],
                            display_rect.width, display_rect.height, font_size)

def device_crop_rect(rect: DisplayRect, device_pixel_ratio: float = 1.0) -> Tuple[int, int, int, int]:
    """Physical-pixel (x, y, width, height) of a logical rectangle"""
    dpr = device_pixel_ratio or 1.0
    return (
        round(rect.left * dpr),
        round(rect.top * dpr),
        round(rect.width * dpr),
        round(rect.height * dpr),
    )
