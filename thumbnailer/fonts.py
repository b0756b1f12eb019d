"""
Font resource for the text operation.

The parsed font is cached per (path, size) for the life of the process;
failed loads are not cached and are retried on the next call.
"""

import logging
import os
from functools import lru_cache

from PIL import ImageFont

logger = logging.getLogger(__name__)

DEFAULT_FONT_PATH = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), 'resources', 'fonts', 'Lato-Regular.ttf'
)

# Fixed rendering scale in pixels
TEXT_SCALE = 12


@lru_cache(maxsize=8)
def load_font(path: str = DEFAULT_FONT_PATH, size: int = TEXT_SCALE) -> ImageFont.FreeTypeFont:
    """
    Load a TrueType/OpenType font.

    Raises:
        OSError: if the file is missing or cannot be parsed
    """
    logger.debug(f"Loading font {path} at {size}px")
    return ImageFont.truetype(path, size)
