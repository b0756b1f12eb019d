"""
Option value types used to parameterize queued operations.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from PIL import Image


@dataclass(frozen=True)
class Resize:
    """
    Target size for a resize operation.

    Attributes:
        mode: One of 'height', 'width', 'bounding_box', 'exact_box'
        width: Target width (unused for 'height')
        height: Target height (unused for 'width')
    """
    mode: str
    width: int = 0
    height: int = 0

    @classmethod
    def height_of(cls, height: int) -> 'Resize':
        return cls('height', height=height)

    @classmethod
    def width_of(cls, width: int) -> 'Resize':
        return cls('width', width=width)

    @classmethod
    def bounding_box(cls, width: int, height: int) -> 'Resize':
        return cls('bounding_box', width, height)

    @classmethod
    def exact_box(cls, width: int, height: int) -> 'Resize':
        return cls('exact_box', width, height)


@dataclass(frozen=True)
class Crop:
    """
    Crop region: an exact box or a centered width:height ratio.

    Attributes:
        mode: 'box' or 'ratio'
        x, y, width, height: Box geometry (mode 'box')
        width_ratio, height_ratio: Aspect ratio (mode 'ratio')
    """
    mode: str
    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    width_ratio: float = 0.0
    height_ratio: float = 0.0

    @classmethod
    def box(cls, x: int, y: int, width: int, height: int) -> 'Crop':
        return cls('box', x=x, y=y, width=width, height=height)

    @classmethod
    def ratio(cls, width_ratio: float, height_ratio: float) -> 'Crop':
        return cls('ratio', width_ratio=width_ratio, height_ratio=height_ratio)


@dataclass(frozen=True)
class BoxPosition:
    """
    Anchor for placing a box (text or overlay) on an image.

    The point (x, y) is where the named corner of the box is placed.
    """
    corner: str
    x: int
    y: int

    @classmethod
    def top_left(cls, x: int, y: int) -> 'BoxPosition':
        return cls('top_left', x, y)

    @classmethod
    def top_right(cls, x: int, y: int) -> 'BoxPosition':
        return cls('top_right', x, y)

    @classmethod
    def bottom_left(cls, x: int, y: int) -> 'BoxPosition':
        return cls('bottom_left', x, y)

    @classmethod
    def bottom_right(cls, x: int, y: int) -> 'BoxPosition':
        return cls('bottom_right', x, y)

    def origin(self, box_width: int, box_height: int) -> Tuple[int, int]:
        """
        Top-left origin for a box of the given size.

        Raises ValueError if the box would start left of or above the canvas.
        """
        x, y = self.x, self.y
        if self.corner in ('top_right', 'bottom_right'):
            x -= box_width
        if self.corner in ('bottom_left', 'bottom_right'):
            y -= box_height
        if x < 0 or y < 0:
            raise ValueError(f"{self} places a {box_width}x{box_height} box outside the canvas")
        return x, y


class Orientation(Enum):
    VERTICAL = 'vertical'
    HORIZONTAL = 'horizontal'


class Rotation(Enum):
    """Clockwise rotation; the value is the number of quarter turns."""
    ROTATE_90 = 1
    ROTATE_180 = 2
    ROTATE_270 = 3


class ResampleFilter(Enum):
    NEAREST = 'nearest'
    TRIANGLE = 'triangle'
    CATMULL_ROM = 'catmull_rom'
    GAUSSIAN = 'gaussian'
    LANCZOS3 = 'lanczos3'

    @property
    def pillow_filter(self) -> Image.Resampling:
        return _PILLOW_FILTERS[self]


_PILLOW_FILTERS = {
    ResampleFilter.NEAREST: Image.Resampling.NEAREST,
    ResampleFilter.TRIANGLE: Image.Resampling.BILINEAR,
    ResampleFilter.CATMULL_ROM: Image.Resampling.BICUBIC,
    ResampleFilter.GAUSSIAN: Image.Resampling.HAMMING,
    ResampleFilter.LANCZOS3: Image.Resampling.LANCZOS,
}


@dataclass(frozen=True)
class Exif:
    """
    Metadata policy: 'keep', 'clear', 'whitelist' or 'blacklist' of tag ids.
    """
    policy: str
    tags: Tuple[int, ...] = ()

    @classmethod
    def keep(cls) -> 'Exif':
        return cls('keep')

    @classmethod
    def clear(cls) -> 'Exif':
        return cls('clear')

    @classmethod
    def whitelist(cls, tags) -> 'Exif':
        return cls('whitelist', tuple(tags))

    @classmethod
    def blacklist(cls, tags) -> 'Exif':
        return cls('blacklist', tuple(tags))
