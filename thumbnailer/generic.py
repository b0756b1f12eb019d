"""
GenericThumbnail - Operation queueing shared by Thumbnail and ThumbnailCollection.
"""

from typing import List, Optional, Tuple

from .operations import (
    BlurOp, BrightenOp, CombineOp, ContrastOp, CropOp, ExifOp, FlipOp, HueRotateOp,
    InvertOp, Operation, ResizeOp, RotateOp, TextOp, UnsharpenOp,
)
from .options import BoxPosition, Crop, Exif, Orientation, ResampleFilter, Resize, Rotation
from .static_thumbnail import StaticThumbnail


class GenericThumbnail:
    """
    Mixin holding a FIFO queue of deferred operations.

    Queueing never looks at image data and never fails; parameters are only
    checked when the queue is applied. Every queueing method returns the
    owner so calls can be chained.
    """

    def __init__(self):
        self._operations: List[Operation] = []

    @property
    def operations(self) -> Tuple[Operation, ...]:
        """Snapshot of the queued operations."""
        return tuple(self._operations)

    def add_operation(self, operation: Operation):
        self._operations.append(operation)
        return self

    def clear_operations(self) -> None:
        self._operations.clear()

    def resize(self, size: Resize):
        return self.add_operation(ResizeOp(size))

    def resize_filter(self, size: Resize, resample: ResampleFilter):
        return self.add_operation(ResizeOp(size, resample))

    def blur(self, sigma: float):
        return self.add_operation(BlurOp(sigma))

    def brighten(self, value: int):
        return self.add_operation(BrightenOp(value))

    def huerotate(self, degrees: int):
        return self.add_operation(HueRotateOp(degrees))

    def contrast(self, value: float):
        return self.add_operation(ContrastOp(value))

    def unsharpen(self, sigma: float, threshold: int):
        return self.add_operation(UnsharpenOp(sigma, threshold))

    def crop(self, crop: Crop):
        return self.add_operation(CropOp(crop))

    def flip(self, orientation: Orientation):
        return self.add_operation(FlipOp(orientation))

    def invert(self):
        return self.add_operation(InvertOp())

    def rotate(self, rotation: Rotation):
        return self.add_operation(RotateOp(rotation))

    def exif(self, metadata: Exif):
        return self.add_operation(ExifOp(metadata))

    def text(self, text: str, position: BoxPosition, font_path: Optional[str] = None):
        return self.add_operation(TextOp(text, position, font_path))

    def combine(self, image: StaticThumbnail, position: BoxPosition):
        return self.add_operation(CombineOp(image, position))
