"""
StaticThumbnail - Immutable, fully loaded image used as an overlay source.
"""

from pathlib import Path

from PIL import Image


class StaticThumbnail:
    """
    Snapshot of an image and the path it came from.

    The image is copied on construction so later changes to the source
    buffer never reach the snapshot.
    """

    __slots__ = ('_src_path', '_image')

    def __init__(self, src_path, image: Image.Image):
        self._src_path = Path(src_path)
        self._image = image.copy()

    @property
    def src_path(self) -> Path:
        return self._src_path

    @property
    def width(self) -> int:
        return self._image.width

    @property
    def height(self) -> int:
        return self._image.height

    def as_rgba(self) -> Image.Image:
        """Return an RGBA copy of the snapshot."""
        return self._image.convert('RGBA')

    def __repr__(self) -> str:
        return f"StaticThumbnail({str(self._src_path)!r}, {self.width}x{self.height})"
