"""
Thumbnail - A single, modifiable image with its own operation queue.
"""

from pathlib import Path
from typing import List

from PIL import Image

from .data import ThumbnailData, is_loadable
from .errors import ThumbnailConsumedError
from .generic import GenericThumbnail
from .static_thumbnail import StaticThumbnail
from .target import Target


class Thumbnail(GenericThumbnail):
    """
    Represents a single, modifiable image.

    Operations are queued with the GenericThumbnail methods and run by
    ``apply``. ``store`` and ``apply_store`` are terminal: the handle cannot
    be used afterwards. The ``_keep`` variants leave it usable.
    """

    def __init__(self, data: ThumbnailData):
        super().__init__()
        self._data = data

    @classmethod
    def load(cls, path) -> 'Thumbnail':
        """
        Create a Thumbnail from the image file at ``path``.

        The file is opened and its format detected, but pixel data is only
        decoded when operations are applied or the image is stored.

        Raises:
            NotFoundError: if the file could not be found
            NotSupportedError: if the file is of an unsupported type
            ImageIOError: if an error occurred while accessing the file
        """
        return cls(ThumbnailData.load(path))

    @classmethod
    def from_image(cls, path_name, image: Image.Image) -> 'Thumbnail':
        """Create a Thumbnail from a decoded image; ``path_name`` names the output."""
        return cls(ThumbnailData.from_image(path_name, image))

    @staticmethod
    def can_load(path) -> bool:
        """Check whether ``path`` is a file that could be loaded."""
        return is_loadable(path)

    @property
    def data(self) -> ThumbnailData:
        if self._data is None:
            raise ThumbnailConsumedError("Thumbnail was consumed by a store call")
        return self._data

    @property
    def path(self) -> Path:
        return self.data.path

    @property
    def image(self) -> Image.Image:
        """The current image, decoded on first access."""
        return self.data.resident_image()

    def into_data(self) -> ThumbnailData:
        """Give up the underlying ThumbnailData; the handle is consumed."""
        data = self.data
        self._data = None
        return data

    def clone_static_copy(self) -> StaticThumbnail:
        """
        Snapshot the current image for use as an overlay.

        This loads the image into memory first.
        """
        return StaticThumbnail(self.path, self.data.resident_image())

    def try_clone_and_load(self) -> 'Thumbnail':
        """
        Load the image into memory, then clone the handle and its queue.

        Loading first keeps the two handles from sharing one open file.
        """
        clone = Thumbnail(self.data.try_clone_and_load())
        clone._operations = list(self._operations)
        return clone

    def apply(self) -> 'Thumbnail':
        """
        Apply queued operations in order and clear the queue.

        Raises:
            OperationError: first failing operation; the queue is kept and the
                image reflects the operations that succeeded before it
            FileError: if the image cannot be loaded
        """
        self.data.apply_operations(self._operations)
        self._operations.clear()
        return self

    def apply_store(self, target: Target) -> List[Path]:
        self.apply()
        return self.store(target)

    def apply_store_keep(self, target: Target) -> List[Path]:
        self.apply()
        return self.store_keep(target)

    def store(self, target: Target) -> List[Path]:
        """
        Store the current image to every destination of ``target``.

        Returns:
            Paths written

        Raises:
            StoreError: if any destination failed
        """
        return target.store(self.into_data())

    def store_keep(self, target: Target) -> List[Path]:
        return target.store(self.data)

    def __repr__(self) -> str:
        state = repr(self._data) if self._data is not None else 'consumed'
        return f"Thumbnail({state}, {len(self._operations)} queued)"
