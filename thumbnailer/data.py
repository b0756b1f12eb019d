"""
ThumbnailData - Source path plus lazily loaded image data.

The image is in exactly one of three states:

    FileHandle  open file and its detected format, nothing decoded yet
    Resident    decoded Pillow image in memory
    Failed      decoding failed; the error is re-raised on every access

FileHandle becomes Resident on first access and never goes back.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Union

from PIL import Image, UnidentifiedImageError

from .errors import FileError, ImageIOError, ImageNotLoadedError, NotFoundError, NotSupportedError
from .operations import Operation

logger = logging.getLogger(__name__)


@dataclass
class FileHandle:
    handle: BinaryIO
    format: str


@dataclass
class Resident:
    image: Image.Image


@dataclass
class Failed:
    error: FileError


ImageState = Union[FileHandle, Resident, Failed]


def _format_for_extension(path: Path):
    """Pillow format registered for the file extension, if any."""
    return Image.registered_extensions().get(path.suffix.lower())


def detect_format(handle: BinaryIO, path: Path) -> str:
    """
    Determine the image format of an open file.

    The decoder registered for the extension is tried first, then every
    registered decoder by content signature. The handle is rewound.

    Raises:
        NotSupportedError: if no decoder recognizes the content
        ImageIOError: if reading the header fails
    """
    candidates = []
    hinted = _format_for_extension(path)
    if hinted:
        candidates.append([hinted])
    candidates.append(None)

    for formats in candidates:
        handle.seek(0)
        try:
            with Image.open(handle, formats=formats) as sniffed:
                detected = sniffed.format
        except UnidentifiedImageError:
            continue
        except OSError as e:
            raise ImageIOError(path, e) from e
        finally:
            handle.seek(0)
        if detected:
            return detected

    raise NotSupportedError(path)


class ThumbnailData:
    """
    Source path and image state for one image.
    """

    def __init__(self, path, state: ImageState):
        self._path = Path(path)
        self._state = state

    @classmethod
    def load(cls, path) -> 'ThumbnailData':
        """
        Open an image file without decoding it.

        Raises:
            NotFoundError: if path is not a regular file
            ImageIOError: if the file cannot be opened or read
            NotSupportedError: if no decoder recognizes the file
        """
        path = Path(path)
        if not path.is_file():
            raise NotFoundError(path)

        try:
            handle = open(path, 'rb')
        except OSError as e:
            raise ImageIOError(path, e) from e

        try:
            image_format = detect_format(handle, path)
        except FileError:
            handle.close()
            raise

        logger.debug(f"Opened {path} as {image_format}")
        return cls(path, FileHandle(handle, image_format))

    @classmethod
    def from_image(cls, path, image: Image.Image) -> 'ThumbnailData':
        """Wrap an already decoded image. Nothing is read from ``path``."""
        return cls(path, Resident(image))

    @property
    def path(self) -> Path:
        return self._path

    @property
    def is_resident(self) -> bool:
        return isinstance(self._state, Resident)

    @property
    def format(self):
        """Detected source format, or the image's own format once decoded."""
        if isinstance(self._state, FileHandle):
            return self._state.format
        if isinstance(self._state, Resident):
            return self._state.image.format
        return None

    def resident_image(self) -> Image.Image:
        """
        Return the decoded image, decoding it now if needed.

        Raises:
            NotSupportedError: if the data cannot be decoded
            ImageIOError: if reading the file fails
        """
        state = self._state
        if isinstance(state, Resident):
            return state.image
        if isinstance(state, Failed):
            raise state.error

        try:
            image = self._decode(state)
        except FileError as e:
            self._state = Failed(e)
            raise
        finally:
            state.handle.close()

        self._state = Resident(image)
        return image

    def _decode(self, state: FileHandle) -> Image.Image:
        logger.debug(f"Decoding {self._path} ({state.format})")
        try:
            state.handle.seek(0)
            image = Image.open(state.handle, formats=[state.format])
            image.load()
        except (UnidentifiedImageError, SyntaxError, ValueError) as e:
            raise NotSupportedError(self._path, str(e)) from e
        except OSError as e:
            # Pillow reports truncated or corrupt data as OSError
            if isinstance(e, (FileNotFoundError, PermissionError)):
                raise ImageIOError(self._path, e) from e
            raise NotSupportedError(self._path, str(e)) from e
        return image

    def replace_image(self, image: Image.Image) -> None:
        """Swap in a new resident image."""
        self._state = Resident(image)

    def clone_loaded(self) -> 'ThumbnailData':
        """
        Clone image data that is already in memory.

        Raises:
            ImageNotLoadedError: if the image is not resident yet
        """
        if not isinstance(self._state, Resident):
            raise ImageNotLoadedError(f"Image data for {self._path} is not loaded")
        return ThumbnailData(self._path, Resident(self._state.image.copy()))

    def try_clone_and_load(self) -> 'ThumbnailData':
        """Decode the image if needed, then clone it."""
        self.resident_image()
        return self.clone_loaded()

    def apply_operations(self, operations: Iterable[Operation]) -> 'ThumbnailData':
        """
        Apply operations in order to the resident image.

        The image is updated after every successful operation. The first
        OperationError propagates and leaves the image as it was after the
        last successful operation.
        """
        image = self.resident_image()
        for operation in operations:
            image = operation.apply(image)
            self._state = Resident(image)
        return self

    def close(self) -> None:
        """Release the file handle if the image was never decoded."""
        if isinstance(self._state, FileHandle):
            self._state.handle.close()

    def __repr__(self) -> str:
        return f"ThumbnailData({str(self._path)!r}, {type(self._state).__name__})"

    def __del__(self):
        state = getattr(self, '_state', None)
        if isinstance(state, FileHandle) and not state.handle.closed:
            state.handle.close()


def is_loadable(path) -> bool:
    """Whether ``path`` is a regular file with a recognized image format."""
    path = Path(path)
    if not os.path.isfile(path):
        return False
    try:
        with open(path, 'rb') as handle:
            detect_format(handle, path)
    except (FileError, OSError):
        return False
    return True
