"""
Target - Output destinations and format-specific encoding.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from PIL import Image

from .data import ThumbnailData
from .errors import FileError, ImageIOError, NotSupportedError, StoreError

# Stem used when the source path has none
DEFAULT_STEM = 'thumbnail'


class TargetFormat(Enum):
    JPEG = 'jpeg'
    PNG = 'png'
    TIFF = 'tiff'
    BMP = 'bmp'
    GIF = 'gif'

    @property
    def extension(self) -> str:
        """Canonical file extension, without the dot."""
        return _EXTENSIONS[self][0]

    @property
    def extensions(self) -> tuple:
        """All accepted file extensions, canonical first."""
        return _EXTENSIONS[self]

    @property
    def pillow_format(self) -> str:
        return self.name

    @classmethod
    def from_name(cls, name: str) -> 'TargetFormat':
        """Look up a format by name or extension, e.g. 'jpg', 'PNG', '.tif'."""
        key = name.lower().lstrip('.')
        for target_format, extensions in _EXTENSIONS.items():
            if key == target_format.value or key in extensions:
                return target_format
        raise ValueError(f"Unknown target format: {name}")


_EXTENSIONS = {
    TargetFormat.JPEG: ('jpg', 'jpeg'),
    TargetFormat.PNG: ('png',),
    TargetFormat.TIFF: ('tiff', 'tif'),
    TargetFormat.BMP: ('bmp',),
    TargetFormat.GIF: ('gif',),
}


@dataclass(frozen=True)
class TargetItem:
    """
    One output destination.

    Attributes:
        path: Destination as given by the caller; a trailing separator marks
            a directory that may not exist yet
        format: Encoding format
    """
    path: str
    format: TargetFormat


def ensure_extension(path: Path, target_format: TargetFormat) -> Path:
    """Replace the extension unless it already matches the format (any case)."""
    if path.suffix[1:].lower() in target_format.extensions:
        return path
    return path.with_suffix(f".{target_format.extension}")


def compute_and_create_path(
    dst,
    src_stem: str,
    target_format: TargetFormat,
    index: Optional[int] = None
) -> Path:
    """
    Resolve the output file path for one destination, creating directories.

    - existing directory: ``dst/src_stem.ext``
    - ends with a path separator: directory is created, then as above
    - anything else: explicit file path, parent directories are created

    With ``index`` the file name becomes ``{stem}-{index}.{ext}``. The
    extension is corrected to match ``target_format``.

    Raises:
        OSError: if a directory cannot be created
    """
    dst_str = os.fspath(dst)
    derived_name = f"{src_stem}.{target_format.extension}"

    if os.path.isdir(dst_str):
        path = Path(dst_str) / derived_name
    elif dst_str.endswith(('/', os.sep)):
        os.makedirs(dst_str, exist_ok=True)
        path = Path(dst_str) / derived_name
    else:
        path = Path(dst_str)
        path.parent.mkdir(parents=True, exist_ok=True)

    if index is not None:
        path = path.with_name(f"{path.stem}-{index}{path.suffix}")

    return ensure_extension(path, target_format)


class Target:
    """
    Ordered list of (format, destination) pairs.

    Storing an image writes one file per item. Every item is attempted;
    failures are collected and raised together as a StoreError.
    """

    def __init__(
        self,
        target_format: TargetFormat,
        dst,
        quality: int = 85,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize a target with its first destination.

        Args:
            target_format: Encoding format of the first destination
            dst: Directory or file path of the first destination
            quality: JPEG quality for output (default: 85)
            logger: Optional logger instance
        """
        self.items: List[TargetItem] = []
        self.quality = quality
        self.logger = logger or logging.getLogger(__name__)
        self.add_target(target_format, dst)

    def add_target(self, target_format: TargetFormat, dst) -> 'Target':
        self.items.append(TargetItem(os.fspath(dst), target_format))
        return self

    def store(self, data: ThumbnailData, index: Optional[int] = None) -> List[Path]:
        """
        Encode the current image of ``data`` to every destination.

        Args:
            data: Image to store; decoded now if still unopened
            index: Collection index appended to derived file names

        Returns:
            Paths written, in target order

        Raises:
            FileError: if the image itself cannot be loaded
            StoreError: if any destination failed, after trying all of them
        """
        image = data.resident_image()
        stem = data.path.stem or DEFAULT_STEM

        paths = []
        errors = []
        for item in self.items:
            try:
                path = self._store_item(image, item, stem, index)
            except FileError as e:
                self.logger.error(f"Error storing {data.path} to {item.path}: {e}")
                errors.append(e)
                continue
            paths.append(path)

        if errors:
            raise StoreError(paths, errors)
        return paths

    def _store_item(
        self,
        image: Image.Image,
        item: TargetItem,
        stem: str,
        index: Optional[int]
    ) -> Path:
        try:
            path = compute_and_create_path(item.path, stem, item.format, index)
        except OSError as e:
            raise ImageIOError(item.path, e) from e

        output = self._convert_color_mode(image, item.format)
        params = {}
        if item.format == TargetFormat.JPEG:
            params = {'quality': self.quality, 'optimize': True}
        elif item.format == TargetFormat.PNG:
            params = {'optimize': True}

        try:
            output.save(path, format=item.format.pillow_format, **params)
        except (FileNotFoundError, PermissionError, IsADirectoryError) as e:
            raise ImageIOError(path, e) from e
        except (OSError, ValueError, KeyError) as e:
            raise NotSupportedError(path, str(e)) from e

        self.logger.debug(f"Stored {path} ({item.format.name})")
        return path

    def _convert_color_mode(self, img: Image.Image, target_format: TargetFormat) -> Image.Image:
        """Convert image to a color mode the JPEG encoder accepts."""
        if target_format != TargetFormat.JPEG:
            return img
        if img.mode in ('RGBA', 'LA'):
            background = Image.new('RGB', img.size, (255, 255, 255))
            if img.mode == 'LA':
                img = img.convert('RGBA')
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode == 'P':
            img = img.convert('RGBA')
            background = Image.new('RGB', img.size, (255, 255, 255))
            background.paste(img, mask=img.split()[-1])
            return background
        elif img.mode not in ('RGB', 'L'):
            return img.convert('RGB')
        return img
