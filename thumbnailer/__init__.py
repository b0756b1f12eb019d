"""
Batch image thumbnailing with deferred operations.

Operations are queued on a Thumbnail or ThumbnailCollection without touching
pixel data, applied in one pass over lazily loaded images, and stored to one
or more Target destinations. Collections process their images in parallel.
"""

__version__ = "1.0.0"

from .errors import (
    ThumbnailerError,
    FileError,
    NotFoundError,
    NotSupportedError,
    ImageIOError,
    GlobPatternError,
    OperationError,
    OperationErrorInfo,
    StoreError,
    CollectionError,
    ImageNotLoadedError,
    ThumbnailConsumedError,
)
from .options import BoxPosition, Crop, Exif, Orientation, ResampleFilter, Resize, Rotation
from .config import ThumbnailerConfig
from .static_thumbnail import StaticThumbnail
from .data import ThumbnailData
from .generic import GenericThumbnail
from .thumbnail import Thumbnail
from .target import Target, TargetFormat, TargetItem, compute_and_create_path
from .collection import ThumbnailCollection, ThumbnailCollectionBuilder
from .run_stats import RunStats
from .progress import CollectionProgress

__all__ = [
    "ThumbnailerError",
    "FileError",
    "NotFoundError",
    "NotSupportedError",
    "ImageIOError",
    "GlobPatternError",
    "OperationError",
    "OperationErrorInfo",
    "StoreError",
    "CollectionError",
    "ImageNotLoadedError",
    "ThumbnailConsumedError",
    "BoxPosition",
    "Crop",
    "Exif",
    "Orientation",
    "ResampleFilter",
    "Resize",
    "Rotation",
    "ThumbnailerConfig",
    "StaticThumbnail",
    "ThumbnailData",
    "GenericThumbnail",
    "Thumbnail",
    "Target",
    "TargetFormat",
    "TargetItem",
    "compute_and_create_path",
    "ThumbnailCollection",
    "ThumbnailCollectionBuilder",
    "RunStats",
    "CollectionProgress",
]
