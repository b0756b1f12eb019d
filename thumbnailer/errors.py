"""
Error model for thumbnailer.

File-level failures (loading, writing, globbing), per-operation failures,
and the aggregates used by single-image stores and collections.
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


class ThumbnailerError(Exception):
    """Base class for all thumbnailer errors."""


class FileError(ThumbnailerError):
    """A file could not be found, read, decoded, matched or written."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = Path(path) if path is not None else None


class NotFoundError(FileError):
    """Path does not reference a regular file."""

    def __init__(self, path):
        super().__init__(f"File could not be found at path: {path}", path)


class NotSupportedError(FileError):
    """No decoder or encoder could handle the file."""

    def __init__(self, path, reason: Optional[str] = None):
        message = f"File is not of a supported type: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, path)
        self.reason = reason


class ImageIOError(FileError):
    """Reading or writing a file failed at the OS level."""

    def __init__(self, path, cause: Optional[BaseException] = None):
        super().__init__(f"I/O error on {path}: {cause}", path)
        self.cause = cause


class GlobPatternError(FileError):
    """A glob pattern could not be evaluated."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid glob pattern {pattern!r}: {reason}")
        self.pattern = pattern


class OperationErrorInfo(Enum):
    """Why an operation failed."""
    COORDINATES_OUT_OF_RANGE = 'coordinates out of range'
    IMAGE_BUFFER_CONVERSION_FAILURE = 'image buffer conversion failure'
    RGB_IMAGE_CONVERSION_FAILURE = 'rgb image conversion failure'
    FONT_LOAD_ERROR = 'font load error'
    NOT_IMPLEMENTED = 'not implemented'


class OperationError(ThumbnailerError):
    """
    Applying one queued operation failed.

    Attributes:
        operation: The operation instance that failed
        info: The failure reason
    """

    def __init__(self, operation, info: OperationErrorInfo):
        super().__init__(f"Applying operation failed: {operation!r} ({info.value})")
        self.operation = operation
        self.info = info


class StoreError(ThumbnailerError):
    """
    One or more target items could not be written for an image.

    Attributes:
        paths: Files that were written before and after the failures
        errors: One FileError per failed target item
    """

    def __init__(self, paths: List[Path], errors: List[FileError]):
        super().__init__(
            f"Storing failed for {len(errors)} target(s): "
            + "; ".join(str(e) for e in errors)
        )
        self.paths = paths
        self.errors = errors


class CollectionError(ThumbnailerError):
    """
    Aggregate of per-item failures from a collection run.

    Attributes:
        paths: Mapping of item index -> written paths, for items that wrote anything
        store_errors: (index, FileError) pairs for items that could not be loaded or stored
        operation_errors: (index, OperationError) pairs for items whose queue failed
    """

    def __init__(
        self,
        paths: Dict[int, List[Path]],
        store_errors: List[Tuple[int, FileError]],
        operation_errors: List[Tuple[int, OperationError]],
    ):
        super().__init__(
            f"Collection processing failed: {len(operation_errors)} operation error(s), "
            f"{len(store_errors)} store error(s)"
        )
        self.paths = paths
        self.store_errors = store_errors
        self.operation_errors = operation_errors

    @property
    def failed_indices(self) -> List[int]:
        """Sorted indices of all items with at least one failure."""
        indices = {i for i, _ in self.store_errors} | {i for i, _ in self.operation_errors}
        return sorted(indices)


class ImageNotLoadedError(ThumbnailerError):
    """Image data was required in memory but is still an unopened file."""


class ThumbnailConsumedError(ThumbnailerError):
    """A handle was used after a terminal store call."""
