"""
ThumbnailCollection - Many images sharing one operation queue.

Items are processed in parallel on a thread pool. A failure in one item
never stops the others; all failures are reported together in a
CollectionError.
"""

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from glob import glob
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .config import ThumbnailerConfig
from .data import ThumbnailData
from .errors import (
    CollectionError, FileError, GlobPatternError, OperationError, StoreError,
    ThumbnailConsumedError,
)
from .generic import GenericThumbnail
from .operations import Operation
from .progress import CollectionProgress
from .target import Target
from .thumbnail import Thumbnail

# (index, data) -> written paths
ItemWork = Callable[[int, ThumbnailData], List[Path]]


class ThumbnailCollectionBuilder:
    """
    Collects images for a ThumbnailCollection.
    """

    def __init__(
        self,
        config: Optional[ThumbnailerConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config or ThumbnailerConfig()
        self.logger = logger or logging.getLogger(__name__)
        self._items: List[ThumbnailData] = []

    def add_path(self, path) -> 'ThumbnailCollectionBuilder':
        """
        Add one image file.

        Raises:
            FileError: if the file cannot be loaded
        """
        self._items.append(ThumbnailData.load(path))
        return self

    def add_glob(self, pattern: str) -> 'ThumbnailCollectionBuilder':
        """
        Add every regular file matching ``pattern``, in sorted order.

        ``**`` matches across directories.

        Raises:
            GlobPatternError: if the pattern cannot be evaluated
            FileError: if a matched file cannot be loaded; nothing is added
        """
        if not pattern:
            raise GlobPatternError(pattern, 'empty pattern')

        try:
            matches = glob(pattern, recursive=True)
        except (OSError, ValueError, re.error) as e:
            raise GlobPatternError(pattern, str(e)) from e

        files = sorted(m for m in matches if os.path.isfile(m))
        self.logger.debug(f"Pattern {pattern!r} matched {len(files)} file(s)")

        new_items = []
        try:
            for file in files:
                new_items.append(ThumbnailData.load(file))
        except FileError:
            for data in new_items:
                data.close()
            raise

        self._items.extend(new_items)
        return self

    def add_thumb(self, thumb: Thumbnail) -> 'ThumbnailCollectionBuilder':
        """Add an existing Thumbnail; its pending queue is discarded."""
        self._items.append(thumb.into_data())
        return self

    def __len__(self) -> int:
        return len(self._items)

    def finalize(self) -> 'ThumbnailCollection':
        return ThumbnailCollection(self._items, self.config, self.logger)


class ThumbnailCollection(GenericThumbnail):
    """
    A set of images that all receive the same operation queue.

    ``store`` and ``apply_store`` consume the collection; the ``_keep``
    variants leave it usable. Store methods return a mapping of item index to
    the paths written for that item, ordered by index.
    """

    def __init__(
        self,
        items: Sequence[ThumbnailData],
        config: Optional[ThumbnailerConfig] = None,
        logger: Optional[logging.Logger] = None
    ):
        super().__init__()
        self._items: Optional[List[ThumbnailData]] = list(items)
        self.config = config or ThumbnailerConfig()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def items(self) -> List[ThumbnailData]:
        if self._items is None:
            raise ThumbnailConsumedError("Collection was consumed by a store call")
        return self._items

    @property
    def paths(self) -> List[Path]:
        """Source paths, in item order."""
        return [data.path for data in self.items]

    def __len__(self) -> int:
        return len(self.items)

    def _take_operations(self) -> Tuple[Operation, ...]:
        operations = self.operations
        self._operations.clear()
        return operations

    def apply(self, progress: Optional[CollectionProgress] = None) -> 'ThumbnailCollection':
        """
        Apply the queued operations to every item and clear the queue.

        The queue is cleared before any work starts, even if items fail.

        Raises:
            CollectionError: if any item failed
        """
        operations = self._take_operations()

        def work(index: int, data: ThumbnailData) -> List[Path]:
            data.apply_operations(operations)
            return []

        self._run(work, progress)
        return self

    def apply_store(
        self,
        target: Target,
        progress: Optional[CollectionProgress] = None
    ) -> Dict[int, List[Path]]:
        try:
            return self.apply_store_keep(target, progress)
        finally:
            self._items = None

    def apply_store_keep(
        self,
        target: Target,
        progress: Optional[CollectionProgress] = None
    ) -> Dict[int, List[Path]]:
        """
        Apply the queue to every item, then store each item to ``target``.

        Items whose operations fail are not stored.

        Raises:
            CollectionError: if any item failed; successful paths are included
        """
        operations = self._take_operations()

        def work(index: int, data: ThumbnailData) -> List[Path]:
            data.apply_operations(operations)
            return target.store(data, index)

        return self._run(work, progress)

    def store(
        self,
        target: Target,
        progress: Optional[CollectionProgress] = None
    ) -> Dict[int, List[Path]]:
        try:
            return self.store_keep(target, progress)
        finally:
            self._items = None

    def store_keep(
        self,
        target: Target,
        progress: Optional[CollectionProgress] = None
    ) -> Dict[int, List[Path]]:
        """
        Store every item's current image to ``target`` without applying the queue.

        Raises:
            CollectionError: if any item failed; successful paths are included
        """
        def work(index: int, data: ThumbnailData) -> List[Path]:
            return target.store(data, index)

        return self._run(work, progress)

    def _run(
        self,
        work: ItemWork,
        progress: Optional[CollectionProgress]
    ) -> Dict[int, List[Path]]:
        """Run ``work`` for every item on the pool and merge results by index."""
        items = self.items
        if progress:
            progress.on_start(len(items))

        self.logger.debug(f"Processing {len(items)} item(s) on {self.config.workers} worker(s)")

        paths: Dict[int, List[Path]] = {}
        store_errors: List[Tuple[int, FileError]] = []
        operation_errors: List[Tuple[int, OperationError]] = []

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures = {
                executor.submit(work, index, data): index
                for index, data in enumerate(items)
            }
            for future in as_completed(futures):
                index = futures[future]
                item_paths: List[Path] = []
                error: Optional[Exception] = None
                try:
                    item_paths = future.result()
                except OperationError as e:
                    operation_errors.append((index, e))
                    error = e
                except StoreError as e:
                    item_paths = e.paths
                    store_errors.extend((index, err) for err in e.errors)
                    error = e
                except FileError as e:
                    store_errors.append((index, e))
                    error = e

                if item_paths:
                    paths[index] = item_paths
                if error is not None:
                    self.logger.error(f"Error processing {items[index].path}: {error}")
                if progress:
                    progress.on_item_processed(index, items[index].path, item_paths, error)

        paths = dict(sorted(paths.items()))
        store_errors.sort(key=lambda pair: pair[0])
        operation_errors.sort(key=lambda pair: pair[0])

        if store_errors or operation_errors:
            raise CollectionError(paths, store_errors, operation_errors)

        self.logger.info(f"Processed {len(items)} item(s), {sum(map(len, paths.values()))} file(s) written")
        return paths
