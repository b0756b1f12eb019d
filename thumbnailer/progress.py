"""
CollectionProgress - Tracks and displays per-item progress of a collection run.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .run_stats import RunStats


class CollectionProgress:
    """
    Receives a callback for every finished collection item.

    Callbacks arrive in the thread that started the run, never from workers.
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 100,
        stats: Optional[RunStats] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each file as it's processed
            log_interval: Log summary progress every N images (when not show_files)
            stats: Stats to update; a new RunStats is created if omitted
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.stats = stats or RunStats()
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0

    def on_start(self, total: int) -> None:
        """Called once before any item is processed."""
        self.stats.total = total

    def on_item_processed(
        self,
        index: int,
        source: Path,
        paths: List[Path],
        error: Optional[Exception] = None
    ) -> None:
        """
        Called when an item is finished.

        Args:
            index: Item index in the collection
            source: Source path of the item
            paths: Files written for the item (may be non-empty on failure)
            error: The item's failure, if any
        """
        self.stats.record(index, source, len(paths), error)

        if self.show_files:
            if error is None:
                written = ', '.join(str(p) for p in paths) or 'applied'
                print(f"  [OK] {source} -> {written}")
            else:
                print(f"  [ERROR] {source} -> {error}")

        self._log_progress()

    def _log_progress(self) -> None:
        if self.show_files or self.stats.completed - self.last_logged < self.log_interval:
            return
        self.last_logged = self.stats.completed

        eta = self.stats.eta_seconds()
        remaining = f"~{eta / 60:.0f}m remaining" if eta is not None else "remaining unknown"
        self.logger.info(
            f"Progress: {self.stats.processed} done, {self.stats.errors} errors "
            f"({self.stats.rate_per_minute:.1f}/min, {remaining}, {self.stats.remaining} left)"
        )
