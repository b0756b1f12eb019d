"""
RunStats - Counters and timing for a collection run.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass
class RunStats:
    """
    Counters for one collection run, updated once per finished item.

    Attributes:
        total: Items in the run, set when the run starts
        processed: Items finished without a failure
        errors: Items that failed
        files_written: Output files written, including those of failed items
        started: Monotonic clock reading at creation
        error_details: One "[index] source: error" line per failed item
    """
    total: int = 0
    processed: int = 0
    errors: int = 0
    files_written: int = 0
    started: float = field(default_factory=time.monotonic)
    error_details: List[str] = field(default_factory=list)

    def record(
        self,
        index: int,
        source: Path,
        files_written: int,
        error: Optional[Exception] = None
    ) -> None:
        """Count one finished item."""
        self.files_written += files_written
        if error is None:
            self.processed += 1
        else:
            self.errors += 1
            self.error_details.append(f"[{index}] {source}: {error}")

    @property
    def completed(self) -> int:
        return self.processed + self.errors

    @property
    def remaining(self) -> int:
        return max(self.total - self.completed, 0)

    @property
    def elapsed_seconds(self) -> float:
        return time.monotonic() - self.started

    @property
    def rate_per_minute(self) -> float:
        """Finished items per minute, failed ones included."""
        elapsed = self.elapsed_seconds
        if elapsed <= 0:
            return 0.0
        return self.completed * 60 / elapsed

    def eta_seconds(self) -> Optional[float]:
        """Seconds left at the current rate, or None before anything finished."""
        if not self.completed:
            return None
        return self.remaining * self.elapsed_seconds / self.completed

    def summary_lines(self) -> List[str]:
        return [
            f"Processed: {self.processed}",
            f"Errors: {self.errors}",
            f"Files written: {self.files_written}",
            f"Time: {self.elapsed_seconds:.1f}s",
            f"Rate: {self.rate_per_minute:.1f}/min",
        ]
