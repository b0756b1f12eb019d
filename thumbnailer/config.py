"""
ThumbnailerConfig - Runtime settings read from the environment.
"""

import os
from dataclasses import dataclass, field
from typing import List

from .fonts import DEFAULT_FONT_PATH


def default_workers() -> int:
    """Same default as ThreadPoolExecutor."""
    return min(32, (os.cpu_count() or 1) + 4)


@dataclass
class ThumbnailerConfig:
    """
    Runtime settings.

    Attributes:
        workers: Thread pool size for collection processing
        jpeg_quality: JPEG quality for stored files (1-95)
        font_path: TrueType font used by the text operation
    """
    workers: int = field(default_factory=default_workers)
    jpeg_quality: int = 85
    font_path: str = DEFAULT_FONT_PATH

    @classmethod
    def from_env(cls) -> 'ThumbnailerConfig':
        """
        Load settings from environment variables.

        THUMBNAILER_WORKERS, THUMBNAILER_JPEG_QUALITY, THUMBNAILER_FONT
        """
        config = cls()
        if os.environ.get('THUMBNAILER_WORKERS'):
            config.workers = int(os.environ['THUMBNAILER_WORKERS'])
        if os.environ.get('THUMBNAILER_JPEG_QUALITY'):
            config.jpeg_quality = int(os.environ['THUMBNAILER_JPEG_QUALITY'])
        if os.environ.get('THUMBNAILER_FONT'):
            config.font_path = os.environ['THUMBNAILER_FONT']
        return config

    def validate(self) -> List[str]:
        """Return a list of configuration problems (empty if valid)."""
        errors = []
        if self.workers < 1:
            errors.append(f"workers must be at least 1 (got {self.workers})")
        if not 1 <= self.jpeg_quality <= 95:
            errors.append(f"jpeg_quality must be between 1 and 95 (got {self.jpeg_quality})")
        if not os.path.isfile(self.font_path):
            errors.append(f"Font file not found: {self.font_path}")
        return errors
