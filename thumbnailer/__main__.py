"""
Main entry point for running the package as a module.

Usage:
    python -m thumbnailer process 'photos/*.jpg' -o thumbs/ --resize 400x300
    python -m thumbnailer check 'photos/*'
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
