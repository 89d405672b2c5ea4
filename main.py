#!/usr/bin/env python3
"""
main.py: quick-start entry point.

Drop tile images into ``tiles/`` and run:

    python main.py render my_photo.png

Or use the full CLI:

    python -m tile_mosaic.cli render --help
    python -m tile_mosaic.cli index tiles/ -o tile_index.json
"""

from tile_mosaic.cli import app

if __name__ == "__main__":
    app()
