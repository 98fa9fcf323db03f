"""
dezoomify: download the tiles of a zoomable image and stitch them together.
"""

__version__ = "0.4.0"
