"""
Reelbase - storage core for a media library (scenes, tags, files) on SQLite.
"""

__version__ = "0.1.0"
