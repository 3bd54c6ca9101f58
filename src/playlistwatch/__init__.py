"""
playlistwatch - ingest a live-stream playlist, keep it fresh and query it.
"""

__version__ = "0.1.0"
