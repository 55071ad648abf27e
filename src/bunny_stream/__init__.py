"""Bunny.net Stream client: collections, videos, libraries and storage zones."""

__version__ = "0.1.0"
