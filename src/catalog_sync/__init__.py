"""Catalog synchronization against a single download page."""

__version__ = "0.1.0"
