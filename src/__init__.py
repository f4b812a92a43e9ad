# src/__init__.py — v1
"""kbroute — query classification and tiered caching for knowledge-base search."""

from kbroute.version import __version__

__all__ = ["__version__"]
