"""Onlibrary: personal book catalog, ordered lists, reading stats and friends."""

__version__ = "0.1.0"
