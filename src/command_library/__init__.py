"""Curate reusable command snippets from bundled, personal and remote catalogs."""

__version__ = "0.3.0"
