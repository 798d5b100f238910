"""A panel start menu with user-defined categories, recents and search."""

__version__ = "0.3.0"
