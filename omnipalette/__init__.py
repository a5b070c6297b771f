"""Command palette core: fuzzy search and permission-checked plugin host functions."""

__version__ = "0.1.0"

__all__ = ["capabilities", "search", "storage"]