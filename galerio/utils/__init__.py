"""Utility functions for galerio."""

from galerio.utils.files import atomic_copy, atomic_write, remove_partial_files

__all__ = ["atomic_copy", "atomic_write", "remove_partial_files"]
