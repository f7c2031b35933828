"""anifetch utilities."""

from .files import atomic_write_bytes, atomic_write_text, remove_files

__all__ = ["atomic_write_bytes", "atomic_write_text", "remove_files"]
