"""File-system helpers for target enumeration and in-place rewrites."""

from .walker import is_directory, iter_target_files, read_target, write_in_place

__all__ = ['is_directory', 'iter_target_files', 'read_target', 'write_in_place']
