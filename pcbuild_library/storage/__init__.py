"""Storage module for pcbuild_library.

Public Interface:
    - write_text_atomic: Write a text file with tmp + rename
    - remove_tree: Remove a directory tree if present
"""

from .files import remove_tree
from .files import write_text_atomic

__all__ = [
    "remove_tree",
    "write_text_atomic",
]
