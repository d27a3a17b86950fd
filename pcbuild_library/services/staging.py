"""Staging area lifecycle.

The staging area holds preprocessed copies of the manifest sources. Its
layout mirrors the repository relative to the repository root so source map
back-references stay resolvable. It belongs to one build run at a time.
"""

import logging
import os
from pathlib import Path

from ..errors import BuildIOError
from ..storage import remove_tree

logger = logging.getLogger(__name__)


class StagingArea:
    """Owns the temporary staging directory tree."""

    def __init__(self, root: Path, source_root: Path):
        """Initialize staging area.

        Args:
            root: Staging directory (created lazily by the stages)
            source_root: Repository root the staging layout mirrors
        """
        self.root = Path(root)
        self.source_root = Path(source_root)

    def relative_path(self, original: Path) -> Path:
        """Path of a source file relative to the repository root.

        Raises:
            ValueError: If the file lies outside the repository root
        """
        relative = Path(os.path.relpath(Path(original).resolve(), self.source_root.resolve()))
        if relative.parts and relative.parts[0] == "..":
            raise ValueError(f"{original} is outside the repository root {self.source_root}")
        return relative

    def staged_path_for(self, original: Path) -> Path:
        """Destination of a source file inside the staging area."""
        return self.root / self.relative_path(original)

    def _remove(self) -> bool:
        try:
            return remove_tree(self.root)
        except OSError as e:
            raise BuildIOError(f"Failed to remove staging directory {self.root}: {e}") from e

    def reset(self) -> None:
        """Remove a stale staging tree left by a previous run.

        Raises:
            BuildIOError: If the tree cannot be removed
        """
        if self._remove():
            logger.info(f"Removed stale staging directory {self.root}")

    def cleanup(self) -> None:
        """Remove the staging tree at the end of a run.

        Raises:
            BuildIOError: If the tree cannot be removed
        """
        if self._remove():
            logger.debug(f"Cleaned up staging directory {self.root}")
