"""Conditional-compilation stage.

Copies every manifest entry into the staging area, applying DEBUG/PROFILER
directives on the way, and returns the staged files in manifest order.

Contract:
- Inputs: Manifest entries, BuildConfiguration
- Outputs: List of StagedFile, same length and order as the manifest
- Side Effects: Recreates the staging directory tree
"""

import asyncio
import logging
from pathlib import Path

from ..errors import DirectiveError
from ..errors import PreprocessError
from ..models import BuildConfiguration
from ..models import StagedFile
from ..utils.directives import preprocess
from .staging import StagingArea

logger = logging.getLogger(__name__)


class ConditionalCompilationStage:
    """Stages manifest entries with directives applied."""

    def __init__(self, staging: StagingArea, max_workers: int = 8):
        """Initialize stage.

        Args:
            staging: Staging area receiving the transformed copies
            max_workers: Maximum number of files processed concurrently
        """
        self.staging = staging
        self.max_workers = max_workers

    def stage_file(self, original: Path, config: BuildConfiguration) -> StagedFile:
        """Read, transform and write a single manifest entry.

        Line endings are kept as they are. Source-mapped builds copy the
        text verbatim: directive removal would shift the line numbers the
        map refers to.

        Raises:
            PreprocessError: If the entry cannot be read, evaluated or written
        """
        try:
            staged_path = self.staging.staged_path_for(original)
        except ValueError as e:
            raise PreprocessError(original, str(e)) from e

        try:
            with open(original, encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise PreprocessError(original, f"cannot read source: {e}") from e

        if not config.source_map:
            try:
                content = preprocess(content, config.feature_flags)
            except DirectiveError as e:
                raise PreprocessError(original, f"invalid directive: {e}") from e

        try:
            staged_path.parent.mkdir(parents=True, exist_ok=True)
            with open(staged_path, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        except OSError as e:
            raise PreprocessError(original, f"cannot write {staged_path}: {e}") from e

        return StagedFile(original_path=original, staged_path=staged_path)

    async def run(self, entries: list[Path], config: BuildConfiguration) -> list[StagedFile]:
        """Stage all manifest entries.

        Files are processed concurrently; results keep manifest order. On
        failure all in-flight files still complete, then the error of the
        earliest failing entry is raised.

        Args:
            entries: Resolved manifest entries, in manifest order
            config: Active build configuration

        Returns:
            Staged files in manifest order

        Raises:
            PreprocessError: If any entry fails
            BuildIOError: If a stale staging tree cannot be removed
        """
        if config.source_map and (config.debug or config.profiler):
            logger.warning("Source-mapped builds skip conditional compilation; DEBUG/PROFILER flags are ignored")

        await asyncio.to_thread(self.staging.reset)

        semaphore = asyncio.Semaphore(self.max_workers)

        async def _stage(original: Path) -> StagedFile:
            async with semaphore:
                return await asyncio.to_thread(self.stage_file, original, config)

        # to_thread workers cannot be cancelled; wait for all of them.
        results = await asyncio.gather(*(_stage(Path(entry)) for entry in entries), return_exceptions=True)

        staged = []
        for result in results:
            if isinstance(result, BaseException):
                raise result
            staged.append(result)

        logger.info(f"Staged {len(staged)} files in {self.staging.root}")
        return staged
