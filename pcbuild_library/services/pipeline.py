"""Build pipeline orchestration.

Runs the stages strictly in sequence:

    shader chunks -> manifest -> conditional compilation -> optimizer
    -> stamping -> staging cleanup

Each stage is awaited before the next starts and any BuildError ends the
run. Whether the staging area survives a failed run is controlled by
BuildSettings.keep_staging_on_failure.
"""

import asyncio
import logging
import time

from ..config.settings import BuildSettings
from ..errors import BuildError
from ..errors import BuildIOError
from ..models import BuildConfiguration
from ..models import BuildReport
from .compiler import CompilationInvoker
from .manifest import load_manifest
from .metadata import resolve_metadata
from .preprocessor import ConditionalCompilationStage
from .shader_chunks import ShaderChunkAggregator
from .stamper import ArtifactStamper
from .staging import StagingArea

logger = logging.getLogger(__name__)


class BuildPipeline:
    """Turns the manifest sources into one stamped artifact."""

    def __init__(self, settings: BuildSettings):
        """Initialize pipeline and its stages.

        Args:
            settings: Build settings shared by all stages
        """
        self.settings = settings
        self.staging = StagingArea(settings.staging_root, settings.source_root)
        self.shaders = ShaderChunkAggregator(
            settings.resolve(settings.chunks_dir),
            settings.resolve(settings.chunks_output),
            settings.shader_namespace,
        )
        self.preprocessor = ConditionalCompilationStage(self.staging, settings.max_parallel_workers)
        self.compiler = CompilationInvoker(settings)
        self.stamper = ArtifactStamper(
            settings.engine_name,
            settings.copyright_holder,
            settings.copyright_start_year,
        )

    async def run(self, config: BuildConfiguration) -> BuildReport:
        """Run a complete build.

        Args:
            config: Build configuration for this run

        Returns:
            Report describing the produced artifact

        Raises:
            BuildError: If any stage fails
        """
        start = time.monotonic()
        staging_started = False

        try:
            chunks = await asyncio.to_thread(self.shaders.write)

            manifest_path = self.settings.resolve(self.settings.manifest_path)
            entries = await asyncio.to_thread(load_manifest, manifest_path)

            staging_started = True
            staged = await self.preprocessor.run([self.settings.resolve(entry) for entry in entries], config)

            result = await self.compiler.compile(staged, config)

            metadata = await resolve_metadata(
                self.settings.resolve(self.settings.version_file),
                self.settings.source_root,
            )
            await asyncio.to_thread(self.stamper.stamp, result.output_path, metadata, config)
        except BuildError as e:
            if staging_started and not self.settings.keep_staging_on_failure:
                try:
                    await asyncio.to_thread(self.staging.cleanup)
                except BuildIOError as cleanup_error:
                    logger.warning(f"Could not clean up after failed build: {cleanup_error}")
            elif staging_started:
                logger.info(f"Leaving staging directory {self.staging.root} for inspection")
            logger.error(f"Build failed: {e}")
            raise

        await asyncio.to_thread(self.staging.cleanup)

        elapsed = time.monotonic() - start
        logger.info(f"Build completed in {elapsed:.2f} seconds")
        return BuildReport(
            output_path=result.output_path,
            metadata=metadata,
            staged_count=len(staged),
            chunk_count=len(chunks),
            elapsed_seconds=elapsed,
            source_map_path=result.source_map_path,
            compiler_output=result.stdout.strip(),
            warnings=[result.warnings] if result.warnings else [],
        )
