"""External optimizer invocation.

Assembles the optimizer configuration for a build and runs the optimizer
(Closure Compiler by default) once as a subprocess.

Contract:
- Inputs: Staged files in manifest order, BuildConfiguration, BuildSettings
- Outputs: CompilationResult; the artifact (and optional .map) on disk
- Side Effects: Spawns the optimizer, writes a temporary wrapper for source maps
"""

import asyncio
import logging
import os
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from ..config.settings import BuildSettings
from ..errors import BuildIOError
from ..errors import CompilerNotFoundError
from ..errors import OptimizerFailure
from ..models import BuildConfiguration
from ..models import CompilationResult
from ..models import StagedFile

logger = logging.getLogger(__name__)

SOURCE_MAP_WRAPPER_NAME = "_umd-wrapper.js"


@dataclass
class CompilerOptions:
    """Optimizer configuration, rendered as --flag=value arguments."""

    js: list[str]
    compilation_level: str
    language_in: str
    js_output_file: str
    output_wrapper_file: str
    externs: str
    warning_level: str
    manage_closure_dependencies: bool = True
    jscomp_off: list[str] = field(default_factory=list)
    formatting: str | None = None
    create_source_map: str | None = None
    source_map_location_mapping: str | None = None
    source_map_include_content: bool = False

    def to_args(self) -> list[str]:
        """Render the options as command-line arguments.

        List values repeat their flag, true booleans become bare flags and
        unset values are omitted.

        Example:
            >>> CompilerOptions(
            ...     js=["a.js", "b.js"], compilation_level="SIMPLE", language_in="ECMASCRIPT5",
            ...     js_output_file="out.js", output_wrapper_file="w.js", externs="e.js",
            ...     warning_level="VERBOSE",
            ... ).to_args()[:3]
            ['--js=a.js', '--js=b.js', '--compilation_level=SIMPLE']
        """
        args: list[str] = []
        for name, value in self.__dict__.items():
            if value is None or value is False:
                continue
            if value is True:
                args.append(f"--{name}")
            elif isinstance(value, list):
                args.extend(f"--{name}={item}" for item in value)
            else:
                args.append(f"--{name}={value}")
        return args


class CompilationInvoker:
    """Drives the external optimizer for one build."""

    def __init__(self, settings: BuildSettings):
        """Initialize invoker.

        Args:
            settings: Build settings (paths, compiler command, timeout)
        """
        self.settings = settings

    def _relative(self, path: Path) -> str:
        """Path as passed to the optimizer, which runs in the build directory."""
        return Path(os.path.relpath(path, self.settings.build_dir)).as_posix()

    def build_options(self, staged: list[StagedFile], config: BuildConfiguration) -> CompilerOptions:
        """Assemble the optimizer configuration.

        For source-mapped builds this writes a temporary wrapper into the
        staging area that ends with a sourceMappingURL comment.

        Args:
            staged: Staged files in manifest order
            config: Active build configuration

        Returns:
            Optimizer options

        Raises:
            BuildIOError: If the temporary source map wrapper cannot be written
        """
        output_path = self.settings.resolve(config.output_path)
        wrapper_path = self.settings.resolve(self.settings.wrapper_path)

        options = CompilerOptions(
            js=[self._relative(item.staged_path) for item in staged],
            compilation_level=config.optimization_level.value,
            language_in=self.settings.language_in,
            js_output_file=self._relative(output_path),
            output_wrapper_file=self._relative(wrapper_path),
            externs=self._relative(self.settings.resolve(self.settings.externs_path)),
            warning_level=self.settings.warning_level,
            manage_closure_dependencies=True,
            jscomp_off=list(self.settings.suppressed_diagnostics),
        )

        if config.optimization_level.is_lowest:
            options.formatting = "pretty_print"

        if config.source_map:
            staging_root = self.settings.staging_root
            temp_wrapper = staging_root / SOURCE_MAP_WRAPPER_NAME
            map_path = self.settings.resolve(config.source_map_path)
            postamble = f"\n//# sourceMappingURL={map_path.name}"
            try:
                wrapper_content = wrapper_path.read_text(encoding="utf-8")
                temp_wrapper.parent.mkdir(parents=True, exist_ok=True)
                temp_wrapper.write_text(wrapper_content + postamble, encoding="utf-8")
            except OSError as e:
                raise BuildIOError(f"Failed to write source map wrapper {temp_wrapper}: {e}") from e

            source_path = self.settings.resolve(config.source_path)
            staged_prefix = staging_root
            source_relative = Path(os.path.relpath(source_path, self.settings.source_root))
            if source_relative.parts and source_relative.parts[0] != "..":
                staged_prefix = staging_root / source_relative
            original_relative = Path(os.path.relpath(source_path, output_path.parent)).as_posix()

            options.output_wrapper_file = self._relative(temp_wrapper)
            options.create_source_map = self._relative(map_path)
            options.source_map_location_mapping = f"{self._relative(staged_prefix)}|{original_relative}"
            options.source_map_include_content = True

        return options

    async def compile(self, staged: list[StagedFile], config: BuildConfiguration) -> CompilationResult:
        """Run the optimizer once.

        Args:
            staged: Staged files in manifest order
            config: Active build configuration

        Returns:
            Result of a successful run (diagnostics on stderr are warnings)

        Raises:
            BuildIOError: If the output directory cannot be created
            CompilerNotFoundError: If the optimizer command cannot be started
            OptimizerFailure: If the optimizer exits non-zero or times out
        """
        options = self.build_options(staged, config)
        output_path = self.settings.resolve(config.output_path)
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildIOError(f"Failed to create output directory {output_path.parent}: {e}") from e

        command = [*self.settings.compiler_command, *options.to_args()]
        logger.info(
            f"Compiling {len(staged)} files at {config.optimization_level.value} with {self.settings.compiler_command[0]}"
        )
        logger.debug(f"Optimizer command: {command}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                cwd=self.settings.build_dir,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise CompilerNotFoundError(
                f"Missing dependency: optimizer command {self.settings.compiler_command[0]!r} not found"
            ) from e
        except OSError as e:
            raise CompilerNotFoundError(
                f"Optimizer command {self.settings.compiler_command[0]!r} cannot be started: {e}"
            ) from e

        timeout = self.settings.compiler_timeout_seconds
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise OptimizerFailure(1, f"Optimizer timed out after {timeout} seconds") from None

        result = CompilationResult(
            exit_code=proc.returncode if proc.returncode is not None else 1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            output_path=output_path,
            source_map_path=self.settings.resolve(config.source_map_path) if config.source_map else None,
        )

        if not result.succeeded:
            logger.error(f"Optimizer exited with status {result.exit_code}")
            raise OptimizerFailure(result.exit_code, result.stderr)

        if result.warnings:
            logger.warning(f"Optimizer diagnostics:\n{result.warnings}")

        logger.info(f"Optimizer wrote {output_path}")
        return result
