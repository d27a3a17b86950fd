"""Settings models for the build pipeline.

This module defines where the pipeline finds its inputs and how it drives
the external optimizer. Per-run flags (level, debug, output) live in
BuildConfiguration instead.

Contract:
- Inputs: Environment variables, YAML files
- Outputs: Validated settings objects
- Side Effects: None (read-only)
"""

from pathlib import Path

from pydantic import Field
from pydantic import field_validator
from pydantic_settings import BaseSettings
from pydantic_settings import SettingsConfigDict

DEFAULT_SUPPRESSED_DIAGNOSTICS = [
    "nonStandardJsDocs",  # docs warnings
    "checkTypes",  # array types and other missing types
    "misplacedTypeAnnotation",  # docs using @type on defineProperty
    "globalThis",
    "suspiciousCode",
]


class BuildSettings(BaseSettings):
    """Configuration for the build pipeline.

    Relative paths are resolved against build_dir, the directory the build
    is run from.

    Attributes:
        build_dir: Build directory (default: current directory)
        repo_root: Root the staging area mirrors (default: ..)
        manifest_path: Ordered list of sources (default: dependencies.txt)
        staging_dir: Temporary staging area (default: _tmp)
        log_level: Logging level (default: info)

    Example:
        >>> settings = BuildSettings()
        >>> assert settings.manifest_path == Path("dependencies.txt")
        >>> assert settings.keep_staging_on_failure
    """

    model_config = SettingsConfigDict(
        env_prefix="PCBUILD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    build_dir: Path = Path(".")
    repo_root: Path = Path("..")
    manifest_path: Path = Path("dependencies.txt")
    staging_dir: Path = Path("_tmp")
    wrapper_path: Path = Path("umd-wrapper.js")
    externs_path: Path = Path("externs.js")
    version_file: Path = Path("../VERSION")

    # Shader chunk aggregation
    chunks_dir: Path = Path("../src/graphics/program-lib/chunks")
    chunks_output: Path = Path("../src/graphics/program-lib/chunks/generated-shader-chunks.js")
    shader_namespace: str = "pc.shaderChunks"

    # External optimizer
    compiler_command: list[str] = Field(default_factory=lambda: ["google-closure-compiler"])
    language_in: str = "ECMASCRIPT5"
    warning_level: str = "VERBOSE"
    suppressed_diagnostics: list[str] = Field(default_factory=lambda: list(DEFAULT_SUPPRESSED_DIAGNOSTICS))
    compiler_timeout_seconds: float | None = Field(default=None, gt=0)

    # Pipeline policy
    keep_staging_on_failure: bool = True
    max_parallel_workers: int = Field(default=8, ge=1, le=64)

    # Copyright banner
    engine_name: str = "PlayCanvas Engine"
    copyright_holder: str = "PlayCanvas Ltd."
    copyright_start_year: int = 2011

    log_level: str = "info"

    @field_validator("build_dir")
    @classmethod
    def expand_and_resolve_build_dir(cls, v: Path) -> Path:
        """Expand ~ and resolve to an absolute path."""
        return Path(v).expanduser().resolve()

    def resolve(self, path: Path | str) -> Path:
        """Resolve a configured path against the build directory.

        Args:
            path: Absolute path, or path relative to build_dir

        Returns:
            Absolute, normalized path
        """
        path = Path(path).expanduser()
        if not path.is_absolute():
            path = self.build_dir / path
        return path.resolve()

    @property
    def staging_root(self) -> Path:
        return self.resolve(self.staging_dir)

    @property
    def source_root(self) -> Path:
        return self.resolve(self.repo_root)
