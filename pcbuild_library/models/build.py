"""Build pipeline data models.

Contract:
- BuildConfiguration is resolved once at startup and never mutated
- Everything else is produced by one stage and consumed by the next
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator


class OptimizationLevel(str, Enum):
    """The three compilation levels understood by the optimizer, lowest first."""

    WHITESPACE_ONLY = "WHITESPACE_ONLY"
    SIMPLE = "SIMPLE"
    ADVANCED = "ADVANCED"

    @classmethod
    def from_index(cls, index: int) -> OptimizationLevel:
        """Map a numeric level (0, 1 or 2) to its enum member.

        Raises:
            ValueError: If index is outside the fixed range
        """
        levels = list(cls)
        if isinstance(index, bool) or not 0 <= index < len(levels):
            raise ValueError(f"Invalid compiler level {index!r}, should be: 0, 1 or 2")
        return levels[index]

    @property
    def is_lowest(self) -> bool:
        return self is OptimizationLevel.WHITESPACE_ONLY


class BuildConfiguration(BaseModel):
    """Immutable build flags shared by every pipeline stage.

    Attributes:
        optimization_level: Optimizer level (accepts a member, its name, or index 0-2)
        debug: Include DEBUG-guarded code (implies PROFILER)
        profiler: Include PROFILER-guarded code
        output_path: Where the optimizer writes the artifact
        source_map: Generate a source map next to the artifact
        source_path: Source tree the source map should point back to

    Example:
        >>> config = BuildConfiguration(optimization_level=1, debug=True)
        >>> config.optimization_level
        <OptimizationLevel.SIMPLE: 'SIMPLE'>
        >>> config.feature_flags
        {'PROFILER': True, 'DEBUG': True}
    """

    model_config = ConfigDict(frozen=True)

    optimization_level: OptimizationLevel = Field(
        default=OptimizationLevel.WHITESPACE_ONLY,
        description="Optimizer compilation level",
    )
    debug: bool = Field(default=False, description="Build debug engine configuration")
    profiler: bool = Field(default=False, description="Build profiler engine configuration")
    output_path: Path = Field(default=Path("output/playcanvas.js"), description="Output file path")
    source_map: bool = Field(default=False, description="Generate a source map next to the output")
    source_path: Path = Field(default=Path("../src"), description="Source root referenced by the source map")

    @field_validator("optimization_level", mode="before")
    @classmethod
    def parse_level(cls, v: object) -> object:
        """Accept numeric indices as well as level names."""
        if isinstance(v, int):
            return OptimizationLevel.from_index(v)
        if isinstance(v, str) and v.strip().isdigit():
            return OptimizationLevel.from_index(int(v))
        return v

    @property
    def feature_flags(self) -> dict[str, bool]:
        """Switches evaluated by conditional-compilation directives."""
        return {
            "PROFILER": self.profiler or self.debug,
            "DEBUG": self.debug,
        }

    @property
    def mode_annotation(self) -> str:
        """Build-mode suffix used in the copyright banner."""
        if self.debug:
            return " (DEBUG PROFILER)"
        if self.profiler:
            return " (PROFILER)"
        return ""

    @property
    def source_map_path(self) -> Path:
        return self.output_path.with_name(self.output_path.name + ".map")


@dataclass(frozen=True)
class StagedFile:
    """A manifest entry paired with its preprocessed copy in the staging area."""

    original_path: Path
    staged_path: Path


class ShaderRole(str, Enum):
    """Shader role, inferred from the file suffix. Values are the name tags."""

    VERTEX = "VS"
    FRAGMENT = "PS"

    @classmethod
    def from_filename(cls, filename: str) -> ShaderRole | None:
        if filename.endswith(".vert"):
            return cls.VERTEX
        if filename.endswith(".frag"):
            return cls.FRAGMENT
        return None


@dataclass(frozen=True)
class ShaderChunk:
    """One shader source flattened into a single line.

    Attributes:
        name: Generated constant name (<baseName><ROLE>)
        role: Vertex or fragment
        source: Shader file the chunk came from
        content: Shader text with line breaks collapsed to a literal \\n
    """

    name: str
    role: ShaderRole
    source: Path
    content: str


@dataclass
class CompilationResult:
    """Outcome of one optimizer run."""

    exit_code: int
    stdout: str
    stderr: str
    output_path: Path
    source_map_path: Path | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def warnings(self) -> str:
        return self.stderr.strip()


@dataclass(frozen=True)
class BuildMetadata:
    """Version and revision stamped into the artifact."""

    version: str
    revision: str


@dataclass
class BuildReport:
    """Summary of a completed build."""

    output_path: Path
    metadata: BuildMetadata
    staged_count: int
    chunk_count: int
    elapsed_seconds: float
    source_map_path: Path | None = None
    compiler_output: str = ""
    warnings: list[str] = field(default_factory=list)
