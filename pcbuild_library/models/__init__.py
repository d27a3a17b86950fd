"""Models for the build pipeline."""

from .build import BuildConfiguration
from .build import BuildMetadata
from .build import BuildReport
from .build import CompilationResult
from .build import OptimizationLevel
from .build import ShaderChunk
from .build import ShaderRole
from .build import StagedFile

__all__ = [
    "BuildConfiguration",
    "BuildMetadata",
    "BuildReport",
    "CompilationResult",
    "OptimizationLevel",
    "ShaderChunk",
    "ShaderRole",
    "StagedFile",
]
