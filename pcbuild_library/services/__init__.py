"""Build pipeline stages."""

from .compiler import CompilationInvoker
from .compiler import CompilerOptions
from .manifest import load_manifest
from .metadata import resolve_metadata
from .pipeline import BuildPipeline
from .preprocessor import ConditionalCompilationStage
from .shader_chunks import ShaderChunkAggregator
from .stamper import ArtifactStamper
from .staging import StagingArea

__all__ = [
    "ArtifactStamper",
    "BuildPipeline",
    "CompilationInvoker",
    "CompilerOptions",
    "ConditionalCompilationStage",
    "ShaderChunkAggregator",
    "StagingArea",
    "load_manifest",
    "resolve_metadata",
]
