"""Engine build library.

This is the pipeline layer behind the pcbuild command line: it stages the
manifest sources, runs the external optimizer and stamps the result.

Public Interface:
    Modules:
    - config: Settings loading
    - models: Build configuration and stage results
    - services: Pipeline stages and the orchestrating BuildPipeline
    - storage: File helpers
    - utils: Directive evaluation
"""

from .errors import BuildError
from .models import BuildConfiguration
from .models import OptimizationLevel

__all__ = [
    "BuildConfiguration",
    "BuildError",
    "OptimizationLevel",
]
