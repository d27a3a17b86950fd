"""Error taxonomy for the build pipeline.

Every stage raises a subclass of BuildError so the CLI can translate
failures into exit codes in a single place.
"""

from pathlib import Path


class BuildError(Exception):
    """Base class for all build pipeline failures."""

    exit_code: int = 1


class ManifestReadError(BuildError):
    """Raised when the manifest file cannot be read."""


class BuildIOError(BuildError):
    """Raised when a directory cannot be listed or a file cannot be written."""


class PreprocessError(BuildError):
    """Raised when a manifest entry cannot be staged.

    Attributes:
        path: Manifest entry that failed
    """

    def __init__(self, path: Path | str, message: str):
        self.path = Path(path)
        super().__init__(f"{path}: {message}")


class DirectiveError(ValueError):
    """Raised when conditional-compilation directives cannot be evaluated.

    Attributes:
        line: 1-based line number of the offending directive (None at end of input)
    """

    def __init__(self, message: str, line: int | None = None):
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class OptimizerFailure(BuildError):
    """Raised when the external optimizer exits with a non-zero status.

    Attributes:
        exit_code: Exit status reported by the optimizer
        diagnostics: Verbatim diagnostic output of the optimizer
    """

    def __init__(self, exit_code: int, diagnostics: str):
        self.exit_code = exit_code
        self.diagnostics = diagnostics
        super().__init__(f"Optimizer failed with exit code {exit_code}")


class CompilerNotFoundError(BuildError):
    """Raised when the configured optimizer command cannot be started."""


class StampError(BuildError):
    """Raised when the produced artifact cannot be read or rewritten."""
