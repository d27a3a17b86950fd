"""Shader chunk aggregation.

Collects every vertex (.vert) and fragment (.frag) shader in the chunks
directory and writes them into one generated script as string constants:

    // autogenerated at: 2026-10-17T09:00:00+00:00
    pc.shaderChunks.fogExp2PS = "uniform float fog_density;\\n...";

Contract:
- Inputs: Chunks directory, generated module path
- Outputs: List of ShaderChunk objects, in file name order
- Side Effects: Overwrites the generated module
"""

import logging
import re
from datetime import UTC
from datetime import datetime
from pathlib import Path

from ..errors import BuildIOError
from ..models import ShaderChunk
from ..models import ShaderRole
from ..storage import write_text_atomic

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


def flatten_shader(text: str) -> str:
    """Collapse every run of line breaks into a literal \\n escape."""
    return _LINE_BREAKS.sub(lambda _: "\\n", text)


def chunk_name(filename: str, role: ShaderRole) -> str:
    """Derive the constant name: base name up to the first dot, plus role tag.

    Example:
        >>> chunk_name("lightDiffuse.frag", ShaderRole.FRAGMENT)
        'lightDiffusePS'
    """
    return filename.split(".")[0] + role.value


class ShaderChunkAggregator:
    """Builds the generated shader chunks module."""

    def __init__(self, chunks_dir: Path, output_path: Path, namespace: str = "pc.shaderChunks"):
        """Initialize aggregator.

        Args:
            chunks_dir: Directory containing .vert/.frag files
            output_path: Generated module path (overwritten on every run)
            namespace: Object the chunks are assigned onto
        """
        self.chunks_dir = Path(chunks_dir)
        self.output_path = Path(output_path)
        self.namespace = namespace

    def collect(self) -> list[ShaderChunk]:
        """Read every recognized shader in the chunks directory.

        Files are visited in lexicographic order so the generated module is
        reproducible across platforms.

        Raises:
            BuildIOError: If the directory cannot be listed or a shader cannot be read
        """
        try:
            entries = sorted(p for p in self.chunks_dir.iterdir() if p.is_file())
        except OSError as e:
            raise BuildIOError(f"Failed to list shader chunks in {self.chunks_dir}: {e}") from e

        chunks = []
        for path in entries:
            role = ShaderRole.from_filename(path.name)
            if role is None:
                continue
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise BuildIOError(f"Failed to read shader chunk {path}: {e}") from e
            chunks.append(
                ShaderChunk(
                    name=chunk_name(path.name, role),
                    role=role,
                    source=path,
                    content=flatten_shader(content),
                )
            )
        return chunks

    def render(self, chunks: list[ShaderChunk], generated_at: datetime | None = None) -> str:
        """Render chunks as a script of string-constant assignments."""
        generated_at = generated_at or datetime.now(UTC)
        lines = [f"// autogenerated at: {generated_at.isoformat(timespec='seconds')}\n"]
        for chunk in chunks:
            lines.append(f'{self.namespace}.{chunk.name} = "{chunk.content}";\n')
        return "".join(lines)

    def write(self) -> list[ShaderChunk]:
        """Collect chunks and overwrite the generated module.

        Returns:
            Chunks written, in emission order

        Raises:
            BuildIOError: If shaders cannot be read or the module cannot be written
        """
        chunks = self.collect()
        try:
            write_text_atomic(self.output_path, self.render(chunks))
        except OSError as e:
            raise BuildIOError(f"Failed to write shader chunks to {self.output_path}: {e}") from e

        logger.info(f"Wrote {len(chunks)} shader chunks to {self.output_path}")
        return chunks
