"""Manifest loading.

The manifest is a text file listing one source path per line. Its order is
the only dependency ordering the pipeline guarantees, so entries are kept
exactly as listed: no deduplication and no existence checks.
"""

import logging
import re
from pathlib import Path

from ..errors import ManifestReadError

logger = logging.getLogger(__name__)

_LINE_BREAKS = re.compile(r"[\r\n]+")


def parse_manifest(text: str) -> list[str]:
    """Split manifest text into trimmed, non-empty entries.

    Example:
        >>> parse_manifest("a.js\\r\\n  b.js \\n\\nc.js\\n")
        ['a.js', 'b.js', 'c.js']
    """
    entries = (line.strip() for line in _LINE_BREAKS.split(text))
    return [entry for entry in entries if entry]


def load_manifest(path: Path) -> list[str]:
    """Load the ordered list of source files from a manifest file.

    Args:
        path: Manifest file path

    Returns:
        Entries in file order

    Raises:
        ManifestReadError: If the file cannot be read or is not UTF-8
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestReadError(f"Failed to read manifest {path}: {e}") from e

    entries = parse_manifest(text)
    logger.info(f"Loaded {len(entries)} manifest entries from {path}")
    return entries
