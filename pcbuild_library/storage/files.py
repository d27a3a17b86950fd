"""File helpers shared by the pipeline stages.

Contract:
- Inputs: Target paths and text content
- Outputs: None
- Side Effects: Writes files using the tmp + rename pattern
"""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def write_text_atomic(path: Path, content: str) -> None:
    """Write text to a file atomically.

    The content goes to a sibling temporary file which then replaces the
    target, so readers never see a half-written file.

    Args:
        path: Target file path
        content: Text to write (UTF-8)

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.with_name(path.name + ".tmp")
    try:
        with open(temp_path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        temp_path.replace(path)
        logger.debug(f"Wrote {path}")
    except OSError:
        # Clean up temp file on error
        if temp_path.exists():
            temp_path.unlink()
        raise


def remove_tree(path: Path) -> bool:
    """Recursively remove a directory if it exists.

    Args:
        path: Directory to remove

    Returns:
        True if a directory was removed
    """
    if not path.is_dir():
        return False
    shutil.rmtree(path)
    logger.debug(f"Removed {path}")
    return True
