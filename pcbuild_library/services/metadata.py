"""Build metadata lookups.

Version comes from the VERSION file, revision from git. Both lookups are
best-effort: failures fall back to sentinel values and never abort a build.
"""

import asyncio
import logging
from pathlib import Path

from ..models import BuildMetadata

logger = logging.getLogger(__name__)

VERSION_PLACEHOLDER = "__CURRENT_SDK_VERSION__"
REVISION_PLACEHOLDER = "__REVISION__"
UNKNOWN_REVISION = "-"


def read_version(version_file: Path) -> str:
    """Read the semantic version from the version file.

    Args:
        version_file: Path to the VERSION file

    Returns:
        Trimmed file content, or the version placeholder if unreadable
    """
    try:
        version = Path(version_file).read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Could not read version from {version_file}: {e}")
        return VERSION_PLACEHOLDER
    return version or VERSION_PLACEHOLDER


def resolve_revision(repo_dir: Path) -> str:
    """Get the short git revision of HEAD.

    Args:
        repo_dir: Any directory inside the working tree

    Returns:
        Short commit hash, or "-" if it cannot be determined
    """
    try:
        from git import Repo
        from git.exc import GitError

        with Repo(repo_dir, search_parent_directories=True) as repo:
            return repo.git.rev_parse("--short", "HEAD").strip()
    except ImportError as e:
        logger.warning(f"Could not determine git revision (git unavailable): {e}")
    except (GitError, OSError, ValueError) as e:
        logger.warning(f"Could not determine git revision in {repo_dir}: {e}")
    return UNKNOWN_REVISION


async def resolve_metadata(version_file: Path, repo_dir: Path) -> BuildMetadata:
    """Resolve version and revision concurrently.

    Args:
        version_file: Path to the VERSION file
        repo_dir: Directory inside the git working tree

    Returns:
        Build metadata with sentinels for failed lookups
    """
    version, revision = await asyncio.gather(
        asyncio.to_thread(read_version, version_file),
        asyncio.to_thread(resolve_revision, repo_dir),
    )
    logger.info(f"Build metadata: version={version} revision={revision}")
    return BuildMetadata(version=version, revision=revision)
