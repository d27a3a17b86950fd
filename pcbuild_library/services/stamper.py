"""Artifact stamping.

Adds the copyright banner to the optimizer output and replaces the version
and revision placeholders anywhere in its text.

Contract:
- Inputs: Artifact path, BuildConfiguration, BuildMetadata
- Outputs: None
- Side Effects: Rewrites the artifact in place (tmp + rename)
"""

import logging
from datetime import datetime
from pathlib import Path

from ..errors import StampError
from ..models import BuildConfiguration
from ..models import BuildMetadata
from ..storage import write_text_atomic
from .metadata import REVISION_PLACEHOLDER
from .metadata import VERSION_PLACEHOLDER

logger = logging.getLogger(__name__)


class ArtifactStamper:
    """Writes build metadata into the produced artifact."""

    def __init__(self, engine_name: str, copyright_holder: str, copyright_start_year: int):
        self.engine_name = engine_name
        self.copyright_holder = copyright_holder
        self.copyright_start_year = copyright_start_year

    def copyright_notice(self, metadata: BuildMetadata, config: BuildConfiguration, year: int | None = None) -> str:
        """Render the banner comment, including a trailing newline.

        Example:
            >>> stamper = ArtifactStamper("PlayCanvas Engine", "PlayCanvas Ltd.", 2011)
            >>> print(stamper.copyright_notice(BuildMetadata("1.2.3", "abc1234"), BuildConfiguration(), 2026))
            /*
             * PlayCanvas Engine v1.2.3 revision abc1234
             * Copyright 2011-2026 PlayCanvas Ltd. All rights reserved.
             */
            <BLANKLINE>
        """
        year = year or datetime.now().year
        return "\n".join(
            [
                "/*",
                f" * {self.engine_name} v{metadata.version} revision {metadata.revision}{config.mode_annotation}",
                f" * Copyright {self.copyright_start_year}-{year} {self.copyright_holder} All rights reserved.",
                " */",
                "",
            ]
        )

    def apply(self, content: str, metadata: BuildMetadata, config: BuildConfiguration) -> str:
        """Return stamped artifact text.

        Source-mapped builds get the banner appended so the byte offsets the
        map refers to stay valid.
        """
        notice = self.copyright_notice(metadata, config)
        if config.source_map:
            content = content + "\n" + notice
        else:
            content = notice + content

        content = content.replace(VERSION_PLACEHOLDER, metadata.version)
        return content.replace(REVISION_PLACEHOLDER, metadata.revision)

    def stamp(self, artifact_path: Path, metadata: BuildMetadata, config: BuildConfiguration) -> None:
        """Stamp the artifact in place.

        Args:
            artifact_path: Optimizer output file
            metadata: Resolved version and revision
            config: Active build configuration

        Raises:
            StampError: If the artifact cannot be read or rewritten
        """
        try:
            with open(artifact_path, encoding="utf-8", newline="") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise StampError(f"Failed to read artifact {artifact_path}: {e}") from e

        try:
            write_text_atomic(Path(artifact_path), self.apply(content, metadata, config))
        except OSError as e:
            raise StampError(f"Failed to write artifact {artifact_path}: {e}") from e

        logger.info(f"Stamped {artifact_path} with v{metadata.version} ({metadata.revision})")
