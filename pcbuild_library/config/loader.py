"""Configuration loading for the build pipeline.

This module handles loading build settings from a build.yaml file in the
build directory and from environment variables.

Contract:
- Inputs: Config file paths, environment variables
- Outputs: BuildSettings objects
- Side Effects: create_default_config writes build.yaml
"""

import logging
import os
from pathlib import Path

import yaml

from .settings import BuildSettings

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "build.yaml"

DEFAULT_CONFIG = """# pcbuild configuration
# Relative paths are resolved against the build directory.
# Every key can be overridden with a PCBUILD_<KEY> environment variable.

# Inputs
repo_root: ".."
manifest_path: "dependencies.txt"
staging_dir: "_tmp"
wrapper_path: "umd-wrapper.js"
externs_path: "externs.js"
version_file: "../VERSION"

# Shader chunks
chunks_dir: "../src/graphics/program-lib/chunks"
chunks_output: "../src/graphics/program-lib/chunks/generated-shader-chunks.js"

# External optimizer
compiler_command: ["google-closure-compiler"]
# compiler_timeout_seconds: 600

# Leave the staging area behind when a build fails
keep_staging_on_failure: true

log_level: "info"
"""


def get_config_path(build_dir: Path | None = None) -> Path:
    """Get path to config file.

    Args:
        build_dir: Build directory (default: current directory)

    Returns:
        Path to build.yaml in the build directory

    Example:
        >>> config_path = get_config_path()
        >>> assert config_path.name == "build.yaml"
    """
    return Path(build_dir or Path.cwd()) / CONFIG_FILENAME


def create_default_config(build_dir: Path | None = None) -> Path:
    """Create default config file if it doesn't exist.

    Args:
        build_dir: Build directory (default: current directory)

    Returns:
        Path to the config file
    """
    config_path = get_config_path(build_dir)

    if config_path.exists():
        logger.debug(f"Config file already exists: {config_path}")
        return config_path

    config_path.write_text(DEFAULT_CONFIG, encoding="utf-8")
    logger.info(f"Created default config: {config_path}")
    return config_path


def load_config(build_dir: Path | None = None, config_path: Path | None = None) -> BuildSettings:
    """Load build settings from YAML and environment.

    Precedence (lowest to highest): defaults, build.yaml, PCBUILD_* variables.
    A missing config file is not an error.

    Args:
        build_dir: Build directory (default: current directory)
        config_path: Optional config file path (default: build.yaml in build_dir)

    Returns:
        Validated build settings

    Raises:
        ValueError: If the config file is not valid YAML
    """
    build_dir = Path(build_dir or Path.cwd())
    if config_path is None:
        config_path = get_config_path(build_dir)

    yaml_settings = {}
    if config_path.exists():
        try:
            with open(config_path, encoding="utf-8") as f:
                yaml_settings = yaml.safe_load(f) or {}
            logger.debug(f"Loaded config from {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}") from e
        if not isinstance(yaml_settings, dict):
            raise ValueError(f"Configuration file {config_path} must contain a mapping")
    else:
        logger.debug(f"No configuration file found at {config_path}, using defaults")

    # Only pass YAML values that don't have corresponding env vars
    filtered_yaml = {}
    for key, value in yaml_settings.items():
        env_key = f"PCBUILD_{key.upper()}"
        if env_key not in os.environ:
            filtered_yaml[key] = value

    filtered_yaml.setdefault("build_dir", build_dir)
    if "PCBUILD_BUILD_DIR" in os.environ:
        filtered_yaml.pop("build_dir")

    settings = BuildSettings(**filtered_yaml)

    logger.debug(
        f"Build configuration loaded: build_dir={settings.build_dir}, "
        f"manifest={settings.manifest_path}, compiler={settings.compiler_command}"
    )

    return settings
