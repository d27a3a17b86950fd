"""pcbuild command line.

Compiles the engine from source into a single JavaScript library.

Examples:
    # regular release build
    pcbuild build -l 0 -o output/playcanvas.js
    # production minified build
    pcbuild build -l 1 -o output/playcanvas.min.js
    # include extra debug code
    pcbuild build -l 0 -d -o output/playcanvas.dbg.js
"""

import asyncio
import logging
import sys
from pathlib import Path

import click
from pydantic import ValidationError

from pcbuild_library.config import create_default_config
from pcbuild_library.config import load_config
from pcbuild_library.errors import BuildError
from pcbuild_library.errors import OptimizerFailure
from pcbuild_library.models import BuildConfiguration
from pcbuild_library.services import BuildPipeline

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "../src"


def configure_logging(level: str) -> None:
    """Configure root logging for a CLI run."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for detail in error.errors():
        message = detail["msg"].removeprefix("Value error, ")
        messages.append(message)
    return "; ".join(messages)


@click.group()
def cli():
    """pcbuild - compile the engine into a single library."""
    pass


@cli.command()
@click.option("-l", "--level", default="0", show_default=True, help="Compiler level: 0 WHITESPACE_ONLY, 1 SIMPLE, 2 ADVANCED")
@click.option(
    "-o",
    "--output",
    "output_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file path [output/playcanvas.js]",
)
@click.option("-d", "--debug", is_flag=True, help="Build debug engine configuration")
@click.option("-p", "--profiler", is_flag=True, help="Build profiler engine configuration")
@click.option(
    "-m",
    "--source-map",
    "source_path",
    is_flag=False,
    flag_value=DEFAULT_SOURCE,
    default=None,
    help=f"Generate a source map next to the output, pointing at SOURCE_PATH [{DEFAULT_SOURCE}]",
)
@click.option(
    "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build directory (default: current directory)",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: build.yaml)",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def build(
    level: str,
    output_path: Path | None,
    debug: bool,
    profiler: bool,
    source_path: str | None,
    build_dir: Path | None,
    config_path: Path | None,
    verbose: bool,
):
    """Compile the engine from source."""
    try:
        options: dict = {
            "optimization_level": level,
            "debug": debug,
            "profiler": profiler,
            "source_map": source_path is not None,
        }
        if output_path is not None:
            options["output_path"] = output_path
        if source_path is not None:
            options["source_path"] = Path(source_path)
        config = BuildConfiguration(**options)
    except ValidationError as e:
        click.echo(f"Error: {_format_validation_error(e)}", err=True)
        sys.exit(1)

    try:
        settings = load_config(build_dir=build_dir, config_path=config_path)
    except (ValueError, ValidationError) as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        sys.exit(1)

    configure_logging("debug" if verbose else settings.log_level)

    if not settings.resolve(settings.manifest_path).is_file():
        click.echo(
            f"Error: {settings.manifest_path} not found in {settings.build_dir}; run pcbuild from the build directory",
            err=True,
        )
        sys.exit(1)

    try:
        report = asyncio.run(BuildPipeline(settings).run(config))
    except OptimizerFailure as e:
        if e.diagnostics:
            click.echo(e.diagnostics, err=True)
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    except BuildError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        logger.info("Received interrupt, build aborted")
        sys.exit(130)

    if report.compiler_output:
        click.echo(report.compiler_output)

    click.echo(f"Build completed in {report.elapsed_seconds:.3f} seconds!")


@cli.command("init-config")
@click.option(
    "--build-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build directory (default: current directory)",
)
def init_config(build_dir: Path | None):
    """Write a default build.yaml if none exists."""
    path = create_default_config(build_dir)
    click.echo(f"Config: {path}")


def main() -> None:
    """Console script entry point."""
    cli()
