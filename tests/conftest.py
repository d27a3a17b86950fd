"""
Shared pytest fixtures for the pcbuild test suite.

Provides fixtures for:
- A throwaway repository laid out like the engine (src/, build/, VERSION)
- A fake optimizer script standing in for Closure Compiler
- BuildSettings pointing at the throwaway repository
"""

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

from pcbuild_library.config.settings import BuildSettings

# Concatenates its --js inputs into the wrapper's %output% slot, like the
# real optimizer at WHITESPACE_ONLY. Behaviour is steered by environment
# variables so tests can force failures and diagnostics.
FAKE_COMPILER = """
import json
import os
import sys
from pathlib import Path

args = sys.argv[1:]
log_path = os.environ.get("FAKE_COMPILER_ARGS_LOG")
if log_path:
    Path(log_path).write_text(json.dumps({"args": args, "cwd": os.getcwd()}))

stderr = os.environ.get("FAKE_COMPILER_STDERR", "")
if stderr:
    sys.stderr.write(stderr)
exit_code = int(os.environ.get("FAKE_COMPILER_EXIT", "0"))
if exit_code:
    sys.exit(exit_code)

options = {}
inputs = []
for arg in args:
    name, _, value = arg[2:].partition("=")
    if name == "js":
        inputs.append(value)
    else:
        options[name] = value

body = "".join(Path(p).read_text() for p in inputs)
wrapper = Path(options["output_wrapper_file"]).read_text()
output = Path(options["js_output_file"])
output.write_text(wrapper.replace("%output%", body))

if "create_source_map" in options:
    prefix, _, target = options["source_map_location_mapping"].partition("|")
    sources = [target + p[len(prefix):] if p.startswith(prefix) else p for p in inputs]
    Path(options["create_source_map"]).write_text(
        json.dumps({"version": 3, "file": output.name, "sources": sources})
    )

print("fake compiler done")
"""


@dataclass
class BuildTree:
    """Paths of the throwaway engine repository."""

    repo: Path
    src: Path
    build: Path
    chunks: Path
    compiler: Path

    @property
    def generated_chunks(self) -> Path:
        return self.chunks / "generated-shader-chunks.js"


@pytest.fixture
def build_tree(tmp_path: Path) -> BuildTree:
    """Create a minimal engine checkout.

    Layout:
        repo/VERSION
        repo/src/a.js, repo/src/core/b.js
        repo/src/graphics/program-lib/chunks/{fog.vert, fog.frag, notes.txt}
        repo/build/{dependencies.txt, umd-wrapper.js, externs.js, fake_compiler.py}
    """
    repo = tmp_path.resolve() / "repo"
    src = repo / "src"
    build = repo / "build"
    chunks = src / "graphics" / "program-lib" / "chunks"
    for directory in (src / "core", build, chunks):
        directory.mkdir(parents=True)

    (repo / "VERSION").write_text("1.2.3\n")

    (src / "a.js").write_text(
        "var a = 1;\n"
        "// #ifdef DEBUG\n"
        "console.log('debug a');\n"
        "// #endif\n"
        "var version = '__CURRENT_SDK_VERSION__';\n"
    )
    (src / "core" / "b.js").write_text(
        "var b = 2;\n"
        "// #ifdef PROFILER\n"
        "var profile = true;\n"
        "// #endif\n"
        "var revision = '__REVISION__';\n"
    )

    (chunks / "fog.vert").write_text("attribute vec3 pos;\nvoid main() {}\n")
    (chunks / "fog.frag").write_text("uniform float density;\r\n\r\nvoid main() {}\n")
    (chunks / "notes.txt").write_text("not a shader\n")

    (build / "dependencies.txt").write_text("../src/a.js\n../src/core/b.js\n")
    (build / "umd-wrapper.js").write_text("(function () {\n%output%})();\n")
    (build / "externs.js").write_text("var module;\n")

    compiler = build / "fake_compiler.py"
    compiler.write_text(FAKE_COMPILER)

    return BuildTree(repo=repo, src=src, build=build, chunks=chunks, compiler=compiler)


@pytest.fixture
def settings(build_tree: BuildTree) -> BuildSettings:
    """BuildSettings for the throwaway repository, using the fake optimizer."""
    return BuildSettings(
        build_dir=build_tree.build,
        compiler_command=[sys.executable, str(build_tree.compiler)],
    )


@pytest.fixture
def fixed_revision(monkeypatch: pytest.MonkeyPatch) -> str:
    """Pin the git revision lookup so tests do not depend on a real checkout."""
    revision = "abc1234"
    monkeypatch.setattr(
        "pcbuild_library.services.metadata.resolve_revision",
        lambda repo_dir: revision,
    )
    return revision


@pytest.fixture(autouse=True)
def clean_pcbuild_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep PCBUILD_* variables from the developer's shell out of tests."""
    import os

    for key in list(os.environ):
        if key.startswith("PCBUILD_") or key.startswith("FAKE_COMPILER_"):
            monkeypatch.delenv(key)
