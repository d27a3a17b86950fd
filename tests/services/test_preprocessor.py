"""Tests for the staging area and the conditional-compilation stage."""

import time
from pathlib import Path
from unittest.mock import patch

import pytest

from pcbuild_library.errors import BuildIOError
from pcbuild_library.errors import PreprocessError
from pcbuild_library.models import BuildConfiguration
from pcbuild_library.models import StagedFile
from pcbuild_library.services.preprocessor import ConditionalCompilationStage
from pcbuild_library.services.staging import StagingArea


@pytest.fixture
def staging(build_tree) -> StagingArea:
    return StagingArea(build_tree.build / "_tmp", build_tree.repo)


@pytest.fixture
def entries(build_tree) -> list[Path]:
    return [build_tree.src / "a.js", build_tree.src / "core" / "b.js"]


@pytest.mark.unit
class TestStagingArea:
    """Test StagingArea path mapping and lifecycle."""

    def test_staged_path_mirrors_repository_layout(self, staging: StagingArea, build_tree) -> None:
        staged = staging.staged_path_for(build_tree.src / "core" / "b.js")

        assert staged == build_tree.build / "_tmp" / "src" / "core" / "b.js"

    def test_relative_path_normalizes_dot_dot(self, staging: StagingArea, build_tree) -> None:
        original = build_tree.build / ".." / "src" / "a.js"

        assert staging.relative_path(original) == Path("src/a.js")

    def test_file_outside_repository_is_rejected(self, staging: StagingArea, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="outside the repository root"):
            staging.relative_path(tmp_path / "elsewhere.js")

    def test_reset_removes_stale_tree(self, staging: StagingArea) -> None:
        stale = staging.root / "src" / "old.js"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")

        staging.reset()

        assert not staging.root.exists()

    def test_cleanup_without_tree_is_noop(self, staging: StagingArea) -> None:
        staging.cleanup()

        assert not staging.root.exists()


@pytest.mark.unit
class TestConditionalCompilationStage:
    """Test ConditionalCompilationStage."""

    @pytest.mark.asyncio
    async def test_release_build_strips_guarded_code(self, staging: StagingArea, entries: list[Path]) -> None:
        stage = ConditionalCompilationStage(staging)

        staged = await stage.run(entries, BuildConfiguration())

        assert [item.original_path for item in staged] == entries
        a_text = staged[0].staged_path.read_text()
        b_text = staged[1].staged_path.read_text()
        assert a_text == "var a = 1;\nvar version = '__CURRENT_SDK_VERSION__';\n"
        assert "profile" not in b_text
        assert "#ifdef" not in b_text

    @pytest.mark.asyncio
    async def test_profiler_build_keeps_profiler_code_only(self, staging: StagingArea, entries: list[Path]) -> None:
        stage = ConditionalCompilationStage(staging)

        staged = await stage.run(entries, BuildConfiguration(profiler=True))

        assert "debug a" not in staged[0].staged_path.read_text()
        assert "var profile = true;" in staged[1].staged_path.read_text()

    @pytest.mark.asyncio
    async def test_debug_build_implies_profiler(self, staging: StagingArea, entries: list[Path]) -> None:
        stage = ConditionalCompilationStage(staging)

        staged = await stage.run(entries, BuildConfiguration(debug=True))

        assert "console.log('debug a');" in staged[0].staged_path.read_text()
        assert "var profile = true;" in staged[1].staged_path.read_text()

    @pytest.mark.asyncio
    async def test_source_map_build_copies_verbatim(self, staging: StagingArea, entries: list[Path]) -> None:
        stage = ConditionalCompilationStage(staging)

        staged = await stage.run(entries, BuildConfiguration(source_map=True, debug=True))

        for item in staged:
            assert item.staged_path.read_text() == item.original_path.read_text()

    @pytest.mark.asyncio
    async def test_order_is_kept_with_single_worker(self, staging: StagingArea, build_tree) -> None:
        names = [f"m{i}.js" for i in range(12)]
        for name in names:
            (build_tree.src / name).write_text(f"// {name}\n")
        entries = [build_tree.src / name for name in reversed(names)]

        staged = await ConditionalCompilationStage(staging, max_workers=1).run(entries, BuildConfiguration())

        assert [item.original_path.name for item in staged] == list(reversed(names))

    @pytest.mark.asyncio
    async def test_order_is_kept_when_files_finish_out_of_order(
        self, staging: StagingArea, build_tree, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test results follow the manifest even when later files finish first."""
        names = [f"m{i}.js" for i in range(6)]
        for name in names:
            (build_tree.src / name).write_text(f"// {name}\n")
        entries = [build_tree.src / name for name in names]
        stage = ConditionalCompilationStage(staging)
        finished: list[str] = []
        stage_file = stage.stage_file

        def slow_stage_file(original: Path, config: BuildConfiguration) -> StagedFile:
            # Earlier entries take longer
            time.sleep(0.05 * (len(names) - names.index(original.name)))
            staged_file = stage_file(original, config)
            finished.append(original.name)
            return staged_file

        monkeypatch.setattr(stage, "stage_file", slow_stage_file)

        staged = await stage.run(entries, BuildConfiguration())

        assert finished != names
        assert [item.original_path.name for item in staged] == names

    @pytest.mark.asyncio
    async def test_stale_staging_content_is_removed(self, staging: StagingArea, entries: list[Path]) -> None:
        stale = staging.root / "src" / "removed.js"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")

        await ConditionalCompilationStage(staging).run(entries, BuildConfiguration())

        assert not stale.exists()

    @pytest.mark.asyncio
    async def test_missing_entry_names_the_file(self, staging: StagingArea, build_tree) -> None:
        missing = build_tree.src / "missing.js"

        with pytest.raises(PreprocessError, match="cannot read source") as exc_info:
            await ConditionalCompilationStage(staging).run([build_tree.src / "a.js", missing], BuildConfiguration())

        assert exc_info.value.path == missing

    @pytest.mark.asyncio
    async def test_unbalanced_directive_names_the_file(self, staging: StagingArea, build_tree) -> None:
        broken = build_tree.src / "broken.js"
        broken.write_text("// #ifdef DEBUG\nvar x;\n")

        with pytest.raises(PreprocessError, match="invalid directive") as exc_info:
            await ConditionalCompilationStage(staging).run([broken], BuildConfiguration())

        assert exc_info.value.path == broken

    def test_entry_outside_repository_fails(self, staging: StagingArea, tmp_path: Path) -> None:
        outside = tmp_path / "outside.js"
        outside.write_text("var outside;\n")

        with pytest.raises(PreprocessError, match="outside the repository root"):
            ConditionalCompilationStage(staging).stage_file(outside, BuildConfiguration())

    @pytest.mark.asyncio
    async def test_source_map_build_keeps_crlf(self, staging: StagingArea, build_tree) -> None:
        """Test source-mapped staging is byte for byte, line endings included."""
        crlf = build_tree.src / "crlf.js"
        crlf.write_bytes(b"var a;\r\n// #ifdef DEBUG\r\nvar b;\r\n// #endif\r\n")

        staged = await ConditionalCompilationStage(staging).run([crlf], BuildConfiguration(source_map=True))

        assert staged[0].staged_path.read_bytes() == crlf.read_bytes()

    @pytest.mark.asyncio
    async def test_release_build_keeps_crlf_on_kept_lines(self, staging: StagingArea, build_tree) -> None:
        crlf = build_tree.src / "crlf.js"
        crlf.write_bytes(b"var a;\r\n// #ifdef DEBUG\r\nvar b;\r\n// #endif\r\nvar c;\r\n")

        staged = await ConditionalCompilationStage(staging).run([crlf], BuildConfiguration())

        assert staged[0].staged_path.read_bytes() == b"var a;\r\nvar c;\r\n"

    @pytest.mark.asyncio
    async def test_failure_waits_for_files_in_flight(self, staging: StagingArea, build_tree) -> None:
        """Test a failing first entry is reported only after the other files are written."""
        payload = "var filler = 0;\n" * 16384
        names = [f"big{i}.js" for i in range(40)]
        for name in names:
            (build_tree.src / name).write_text(payload)
        missing = build_tree.src / "missing.js"
        entries = [missing] + [build_tree.src / name for name in names]

        with pytest.raises(PreprocessError) as exc_info:
            await ConditionalCompilationStage(staging).run(entries, BuildConfiguration())

        assert exc_info.value.path == missing
        for name in names:
            assert (staging.root / "src" / name).stat().st_size == len(payload)

    @pytest.mark.asyncio
    async def test_earliest_failure_in_manifest_order_wins(self, staging: StagingArea, build_tree) -> None:
        broken = build_tree.src / "broken.js"
        broken.write_text("// #endif\n")
        missing = build_tree.src / "missing.js"

        with pytest.raises(PreprocessError) as exc_info:
            await ConditionalCompilationStage(staging).run(
                [build_tree.src / "a.js", broken, missing], BuildConfiguration()
            )

        assert exc_info.value.path == broken

    @pytest.mark.asyncio
    async def test_unremovable_staging_tree_is_a_build_error(self, staging: StagingArea, entries: list[Path]) -> None:
        with patch("pcbuild_library.services.staging.remove_tree", side_effect=PermissionError("denied")):
            with pytest.raises(BuildIOError, match="Failed to remove staging directory"):
                await ConditionalCompilationStage(staging).run(entries, BuildConfiguration())
