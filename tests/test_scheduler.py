"""Tests for per-file processing and the worker pool."""

from pathlib import Path

from flugen_cli.errors import ParseError
from flugen_cli.models import GenerationOptions
from flugen_cli.scheduler import generate_source, process_file, run, run_generation

from conftest import MemoryFileSystem

VALID = """part 'user.flu.dart';

// @flu
abstract class _User {
  int get id;
  String get name;
}
"""

BROKEN = """// @flu
abstract class _Broken {
  int get id
}
"""

PLAIN = "class Helper {}\n"


def test_generate_source_counts_classes():
    content, count = generate_source(VALID, "lib/user.dart", GenerationOptions())
    assert count == 1
    assert "class User extends _User {" in content


class TestProcessFile:
    def test_writes_companion(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/user.dart"] = VALID

        result = process_file("lib/user.dart", GenerationOptions(), memory_fs)

        assert result.status == "written"
        assert result.output_path == "lib/user.flu.dart"
        assert result.class_count == 1
        assert memory_fs.files["lib/user.flu.dart"] == result.content

    def test_second_run_unchanged(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/user.dart"] = VALID
        process_file("lib/user.dart", GenerationOptions(), memory_fs)

        result = process_file("lib/user.dart", GenerationOptions(), memory_fs)

        assert result.status == "unchanged"
        assert memory_fs.writes == ["lib/user.flu.dart"]

    def test_no_classes_skipped(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/helper.dart"] = PLAIN

        result = process_file("lib/helper.dart", GenerationOptions(), memory_fs)

        assert result.status == "skipped"
        assert memory_fs.writes == []

    def test_parse_error_reported(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/broken.dart"] = BROKEN

        result = process_file("lib/broken.dart", GenerationOptions(), memory_fs)

        assert result.failed
        assert result.error_kind == ParseError.kind
        assert result.error_line == 3
        assert memory_fs.writes == []

    def test_unresolved_type_reported(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/bad.dart"] = "// @flu\nabstract class _Bad {\n  Map<String> get m;\n}\n"

        result = process_file("lib/bad.dart", GenerationOptions(), memory_fs)

        assert result.error_kind == "UnresolvedTypeError"
        assert result.error_line == 3

    def test_missing_source_is_read_error(self, memory_fs: MemoryFileSystem):
        result = process_file("lib/gone.dart", GenerationOptions(), memory_fs)
        assert result.error_kind == "ReadError"

    def test_write_failure_reported(self, memory_fs: MemoryFileSystem):
        class ReadOnlyFileSystem(MemoryFileSystem):
            def write_text(self, path, content):
                raise PermissionError(path)

        fs = ReadOnlyFileSystem({"lib/user.dart": VALID})
        result = process_file("lib/user.dart", GenerationOptions(), fs)
        assert result.error_kind == "WriteError"

    def test_unexpected_exception_becomes_internal_error(self, memory_fs: MemoryFileSystem):
        class ExplodingFileSystem(MemoryFileSystem):
            def read_text(self, path):
                raise RuntimeError("boom")

        result = process_file("lib/user.dart", GenerationOptions(), ExplodingFileSystem())
        assert result.error_kind == "InternalError"
        assert "boom" in result.error_message

    def test_dry_run_reports_stale_without_writing(self, memory_fs: MemoryFileSystem):
        memory_fs.files["lib/user.dart"] = VALID
        memory_fs.files["lib/user.flu.dart"] = "// outdated\n"

        result = process_file("lib/user.dart", GenerationOptions(dry_run=True), memory_fs)

        assert result.status == "stale"
        assert result.previous_content == "// outdated\n"
        assert memory_fs.writes == []


class TestRunGeneration:
    def test_results_follow_input_order(self, memory_fs: MemoryFileSystem):
        paths = [f"lib/m{i}.dart" for i in range(12)]
        for i, path in enumerate(paths):
            memory_fs.files[path] = VALID if i % 3 else PLAIN

        summary = run_generation(paths, GenerationOptions(workers=4), memory_fs)

        assert [r.path for r in summary.results] == paths
        assert summary.count("written") == 8
        assert summary.count("skipped") == 4
        assert summary.exit_code == 0

    def test_one_failure_does_not_stop_others(self, memory_fs: MemoryFileSystem):
        memory_fs.files.update({"lib/a.dart": BROKEN, "lib/b.dart": VALID})

        summary = run_generation(["lib/a.dart", "lib/b.dart"], GenerationOptions(workers=2), memory_fs)

        assert len(summary.failures) == 1
        assert summary.results[1].status == "written"
        assert summary.exit_code == 1

    def test_empty_input(self, memory_fs: MemoryFileSystem):
        summary = run_generation([], GenerationOptions(), memory_fs)
        assert summary.results == []
        assert summary.exit_code == 0


def test_broken_and_valid_files_on_disk(temp_dir: Path):
    """One syntax error and one valid file: one companion, one failure, non-zero exit."""
    lib = temp_dir / "lib"
    lib.mkdir()
    (lib / "broken.dart").write_text(BROKEN)
    (lib / "user.dart").write_text(VALID)

    summary = run(GenerationOptions(patterns=(str(lib / "*.dart"),), workers=2))

    assert (lib / "user.flu.dart").is_file()
    assert not (lib / "broken.flu.dart").exists()
    assert len(summary.failures) == 1
    assert summary.failures[0].path.endswith("broken.dart")
    assert summary.exit_code != 0


def test_run_does_not_read_its_own_output(temp_dir: Path):
    (temp_dir / "user.dart").write_text(VALID)
    options = GenerationOptions(patterns=(str(temp_dir / "*.dart"),))

    run(options)
    summary = run(options)

    assert [r.status for r in summary.results] == ["unchanged"]
