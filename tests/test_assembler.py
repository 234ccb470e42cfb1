"""Tests for companion paths and file assembly."""

import pytest

from flugen_cli.assembler import (
    FORMAT_OFF,
    assemble_file,
    companion_path,
    normalize_path,
    part_of_target,
)
from flugen_cli.errors import WriteError
from flugen_cli.models import GenerationOptions
from flugen_cli.parser import parse_source
from flugen_cli.resolver import TypeResolver


def resolve_all(source: str, path: str = "lib/user.dart"):
    parsed = parse_source(source, path)
    resolver = TypeResolver.for_file(parsed, GenerationOptions())
    return [resolver.resolve_class(c) for c in parsed.classes]


class TestPaths:
    def test_normalize_windows_separators(self):
        assert normalize_path("lib\\models\\user.dart", sep="\\") == "lib/models/user.dart"

    def test_normalize_collapses_dots(self):
        assert normalize_path("./lib/../lib/user.dart", sep="/") == "lib/user.dart"

    def test_companion_beside_source(self):
        assert companion_path("lib/models/user.dart", GenerationOptions(), sep="/") == "lib/models/user.flu.dart"

    def test_companion_on_windows(self):
        path = companion_path("lib\\models\\user.dart", GenerationOptions(), sep="\\")
        assert path == "lib/models/user.flu.dart"

    def test_custom_suffix(self):
        options = GenerationOptions(output_suffix=".model.dart")
        assert companion_path("lib/user.dart", options, sep="/") == "lib/user.model.dart"

    def test_output_dir_mirrors_tree(self):
        options = GenerationOptions(output_dir="gen", root="lib")
        assert companion_path("lib/models/user.dart", options, sep="/") == "gen/models/user.flu.dart"

    def test_output_dir_rejects_sources_outside_root(self):
        options = GenerationOptions(output_dir="gen", root="lib")
        with pytest.raises(WriteError, match="outside root"):
            companion_path("test/user.dart", options, sep="/")

    def test_part_of_target(self):
        assert part_of_target("lib/user.dart", "lib/user.flu.dart") == "user.dart"
        assert part_of_target("lib/models/user.dart", "gen/models/user.flu.dart") == "../../lib/models/user.dart"


class TestAssembleFile:
    SOURCE = """// @flu
abstract class _User {
  int get id;
}

// @flu
abstract class _Group {
  List<User> get members;
}
"""

    def test_header_and_part_of(self):
        content = assemble_file("lib/user.dart", resolve_all(self.SOURCE), GenerationOptions(), sep="/")
        lines = content.splitlines()
        assert lines[0] == FORMAT_OFF
        assert lines[2] == (
            "// ignore_for_file: avoid_equals_and_hash_code_on_mutable_classes, "
            "document_ignores, lines_longer_than_80_chars"
        )
        assert "part of 'user.dart';" in lines

    def test_part_of_uses_forward_slashes_on_windows(self):
        options = GenerationOptions(output_dir="gen", root="lib")
        content = assemble_file(
            "lib\\models\\user.dart", resolve_all(self.SOURCE), options, sep="\\"
        )
        assert "part of '../../lib/models/user.dart';" in content
        assert "\\" not in content

    def test_classes_in_declaration_order(self):
        content = assemble_file("lib/user.dart", resolve_all(self.SOURCE), GenerationOptions(), sep="/")
        assert content.index("class User extends _User {") < content.index("class Group extends _Group {")
        assert content.endswith("}\n")

    def test_no_classes(self):
        assert assemble_file("lib/plain.dart", [], GenerationOptions(), sep="/") is None

    def test_deterministic(self):
        classes = resolve_all(self.SOURCE)
        first = assemble_file("lib/user.dart", classes, GenerationOptions(), sep="/")
        second = assemble_file("lib/user.dart", resolve_all(self.SOURCE), GenerationOptions(), sep="/")
        assert first == second
