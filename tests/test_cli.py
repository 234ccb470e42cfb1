"""Integration tests for CLI commands."""

from pathlib import Path

from typer.testing import CliRunner

from flugen_cli import __version__
from flugen_cli.cli import app


runner = CliRunner()

BROKEN = "// @flu\nabstract class _Broken {\n  int get id\n}\n"


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestGenerateCommand:
    """Tests for 'flugen generate'."""

    def test_generate_project(self, dart_project: Path):
        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 0
        user = dart_project / "lib" / "models" / "user.flu.dart"
        address = dart_project / "lib" / "models" / "address.flu.dart"
        assert user.is_file()
        assert address.is_file()
        assert not (dart_project / "lib" / "main.flu.dart").exists()
        assert not (dart_project / "lib" / "models" / "user.g.flu.dart").exists()

        content = user.read_text()
        assert "part of 'user.dart';" in content
        assert "const User({" in content
        assert "role: Role.values.byName(json['role'] as String)," in content
        assert "userName: json['user_name'] as String," in content
        assert "written" in result.stdout

    def test_generate_twice_reports_unchanged(self, dart_project: Path):
        runner.invoke(app, ["generate"])
        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 0
        assert "unchanged" in result.stdout

    def test_failure_exit_code(self, dart_project: Path):
        (dart_project / "lib" / "broken.dart").write_text(BROKEN)

        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 1
        assert "broken.dart:3" in result.stdout
        assert "ParseError" in result.stdout
        assert (dart_project / "lib" / "models" / "user.flu.dart").is_file()

    def test_custom_pattern_and_suffix(self, dart_project: Path):
        result = runner.invoke(
            app, ["generate", "-p", "lib/models/address.dart", "--suffix", ".model.dart"]
        )

        assert result.exit_code == 0
        assert (dart_project / "lib" / "models" / "address.model.dart").is_file()
        assert not (dart_project / "lib" / "models" / "user.model.dart").exists()

    def test_no_const(self, dart_project: Path):
        runner.invoke(app, ["generate", "--no-const"])

        content = (dart_project / "lib" / "models" / "user.flu.dart").read_text()
        assert "const User(" not in content

    def test_strict_rejects_cross_file_types(self, dart_project: Path):
        result = runner.invoke(app, ["generate", "--strict"])

        assert result.exit_code == 1
        assert "UnresolvedTypeError" in result.stdout

    def test_unmatched_pattern_is_warning(self, dart_project: Path):
        result = runner.invoke(app, ["generate", "-p", "nope/*.dart", "-p", "lib/**/*.dart"])

        assert result.exit_code == 0
        assert "No files matched" in result.stdout

    def test_config_error_exit_code(self, dart_project: Path):
        (dart_project / "flugen.toml").write_text("[flugen]\nworkers = 0\n")

        result = runner.invoke(app, ["generate"])

        assert result.exit_code == 2
        assert "Configuration error" in result.stdout

    def test_missing_config_file(self, dart_project: Path):
        result = runner.invoke(app, ["generate", "--config", "missing.toml"])
        assert result.exit_code == 2


class TestCheckCommand:
    """Tests for 'flugen check'."""

    def test_check_before_generate_is_stale(self, dart_project: Path):
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "stale" in result.stdout
        assert not (dart_project / "lib" / "models" / "user.flu.dart").exists()

    def test_check_after_generate_passes(self, dart_project: Path):
        runner.invoke(app, ["generate"])
        result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        assert "up to date" in result.stdout

    def test_check_diff(self, dart_project: Path):
        runner.invoke(app, ["generate"])
        user_source = dart_project / "lib" / "models" / "user.dart"
        user_source.write_text(user_source.read_text().replace("  int get id;\n", "  int get id;\n  int get age;\n"))

        result = runner.invoke(app, ["check", "--diff"])

        assert result.exit_code == 1
        assert "+  final int age;" in result.stdout


class TestInspectCommand:
    """Tests for 'flugen inspect'."""

    def test_inspect_fixture(self, sample_project_path: Path):
        path = sample_project_path / "lib" / "models" / "user.dart"

        result = runner.invoke(app, ["inspect", str(path)])

        assert result.exit_code == 0
        assert "User" in result.stdout
        assert "user_name" in result.stdout
        assert "enum Role" in result.stdout
        assert "Enums: Role" in result.stdout

    def test_inspect_plain_file(self, sample_project_path: Path):
        result = runner.invoke(app, ["inspect", str(sample_project_path / "lib" / "main.dart")])

        assert result.exit_code == 0
        assert "No @flu classes" in result.stdout

    def test_inspect_parse_error(self, temp_dir: Path):
        path = temp_dir / "broken.dart"
        path.write_text(BROKEN)

        result = runner.invoke(app, ["inspect", str(path)])

        assert result.exit_code == 1
        assert "expected ';'" in result.stdout

    def test_inspect_missing_file(self):
        result = runner.invoke(app, ["inspect", "/nonexistent/file.dart"])
        assert result.exit_code != 0
