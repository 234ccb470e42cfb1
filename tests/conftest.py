"""Pytest configuration and fixtures for flugen tests."""

import shutil
import tempfile
import threading
from pathlib import Path
from typing import Dict, Generator, Optional

import pytest

from flugen_cli.file_system import FileSystem


class MemoryFileSystem(FileSystem):
    """In-memory file system keyed by POSIX path."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})
        self.writes = []
        self._lock = threading.Lock()

    def read_text(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def read_existing(self, path: str) -> Optional[str]:
        return self.files.get(path)

    def write_text(self, path: str, content: str) -> None:
        with self._lock:
            self.files[path] = content
            self.writes.append(path)


@pytest.fixture(autouse=True)
def _isolate_config(monkeypatch):
    """Keep a developer's FLUGEN_CONFIG out of the tests."""
    monkeypatch.delenv("FLUGEN_CONFIG", raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample Dart project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def dart_project(temp_dir: Path, sample_project_path: Path, monkeypatch) -> Path:
    """Writable copy of the sample project, used as the working directory."""
    project = temp_dir / "app"
    shutil.copytree(sample_project_path, project)
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


@pytest.fixture
def sample_dart_code() -> str:
    """Sample Dart source with one eligible class."""
    return """
part 'user.flu.dart';

// @flu
abstract class _User {
  int get id;
  String get name;
}
"""
