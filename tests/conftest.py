"""Pytest configuration and shared fixtures."""

import fnmatch
import sys
import tempfile
import time
from pathlib import Path

import pytest

# Add src directory to Python path to ensure tests use local source code
# instead of installed package
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from tempsweep.filesystem import TemporaryEntry, TemporaryFileSystem  # noqa: E402


class MemoryFileSystem(TemporaryFileSystem):
    """In-memory filesystem with a single level of directories.

    Paths listed in ``locked`` refuse to be deleted, like a file held open
    by another process on Windows. ``fail_writes`` does the same for writes.
    """

    def __init__(self, directories=("/tmp/scratch",)):
        self.directories = set(directories)
        # path -> [creation_time, last_write_token, content]
        self.files: dict[str, list] = {}
        self.locked: set[str] = set()
        self.fail_writes: set[str] = set()
        self.delete_calls: list[str] = []
        self._clock = 1_000_000

    def _tick(self) -> int:
        self._clock += 1
        return self._clock

    def add_file(self, path: str, age_seconds: float = 0.0, content: str = "") -> str:
        self.files[path] = [time.time() - age_seconds, self._tick(), content]
        return path

    def touch(self, path: str) -> None:
        self.files[path][1] = self._tick()

    def combine(self, directory: str, name: str) -> str:
        return directory.rstrip("/") + "/" + name

    def get_file_name(self, path: str) -> str:
        return path.rsplit("/", 1)[-1]

    def file_exists(self, path: str) -> bool:
        return path in self.files

    def directory_exists(self, path: str) -> bool:
        return path in self.directories

    def _children(self, directory: str) -> list[str]:
        if directory not in self.directories:
            raise FileNotFoundError(directory)
        prefix = directory.rstrip("/") + "/"
        return [p for p in self.files if p.startswith(prefix) and "/" not in p[len(prefix) :]]

    def get_temporary_file_infos(self, directory: str) -> list[TemporaryEntry]:
        return [
            TemporaryEntry(name=self.get_file_name(p), full_path=p, creation_time=self.files[p][0])
            for p in self._children(directory)
        ]

    def get_files(self, directory: str, pattern: str) -> list[str]:
        return [p for p in self._children(directory) if fnmatch.fnmatchcase(self.get_file_name(p), pattern)]

    def delete_file(self, path: str) -> None:
        self.delete_calls.append(path)
        if path in self.locked:
            raise PermissionError(f"File is in use: {path}")
        if path not in self.files:
            raise FileNotFoundError(path)
        del self.files[path]

    def read_all_text(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][2]

    def write_all_text(self, path: str, text: str) -> None:
        if path in self.fail_writes:
            raise PermissionError(f"Cannot write: {path}")
        if path in self.files:
            self.files[path][1] = self._tick()
            self.files[path][2] = text
        else:
            self.files[path] = [time.time(), self._tick(), text]

    def get_last_write_time_token(self, path: str) -> int:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path][1]

    def names(self, directory: str = "/tmp/scratch") -> set[str]:
        return {self.get_file_name(p) for p in self._children(directory)}


@pytest.fixture
def memfs():
    """In-memory filesystem with an empty /tmp/scratch directory."""
    return MemoryFileSystem()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)
