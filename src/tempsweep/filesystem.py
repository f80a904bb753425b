"""Filesystem capability consumed by the purge and sweep routines.

The housekeeping code never touches ``os`` directly. It goes through a
:class:`TemporaryFileSystem`, which keeps the surface small enough to be
replaced by an in-memory fake in tests.
"""

import fnmatch
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TemporaryEntry:
    """A file observed while scanning a scratch directory."""

    name: str
    full_path: str
    creation_time: float


class TemporaryFileSystem(ABC):
    """Narrow filesystem interface used by tempsweep."""

    @abstractmethod
    def file_exists(self, path: str) -> bool:
        """Return True if ``path`` is an existing file."""

    @abstractmethod
    def directory_exists(self, path: str) -> bool:
        """Return True if ``path`` is an existing directory."""

    @abstractmethod
    def get_temporary_file_infos(self, directory: str) -> list[TemporaryEntry]:
        """List the files directly inside ``directory``.

        Raises:
            OSError: If the directory cannot be enumerated.
        """

    @abstractmethod
    def get_files(self, directory: str, pattern: str) -> list[str]:
        """Return full paths of files in ``directory`` matching a glob pattern."""

    @abstractmethod
    def delete_file(self, path: str) -> None:
        """Delete a file.

        Raises:
            OSError: If the file could not be removed.
        """

    @abstractmethod
    def read_all_text(self, path: str) -> str:
        """Read a small text file."""

    @abstractmethod
    def write_all_text(self, path: str, text: str) -> None:
        """Create or overwrite a small text file."""

    @abstractmethod
    def get_last_write_time_token(self, path: str) -> int:
        """Return the file's last write time as a comparable integer."""

    def combine(self, directory: str, name: str) -> str:
        return os.path.join(directory, name)

    def get_file_name(self, path: str) -> str:
        return os.path.basename(path)


def _is_listed(entry: os.DirEntry) -> bool:
    # Symlinks are listed (removing one only drops the link) but never followed
    return entry.is_file(follow_symlinks=False) or entry.is_symlink()


class PhysicalFileSystem(TemporaryFileSystem):
    """:class:`TemporaryFileSystem` backed by the local disk."""

    def file_exists(self, path: str) -> bool:
        return os.path.isfile(path)

    def directory_exists(self, path: str) -> bool:
        return os.path.isdir(path)

    def get_temporary_file_infos(self, directory: str) -> list[TemporaryEntry]:
        entries = []
        with os.scandir(directory) as it:
            for entry in it:
                if not _is_listed(entry):
                    continue
                try:
                    stat = entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    # Removed by someone else between listing and stat
                    continue
                entries.append(
                    TemporaryEntry(
                        name=entry.name,
                        full_path=entry.path,
                        # No portable creation time; mtime is the age of the data
                        creation_time=stat.st_mtime,
                    )
                )
        return entries

    def get_files(self, directory: str, pattern: str) -> list[str]:
        with os.scandir(directory) as it:
            return [
                entry.path
                for entry in it
                if _is_listed(entry) and fnmatch.fnmatch(entry.name, pattern)
            ]

    def delete_file(self, path: str) -> None:
        os.remove(path)

    def read_all_text(self, path: str) -> str:
        with open(path, encoding="utf-8") as f:
            return f.read()

    def write_all_text(self, path: str, text: str) -> None:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)

    def get_last_write_time_token(self, path: str) -> int:
        return os.stat(path).st_mtime_ns


physical_file_system = PhysicalFileSystem()
