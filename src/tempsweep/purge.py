"""Age and count based purging of scratch directories."""

import logging
import time
from dataclasses import dataclass
from datetime import timedelta

from .filesystem import TemporaryEntry, TemporaryFileSystem, physical_file_system
from .logging import log_ignored_error, log_with_context

logger = logging.getLogger(__name__)

# A directory is only purged when it contains this file
DEFAULT_TEMPORARY_CHECK_FILE = ".temporary"
DEFAULT_AUTO_EXPIRE_TIME = timedelta(days=1)
DEFAULT_MAX_FILES_IN_DIRECTORY = 1000


@dataclass(frozen=True)
class PurgePolicy:
    """
    Conditions under which a directory is purged.

    Attributes:
        auto_expire_time: Files created longer ago than this are deleted (zero disables)
        max_files_in_directory: Keep at most this many files, newest first
            (0 deletes everything, negative disables)
        check_file_name: Safety file that must exist in the directory (empty disables)
    """

    auto_expire_time: timedelta = DEFAULT_AUTO_EXPIRE_TIME
    max_files_in_directory: int = DEFAULT_MAX_FILES_IN_DIRECTORY
    check_file_name: str = DEFAULT_TEMPORARY_CHECK_FILE


@dataclass
class PurgeStats:
    """
    Counters collected during a purge pass.

    Attributes:
        files_scanned: Files found by the first listing, before anything was deleted
        files_counted: Files found by the count pass listing (0 when that pass is skipped)
        files_purged: Files actually deleted
        errors: Deletions that failed and were ignored
        aborted: The safety file was missing and nothing was done
    """

    files_scanned: int = 0
    files_counted: int = 0
    files_purged: int = 0
    errors: int = 0
    aborted: bool = False

    def as_dict(self) -> dict:
        return {
            "files_scanned": self.files_scanned,
            "files_counted": self.files_counted,
            "files_purged": self.files_purged,
            "errors": self.errors,
            "aborted": self.aborted,
        }


def _try_delete_entry(entry: TemporaryEntry, file_system: TemporaryFileSystem, stats: PurgeStats) -> None:
    try:
        file_system.delete_file(entry.full_path)
        stats.files_purged += 1
        logger.debug(f"Purged: {entry.full_path}")
    except Exception as e:
        stats.errors += 1
        log_ignored_error(logger, "Ignored purge failure", entry.full_path, e)


def purge_directory(
    directory: str,
    auto_expire_time: timedelta,
    max_files_in_directory: int,
    check_file_name: str | None,
    file_system: TemporaryFileSystem | None = None,
) -> PurgeStats:
    """
    Clear a scratch directory based on file age and file count.

    Files created before ``now - auto_expire_time`` are deleted first. The
    directory is then listed again and, if more than ``max_files_in_directory``
    files remain, the oldest ones are deleted until the count fits. The safety
    file named by ``check_file_name`` is never deleted, and if it is missing
    nothing is deleted at all.

    Failures to delete individual files are ignored, so the directory may
    still hold more than ``max_files_in_directory`` files afterwards.

    Args:
        directory: Directory to clear
        auto_expire_time: Age limit; ``timedelta(0)`` skips the age based pass
        max_files_in_directory: File count limit; 0 deletes all files, a
            negative value skips the count based pass
        check_file_name: Safety file to look for; empty or None skips the check
        file_system: Filesystem to operate on (defaults to the local disk)

    Returns:
        Statistics for the pass

    Raises:
        OSError: If the directory cannot be listed
    """
    file_system = file_system or physical_file_system
    stats = PurgeStats()

    check_file_name = check_file_name or ""
    if check_file_name:
        check_file_name = file_system.get_file_name(check_file_name).strip()
        if not file_system.file_exists(file_system.combine(directory, check_file_name)):
            stats.aborted = True
            log_with_context(
                logger,
                "debug",
                "Safety file missing, skipping purge",
                {"directory": directory, "check_file": check_file_name},
            )
            return stats

    check_name_folded = check_file_name.casefold()

    def is_check_file(entry: TemporaryEntry) -> bool:
        return bool(check_name_folded) and entry.name.casefold() == check_name_folded

    age_pass_ran = False

    # A zero cap deletes everything in the count pass anyway
    if auto_expire_time.total_seconds() != 0 and max_files_in_directory != 0:
        expire_limit = time.time() - auto_expire_time.total_seconds()

        entries = file_system.get_temporary_file_infos(directory)
        stats.files_scanned = len(entries)
        age_pass_ran = True
        for entry in entries:
            if entry.creation_time < expire_limit and not is_check_file(entry):
                _try_delete_entry(entry, file_system, stats)

    if max_files_in_directory >= 0:
        # List again, the age pass may have removed files
        entries = file_system.get_temporary_file_infos(directory)
        stats.files_counted = len(entries)
        if not age_pass_ran:
            stats.files_scanned = len(entries)

        if len(entries) > max_files_in_directory:
            if max_files_in_directory != 0:
                # Stable: files with equal times keep their listing order
                entries = sorted(entries, key=lambda entry: entry.creation_time)

            for entry in entries[: len(entries) - max_files_in_directory]:
                if not is_check_file(entry):
                    _try_delete_entry(entry, file_system, stats)

    log_with_context(
        logger,
        "debug",
        "Purge pass completed",
        {"directory": directory, **stats.as_dict()},
    )
    return stats


def purge_directory_default(directory: str, file_system: TemporaryFileSystem | None = None) -> PurgeStats:
    """Purge ``directory`` with the default :class:`PurgePolicy`."""
    return purge_with_policy(directory, PurgePolicy(), file_system)


def purge_with_policy(
    directory: str, policy: PurgePolicy, file_system: TemporaryFileSystem | None = None
) -> PurgeStats:
    """Purge ``directory`` according to ``policy``."""
    return purge_directory(
        directory,
        policy.auto_expire_time,
        policy.max_files_in_directory,
        policy.check_file_name,
        file_system,
    )
