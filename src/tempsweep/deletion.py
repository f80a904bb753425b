"""Single file deletion with a deferred "mark and sweep" fallback.

A file that cannot be removed right away (typically because another process
still holds it open) can be marked by writing ``<name>.delete`` next to it.
The marker stores the file's last write time token; a later call to
:func:`try_delete_marked_files` removes the file only if that token still
matches, so a file that was rewritten after being marked is left alone.
"""

import logging
from enum import Enum

from .filesystem import TemporaryFileSystem, physical_file_system
from .logging import log_ignored_error, log_with_context

logger = logging.getLogger(__name__)

MARKER_SUFFIX = ".delete"


class DeleteType(Enum):
    """How hard a caller wants a file gone."""

    DELETE = "delete"
    TRY_DELETE = "try_delete"
    TRY_DELETE_OR_MARK = "try_delete_or_mark"


def try_delete(file_path: str, file_system: TemporaryFileSystem | None = None) -> None:
    """
    Delete a file if it exists, ignoring any failure.

    Args:
        file_path: File to be deleted
        file_system: Filesystem to operate on (defaults to the local disk)
    """
    file_system = file_system or physical_file_system

    if file_system.file_exists(file_path):
        try:
            delete(file_path, file_system)
        except Exception as e:
            log_ignored_error(logger, "Ignored delete failure", file_path, e)


def delete(file_path: str, file_system: TemporaryFileSystem | None = None) -> None:
    """
    Delete a file along with its deletion marker, if any.

    A missing file is not an error. Failure to remove the file itself
    propagates; failure to remove the marker is ignored.

    Args:
        file_path: File to be deleted
        file_system: Filesystem to operate on (defaults to the local disk)

    Raises:
        OSError: If the file exists and could not be removed
    """
    file_system = file_system or physical_file_system

    if file_system.file_exists(file_path):
        file_system.delete_file(file_path)
        logger.debug(f"Deleted: {file_path}")

    marker_path = file_path + MARKER_SUFFIX
    if file_system.file_exists(marker_path):
        try:
            file_system.delete_file(marker_path)
        except Exception as e:
            log_ignored_error(logger, "Ignored marker delete failure", marker_path, e)


def delete_with_type(
    file_path: str, delete_type: DeleteType, file_system: TemporaryFileSystem | None = None
) -> None:
    """
    Delete, try to delete, or mark a file for deletion depending on ``delete_type``.

    Args:
        file_path: File to be deleted
        delete_type: Strategy to apply
        file_system: Filesystem to operate on (defaults to the local disk)
    """
    match delete_type:
        case DeleteType.DELETE:
            delete(file_path, file_system)
        case DeleteType.TRY_DELETE:
            try_delete(file_path, file_system)
        case DeleteType.TRY_DELETE_OR_MARK:
            try_delete_or_mark(file_path, file_system)
        case _:
            raise ValueError(f"Unknown delete type: {delete_type!r}")


def try_delete_or_mark(file_path: str, file_system: TemporaryFileSystem | None = None) -> None:
    """
    Try to delete a file, or mark it for :func:`try_delete_marked_files`.

    If the file survives the delete attempt, ``<file_path>.delete`` is written
    with the file's current last write time token. A marker that cannot be
    written is ignored; the file is then left for a regular purge.

    Args:
        file_path: File to be deleted
        file_system: Filesystem to operate on (defaults to the local disk)
    """
    file_system = file_system or physical_file_system

    try_delete(file_path, file_system)
    if not file_system.file_exists(file_path):
        return

    marker_path = file_path + MARKER_SUFFIX
    try:
        token = file_system.get_last_write_time_token(file_path)
        file_system.write_all_text(marker_path, str(token))
        log_with_context(logger, "debug", "Marked for deletion", {"file": file_path, "token": token})
    except Exception as e:
        log_ignored_error(logger, "Could not write deletion marker", file_path, e)


def try_delete_marked_files(directory: str, file_system: TemporaryFileSystem | None = None) -> int:
    """
    Delete files marked by :func:`try_delete_or_mark` in a directory.

    Every marker is consumed. The file it protects is deleted only when its
    last write time still equals the recorded token; otherwise it is assumed
    to be back in use and kept. A missing directory is a no-op, and a failure
    on one marker does not stop the sweep.

    Args:
        directory: Directory holding the marked files
        file_system: Filesystem to operate on (defaults to the local disk)

    Returns:
        Number of markers processed
    """
    file_system = file_system or physical_file_system

    if not file_system.directory_exists(directory):
        return 0

    processed = 0
    for marker_path in file_system.get_files(directory, "*" + MARKER_SUFFIX):
        try:
            actual_file = marker_path[: -len(MARKER_SUFFIX)]
            if file_system.file_exists(actual_file):
                stored = file_system.read_all_text(marker_path).strip()
                try:
                    token = int(stored)
                except ValueError:
                    token = None

                if token is not None and token == file_system.get_last_write_time_token(actual_file):
                    try_delete(actual_file, file_system)
                else:
                    log_with_context(
                        logger,
                        "debug",
                        "Marked file changed since marking, keeping it",
                        {"file": actual_file, "marker_token": stored},
                    )
            try_delete(marker_path, file_system)
            processed += 1
        except Exception as e:
            log_ignored_error(logger, "Ignored failure while sweeping marker", marker_path, e)

    return processed
