"""Run purge and sweep passes over several directories concurrently."""

import asyncio
import time
from datetime import timedelta
from pathlib import Path

import aiofiles.os

from . import __version__
from .deletion import try_delete_marked_files
from .filesystem import TemporaryFileSystem, physical_file_system
from .logging import log_with_context, setup_logging
from .purge import PurgePolicy, purge_with_policy

COMMANDS = ("purge", "sweep")


class SweepRunner:
    """
    Apply tempsweep passes to a list of scratch directories.

    The housekeeping routines are synchronous, so each directory is handled
    in the default executor while a semaphore bounds how many run at once.
    Directories that do not exist are reported and skipped.
    """

    def __init__(
        self,
        paths: list[str],
        command: str = "purge",
        policy: PurgePolicy | None = None,
        sweep_marked: bool = False,
        max_concurrency: int = 4,
        log_level: str = "INFO",
        file_system: TemporaryFileSystem | None = None,
    ):
        """
        Initialize the runner.

        Args:
            paths: Directories to process
            command: "purge" to purge (and optionally sweep), "sweep" to only sweep markers
            policy: Purge policy (defaults to PurgePolicy())
            sweep_marked: Also sweep deletion markers after purging
            max_concurrency: Maximum directories processed at once
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
            file_system: Filesystem to operate on (defaults to the local disk)

        Raises:
            ValueError: If invalid parameters are provided
        """
        if command not in COMMANDS:
            raise ValueError(f"command must be one of {COMMANDS}, got {command!r}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        if not paths:
            raise ValueError("at least one path is required")

        self.policy = policy or PurgePolicy()
        if self.policy.auto_expire_time < timedelta(0):
            raise ValueError(f"auto_expire_time must be >= 0, got {self.policy.auto_expire_time}")

        self.paths = [str(Path(p).resolve()) for p in paths]
        self.command = command
        self.sweep_marked = sweep_marked or command == "sweep"
        self.max_concurrency = max_concurrency
        self.file_system = file_system or physical_file_system
        self.semaphore = asyncio.Semaphore(max_concurrency)

        self.stats = {
            "directories": len(self.paths),
            "directories_missing": 0,
            "directories_aborted": 0,
            "directories_failed": 0,
            "files_scanned": 0,
            "files_purged": 0,
            "markers_processed": 0,
            "errors": 0,
        }

        self.logger = setup_logging("tempsweep", log_level)

    def process_directory_sync(self, directory: str) -> dict:
        """Run the configured passes on one directory."""
        result = {
            "files_scanned": 0,
            "files_counted": 0,
            "files_purged": 0,
            "errors": 0,
            "aborted": False,
            "markers_processed": 0,
        }

        if self.command == "purge":
            result.update(purge_with_policy(directory, self.policy, self.file_system).as_dict())

        if self.sweep_marked:
            result["markers_processed"] = try_delete_marked_files(directory, self.file_system)

        return result

    async def process_directory(self, directory: str) -> None:
        """
        Process a single directory under the concurrency limit.

        Args:
            directory: Directory to process
        """
        async with self.semaphore:
            if not await aiofiles.os.path.isdir(directory):
                log_with_context(self.logger, "warning", "Directory does not exist, skipping", {"directory": directory})
                self.stats["directories_missing"] += 1
                return

            loop = asyncio.get_running_loop()
            try:
                result = await loop.run_in_executor(None, self.process_directory_sync, directory)
            except OSError as e:
                log_with_context(
                    self.logger,
                    "error",
                    "Error processing directory",
                    {"directory": directory, "error": str(e), "error_type": type(e).__name__},
                )
                self.stats["directories_failed"] += 1
                return

        if result["aborted"]:
            self.stats["directories_aborted"] += 1
            log_with_context(
                self.logger,
                "warning",
                "Safety file missing, directory left untouched",
                {"directory": directory, "check_file": self.policy.check_file_name},
            )

        for key in ("files_scanned", "files_purged", "markers_processed", "errors"):
            self.stats[key] += result[key]

        log_with_context(self.logger, "info", "Directory processed", {"directory": directory, **result})

    async def run(self) -> dict:
        """
        Process every directory.

        Returns:
            Dictionary with operation statistics
        """
        start_time = time.time()

        log_with_context(
            self.logger,
            "info",
            f"Starting tempsweep {self.command}",
            {
                "version": __version__,
                "paths": self.paths,
                "auto_expire_seconds": self.policy.auto_expire_time.total_seconds(),
                "max_files_in_directory": self.policy.max_files_in_directory,
                "check_file_name": self.policy.check_file_name,
                "sweep_marked": self.sweep_marked,
                "max_concurrency": self.max_concurrency,
            },
        )

        await asyncio.gather(*(self.process_directory(path) for path in self.paths))

        final_stats = {"duration_seconds": round(time.time() - start_time, 2), **self.stats}
        log_with_context(self.logger, "info", "tempsweep completed", final_stats)
        return final_stats


async def async_main(
    paths: list[str],
    command: str = "purge",
    max_age_days: float = 1.0,
    max_files: int = 1000,
    check_file: str = ".temporary",
    sweep_marked: bool = False,
    max_concurrency: int = 4,
    log_level: str = "INFO",
) -> dict:
    """
    Async entry point for the runner.

    Args:
        paths: Directories to process
        command: "purge" or "sweep"
        max_age_days: Files older than this (in days) are purged, 0 disables
        max_files: Maximum files kept per directory, negative disables
        check_file: Safety file name, empty disables the check
        sweep_marked: Also sweep deletion markers after purging
        max_concurrency: Maximum directories processed at once
        log_level: Logging level

    Returns:
        Operation statistics
    """
    if max_age_days < 0:
        raise ValueError(f"max_age_days must be >= 0, got {max_age_days}")

    runner = SweepRunner(
        paths=paths,
        command=command,
        policy=PurgePolicy(
            auto_expire_time=timedelta(days=max_age_days),
            max_files_in_directory=max_files,
            check_file_name=check_file,
        ),
        sweep_marked=sweep_marked,
        max_concurrency=max_concurrency,
        log_level=log_level,
    )

    return await runner.run()
