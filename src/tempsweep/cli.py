"""Command-line interface for tempsweep."""

import argparse
import asyncio
import os
import sys

from . import __version__
from .codes import random_file_code
from .runner import async_main


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "paths",
        nargs="+",
        help="Scratch directories to process",
    )

    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=int(os.getenv("TEMPSWEEP_MAX_CONCURRENCY", "4")),
        help="Maximum directories processed at once",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=os.getenv("TEMPSWEEP_LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="tempsweep - Best-effort housekeeping for scratch directories",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"tempsweep {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    purge_parser = subparsers.add_parser(
        "purge",
        help="Delete expired and excess files from directories carrying the safety file",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_common_arguments(purge_parser)

    purge_parser.add_argument(
        "--max-age-days",
        type=float,
        default=float(os.getenv("TEMPSWEEP_MAX_AGE_DAYS", "1.0")),
        help="Files older than this (in days) will be purged (0 = no age limit)",
    )

    purge_parser.add_argument(
        "--max-files",
        type=int,
        default=int(os.getenv("TEMPSWEEP_MAX_FILES", "1000")),
        help="Keep at most this many files per directory (0 = delete all, -1 = no limit)",
    )

    purge_parser.add_argument(
        "--check-file",
        type=str,
        default=os.getenv("TEMPSWEEP_CHECK_FILE", ".temporary"),
        help="Safety file that must exist for a directory to be purged (empty = no check)",
    )

    purge_parser.add_argument(
        "--sweep-marked",
        action="store_true",
        default=os.getenv("TEMPSWEEP_SWEEP_MARKED", "").lower() in ("1", "true", "yes"),
        help="Also delete files marked with a .delete marker",
    )

    sweep_parser = subparsers.add_parser(
        "sweep",
        help="Delete files marked with a .delete marker",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    _add_common_arguments(sweep_parser)

    code_parser = subparsers.add_parser(
        "code",
        help="Print random codes usable in scratch file names",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    code_parser.add_argument(
        "--count",
        type=int,
        default=1,
        help="Number of codes to print",
    )

    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the CLI."""
    args = parse_args(argv)

    if args.command == "code":
        for _ in range(args.count):
            print(random_file_code())
        sys.exit(0)

    try:
        if args.command == "purge":
            stats = asyncio.run(
                async_main(
                    paths=args.paths,
                    command="purge",
                    max_age_days=args.max_age_days,
                    max_files=args.max_files,
                    check_file=args.check_file,
                    sweep_marked=args.sweep_marked,
                    max_concurrency=args.max_concurrency,
                    log_level=args.log_level,
                )
            )
        else:
            stats = asyncio.run(
                async_main(
                    paths=args.paths,
                    command="sweep",
                    max_concurrency=args.max_concurrency,
                    log_level=args.log_level,
                )
            )

        # A directory that could not be listed is a failure the caller must see
        sys.exit(1 if stats["directories_failed"] else 0)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
