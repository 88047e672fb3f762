#!/usr/bin/env python3
"""
dicomdedup CLI - Command line interface for duplicate DICOM detection.
Runs the same scan pipeline as library callers, with console or JSON output.
Removal is optional and safe: --keep-one moves files to system trash, never permanent erase.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import os
import signal
import sys
import time
from typing import List, NoReturn, Optional
import logging

logging.basicConfig(
    level=logging.ERROR,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from dicomdedup.core.errors import ConfigurationError
from dicomdedup.core.models import DEFAULT_MAX_FILE_SIZE, DuplicateGroup, HashRecord, ScanParams, ScanResult
from dicomdedup.core.sorter import Sorter
from dicomdedup.commands import ScanCommand
from dicomdedup.utils.convert_utils import ConvertUtils
from dicomdedup.services.file_service import FileService
from dicomdedup.services.duplicate_service import DuplicateService
from dicomdedup.services.report_service import ReportService
from dicomdedup.aliases import (
    MODE_ALIASES, DEEP_HELP_TEXT,
    SORT_ALIASES, SORT_CHOICES, SORT_HELP_TEXT,
    EPILOG_TEXT
)


def _raise_on_sigterm(signum, frame) -> NoReturn:
    """Turns SIGTERM into SystemExit so context managers (the path spool) clean up."""
    raise SystemExit(128 + signum)


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.communicate: bool = False

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        for stream in (sys.stdout, sys.stderr):
            if hasattr(stream, "reconfigure"):
                stream.reconfigure(encoding='utf-8')

    @staticmethod
    def parse_args(args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        parser = argparse.ArgumentParser(
            prog="dicomdedup",
            description="dicomdedup - find duplicate DICOM files by content, not by metadata",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "roots",
            nargs="+",
            type=str,
            metavar="ROOT",
            help="Directories to scan (one or more)"
        )

        # Scan options
        parser.add_argument(
            "--deep", "-d",
            action="store_true",
            help=DEEP_HELP_TEXT
        )
        parser.add_argument(
            "--concurrency", "-j",
            type=int,
            default=None,
            metavar='N',
            help="Files processed in parallel. Default: CPU count - 1 (at least 2)"
        )
        parser.add_argument(
            "--max-size",
            type=str,
            default=None,
            metavar='SIZE',
            help=f"Skip files larger than this (e.g., 500MB, 2GB). Default: {DEFAULT_MAX_FILE_SIZE} bytes"
        )

        # Output options
        parser.add_argument(
            "--output", "-f",
            type=str,
            default=None,
            metavar='FILE',
            help="Write duplicate groups and counters to a JSON file"
        )
        parser.add_argument(
            "--communicate", "-c",
            action="store_true",
            help="Print line-delimited JSON events (duplicate groups, then a summary) instead of text"
        )
        parser.add_argument(
            "--communicate-hash",
            action="store_true",
            dest="communicate_hash",
            help="Print one JSON 'hash' event per hashed file and skip grouping"
        )
        parser.add_argument(
            "--error-log",
            type=str,
            default=None,
            metavar='FILE',
            dest="error_log",
            help="Write every per-file error as 'path :: message' lines"
        )

        # Actions
        parser.add_argument(
            "--keep-one",
            action="store_true",
            help="Keep one file per duplicate group and move the rest to trash. "
                 "Always shows preview before deletion for safety."
        )
        parser.add_argument(
            "--sort",
            choices=SORT_CHOICES,
            default="completion",
            type=str,
            help=SORT_HELP_TEXT
        )
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt when used with --keep-one (for automation/scripts)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show progress and detailed statistics"
        )

        return parser.parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and not args.keep_one:
            self.error_exit("--force can only be used with --keep-one")

        if args.communicate and args.communicate_hash:
            self.error_exit("--communicate and --communicate-hash cannot be combined")

        if args.keep_one and (args.communicate or args.communicate_hash):
            self.error_exit("--keep-one cannot be combined with --communicate or --communicate-hash")

        # Prevent interactive confirmation in non-TTY environments
        if args.keep_one and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

        if args.concurrency is not None and args.concurrency < 1:
            self.error_exit("Concurrency must be at least 1")

        if args.max_size is not None and not ConvertUtils.is_valid_size_format(args.max_size):
            self.error_exit(f"Invalid size format: {args.max_size}")

        for root in args.roots:
            if not os.path.exists(root):
                self.error_exit(f"Directory not found: {root}")
            if not os.path.isdir(root):
                self.error_exit(f"Path is not a directory: {root}")

    def create_params(self, args: argparse.Namespace) -> ScanParams:
        """Create ScanParams from CLI arguments."""
        try:
            return ScanParams.from_human_readable(
                roots=[os.path.abspath(root) for root in args.roots],
                mode=MODE_ALIASES[args.deep].value,
                concurrency=args.concurrency,
                max_size_str=args.max_size,
            )
        except ConfigurationError as e:
            self.error_exit(f"Parameter error: {e}")

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.verbose:
            return

        if total and total > 0:
            percent = (current / total) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
            sys.stderr.flush()
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files found...")
            sys.stderr.flush()

    @staticmethod
    def print_hash_event(record: HashRecord, current: int, total: int) -> None:
        """Record callback for --communicate-hash: one JSON line per hashed file."""
        line = ReportService.hash_event(record, current, total)
        if line is not None:
            sys.stdout.write(line + "\n")
            sys.stdout.flush()

    def run_scan(self, params: ScanParams, communicate_hash: bool = False) -> ScanResult:
        """Execute the scan workflow."""
        command = ScanCommand()
        if self.verbose:
            print(f"Scanning (mode: {params.mode.display_name}, max file size: "
                  f"{ConvertUtils.bytes_to_human(params.max_file_size)})...")

        result = command.execute(
            params,
            progress_callback=self.progress_callback if self.verbose else None,
            record_callback=self.print_hash_event if communicate_hash else None
        )

        if self.verbose:
            sys.stderr.write("\n")
        return result

    def output_results(self, result: ScanResult, output_file: Optional[str]) -> None:
        """Text or event output for a finished scan."""
        if self.communicate:
            for line in ReportService.iter_events(result):
                print(line)
            return

        if self.quiet:
            return

        # With an output file the groups go there, only the summary is printed
        print(ReportService.format_text(result, show_groups=output_file is None))
        print(f"Time taken: {ConvertUtils.seconds_to_human(result.elapsed)}")

    def write_outputs(self, result: ScanResult, output_file: Optional[str], error_log: Optional[str]) -> None:
        """JSON report and error log files."""
        if output_file:
            try:
                ReportService.write_json(result, output_file)
            except OSError as e:
                self.error_exit(f"Failed to write duplicates to file: {e}")
            if not self.quiet and not self.communicate:
                print(f"Duplicate groups saved to {output_file}")

        if error_log:
            try:
                count = ReportService.write_error_log(result.errors, error_log)
            except OSError as e:
                self.error_exit(f"Failed to write error log: {e}")
            if self.verbose:
                print(f"{count} errors written to {error_log}")

    def report_errors(self, result: ScanResult) -> None:
        """Show the first few per-file errors on stderr."""
        if not result.reported_errors:
            return
        total = result.counters.errors
        shown = len(result.reported_errors)
        self.warning(f"{total} file(s) or folder(s) could not be processed"
                     + (f" (showing first {shown})" if total > shown else ""))
        for error in result.reported_errors:
            self.warning(f"  • {error}")

    def execute_keep_one(self, groups: List[DuplicateGroup], force: bool = False) -> None:
        """Keep one file per group, move the rest to trash. Always shows preview before deletion."""
        if not groups:
            if not self.quiet:
                print("No duplicate groups found.")
            return

        paths_to_delete, _ = DuplicateService.keep_only_one_file_per_group(groups)

        if not paths_to_delete:
            if not self.quiet:
                print("No files to delete (all groups already have only one file).")
            return

        space_saved = 0
        for path in paths_to_delete:
            try:
                space_saved += os.path.getsize(path)
            except OSError:
                continue
        space_saved_str = ConvertUtils.bytes_to_human(space_saved)

        # Always show deletion preview before action
        print()
        for idx, group in enumerate(groups, 1):
            print(f"📁 Group {idx} | Hash: {group.digest[:16]} | Files: {len(group.paths)}")
            print("-" * 60)
            print(f"   [KEEP] {group.paths[0]}")
            for path in group.paths[1:]:
                print(f"   [DEL]  {path}")
            print()

        print("=" * 60)
        print(f"Summary: Keep 1 file per group ({len(groups)} files preserved, "
              f"{len(paths_to_delete)} files deleted)")
        print(f"Total space saved: {space_saved_str}")
        print()

        if force:
            print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
        else:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Lost interactive terminal during operation. "
                    "Use --force to proceed in non-interactive environments."
                )

            response = input(f"Are you sure you want to move {len(paths_to_delete)} files to trash? [y/N]: ")
            if response.strip().lower() not in ("y", "yes"):
                print("Deletion cancelled by user.")
                return

        # Continue on individual file errors
        print(f"\nMoving {len(paths_to_delete)} files to trash...")
        deleted_count = 0
        failed_files = []

        for i, path in enumerate(paths_to_delete, 1):
            if self.verbose:
                print(f"  [{i}/{len(paths_to_delete)}] {os.path.basename(path)}")

            try:
                FileService.move_to_trash(path)
                deleted_count += 1
            except (FileNotFoundError, RuntimeError) as e:
                failed_files.append((path, str(e)))
                self.warning(f"Failed to delete {path}: {e}")

        if failed_files:
            print(f"\n⚠️  Partial success: {deleted_count}/{len(paths_to_delete)} files moved to trash.")
            print(f"Failed to delete {len(failed_files)} file(s):")
            for path, error in failed_files[:5]:  # Show first 5 errors
                print(f"  • {os.path.basename(path)}: {error.split(':')[-1].strip()}")
            if len(failed_files) > 5:
                print(f"  ...and {len(failed_files) - 5} more files")
        else:
            print(f"✅ Successfully moved {deleted_count} files to trash.")

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = 1) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> None:
        """Main entry point with conditional output behavior."""
        args = self.parse_args(argv)
        self.verbose = args.verbose
        self.quiet = args.quiet
        self.communicate = args.communicate or args.communicate_hash

        if self.verbose:
            logging.getLogger().setLevel(logging.INFO)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet and not self.communicate:
            print(f"Scanning: {', '.join(params.roots)}")

        try:
            result = self.run_scan(params, communicate_hash=args.communicate_hash)
        except ConfigurationError as e:
            self.error_exit(str(e))

        self.write_outputs(result, args.output, args.error_log)

        if not args.communicate_hash:
            if args.keep_one:
                Sorter.sort_paths_inside_groups(result.duplicate_groups, SORT_ALIASES[args.sort])
                if not self.quiet:
                    print(ReportService.format_summary(result))
                self.execute_keep_one(result.duplicate_groups, force=args.force)
            else:
                self.output_results(result, args.output)

        if not self.communicate:
            self.report_errors(result)

        if self.verbose:
            counters = result.counters
            print(f"\nSkipped: {counters.skipped_too_large} too large, {counters.not_dicom} not DICOM, "
                  f"{counters.no_payload} without payload, {counters.directories_skipped} unreadable folders")
            print(f"✅ Completed in {time.time() - self.start_time:.2f} seconds")


def main() -> None:
    """Application entry point."""
    signal.signal(signal.SIGTERM, _raise_on_sigterm)
    app = CLIApplication()
    try:
        app.run()
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)", file=sys.stderr)
        sys.exit(130)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
