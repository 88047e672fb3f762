"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/scanner.py
Implements the discovery phase: walks root directories and streams candidate
DICOM paths into a spool.
Features:
- Removes roots nested inside other roots so no file is visited twice
- Iterative os.scandir traversal (no recursion limit on deep archives)
- Skips hidden files/directories and symbolic links
- Filtered mode (no extension, .dcm, .dicom) or deep mode (every file)
- Unreadable directories are recorded and skipped, never fatal
"""

import os
import time
import logging
from pathlib import Path
from typing import List, Optional, Callable

logger = logging.getLogger(__name__)

# Local imports
from dicomdedup.core.errors import ConfigurationError, DirectoryUnreadable
from dicomdedup.core.interfaces import TreeWalker, PathSink
from dicomdedup.core.models import ScanMode, ScanError, ErrorCategory, WalkReport

DICOM_EXTENSIONS = ("", ".dcm", ".dicom")


def remove_nested_roots(roots: List[str]) -> List[str]:
    """
    Keeps only the outermost roots.

    Roots are made absolute and sorted by length, so a parent is always kept
    before any of its descendants is considered. Containment is checked on a
    path-separator boundary: '/a/bc' is not inside '/a/b'.
    """
    normalized = []
    for root in roots:
        path = os.path.normpath(os.path.abspath(os.fspath(root)))
        if path not in normalized:
            normalized.append(path)

    kept: List[str] = []
    for path in sorted(normalized, key=len):
        if not any(_is_inside(path, parent) for parent in kept):
            kept.append(path)
        else:
            logger.debug(f"Dropping nested root: {path}")
    return kept


def _is_inside(path: str, parent: str) -> bool:
    prefix = parent if parent.endswith(os.sep) else parent + os.sep
    return path.startswith(prefix)


class TreeWalkerImpl(TreeWalker):
    """
    Walks directories and appends included regular files to a PathSink.

    Attributes:
        mode: ScanMode.FILTERED keeps only likely DICOM names, ScanMode.DEEP keeps everything
        stopped_flag: Function that returns True if the walk should stop
        progress_callback: Receives ('Scanning', files_written, None)
    """

    PROGRESS_INTERVAL = 5000  # Update every 5,000 files

    def __init__(
        self,
        mode: ScanMode = ScanMode.FILTERED,
        stopped_flag: Optional[Callable[[], bool]] = None,
        progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None
    ):
        self.mode = mode
        self.stopped_flag = stopped_flag
        self.progress_callback = progress_callback
        self._progress_counter = 0

    @staticmethod
    def validate_roots(roots: List[str]) -> List[str]:
        """Returns the effective root set or raises ConfigurationError."""
        if not roots:
            raise ConfigurationError("No root directories given")
        effective = remove_nested_roots(roots)
        for root in effective:
            root_path = Path(root)
            if not root_path.exists():
                raise ConfigurationError(f"Directory does not exist: {root}")
            if not root_path.is_dir():
                raise ConfigurationError(f"Not a directory: {root}")
        return effective

    def enumerate(self, roots: List[str], sink: PathSink) -> WalkReport:
        """
        Walks every root depth-first and appends included files to `sink` as they are found.
        Returns a WalkReport; directory errors are collected there, not raised.
        """
        effective_roots = self.validate_roots(roots)
        report = WalkReport()
        start_time = time.time()
        self._progress_counter = 0

        logger.debug(f"Walking roots: {effective_roots} (mode={self.mode.value})")

        for root in effective_roots:
            stack = [root]
            while stack:
                if self.stopped_flag and self.stopped_flag():
                    logger.debug("Walk interrupted by user")
                    report.cancelled = True
                    return report

                directory = stack.pop()
                try:
                    subdirs = self._scan_directory(directory, sink, report)
                except DirectoryUnreadable as e:
                    logger.warning(f"Skipping inaccessible folder: {directory} ({e.reason})")
                    report.errors.append(ScanError(
                        path=directory,
                        category=ErrorCategory.DIRECTORY_UNREADABLE,
                        message=str(e)
                    ))
                    continue

                if report.cancelled:
                    return report

                # Reversed so the stack pops subdirectories in listing order
                stack.extend(reversed(subdirs))

        # Final update for small trees
        if self.progress_callback and self._progress_counter > 0:
            self.progress_callback("Scanning", report.files_written, None)

        logger.debug(f"Walk finished in {time.time() - start_time:.2f}s, "
                     f"{report.files_written} files, {len(report.errors)} unreadable directories")
        return report

    def _scan_directory(self, directory: str, sink: PathSink, report: WalkReport) -> List[str]:
        """
        Appends the included files of one directory to `sink` and returns its subdirectories.
        Raises DirectoryUnreadable if the directory cannot be listed.
        """
        subdirs = []
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.name.startswith("."):
                        continue
                    try:
                        if entry.is_symlink():
                            logger.debug(f"Skipping symbolic link: {entry.path}")
                            continue
                        if entry.is_dir(follow_symlinks=False):
                            subdirs.append(entry.path)
                            continue
                        if not entry.is_file(follow_symlinks=False) or not self._name_passes(entry.name):
                            continue
                    except OSError as e:
                        logger.debug(f"Could not inspect {entry.path}: {e}")
                        continue

                    try:
                        sink.append(entry.path)
                    except OSError as e:
                        # Spool write failures are fatal, unlike unreadable directories
                        raise RuntimeError(f"Cannot write to path spool: {e}") from e
                    report.files_written += 1
                    self._progress_counter += 1
                    if self._progress_counter >= self.PROGRESS_INTERVAL:
                        self._progress_counter = 0
                        if self.progress_callback:
                            self.progress_callback("Scanning", report.files_written, None)
                        # Large flat directories are polled here, not only between directories
                        if self.stopped_flag and self.stopped_flag():
                            logger.debug(f"Walk interrupted by user inside {directory}")
                            report.cancelled = True
                            break
        except OSError as e:
            raise DirectoryUnreadable(directory, e.strerror or str(e)) from e
        return subdirs

    def _name_passes(self, name: str) -> bool:
        """
        Check if a (non-hidden) file name is included in the current mode.
        Args:
            name: Base name of the file
        Returns:
            True if the file should be spooled
        """
        if self.mode == ScanMode.DEEP:
            return True
        ext = os.path.splitext(name)[1].lower()
        return ext in DICOM_EXTENSIONS
