"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/errors.py
Exception taxonomy for the scanning pipeline.

Only ConfigurationError is fatal: it is raised before any file is touched.
Everything else describes a per-file (or per-directory) condition that the
pipeline converts into a record and counts, so a single bad file never aborts
a scan.
"""


class DicomDedupError(Exception):
    """Base class for all errors raised by dicomdedup."""


class ConfigurationError(DicomDedupError, ValueError):
    """Invalid scan configuration (no roots, bad mode, bad limits)."""


class DirectoryUnreadable(DicomDedupError):
    """A directory could not be listed; its subtree is skipped."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read directory {path}: {reason}")


class FileUnreadable(DicomDedupError):
    """A file could not be stat'ed or read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot read file {path}: {reason}")


class FileTooLarge(DicomDedupError):
    """A file exceeds the configured size ceiling. Skipped, not an error."""

    def __init__(self, path: str, size: int, limit: int):
        self.path = path
        self.size = size
        self.limit = limit
        super().__init__(f"{path} is {size} bytes (limit {limit})")


class DecodeFailure(DicomDedupError):
    """Bytes could not be decoded as a DICOM dataset."""


class NotDicomError(DecodeFailure):
    """Bytes do not carry the DICOM Part-10 preamble at all."""
