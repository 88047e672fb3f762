"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/models.py
Data models for scanning, hashing and grouping DICOM files.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Optional, Union

from dicomdedup.core.errors import ConfigurationError


# =============================
# Enums
# =============================

class ScanMode(Enum):
    """
    Controls which files the tree walker hands to the worker pool.
    """
    FILTERED = "filtered"
    DEEP = "deep"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            ScanMode.FILTERED: "Filtered",
            ScanMode.DEEP: "Deep",
        }
        return mapping.get(self, self.value)

    @property
    def description(self) -> str:
        """Detailed description for help text."""
        mapping = {
            ScanMode.FILTERED:
                "Only files without extension or with .dcm/.dicom",
            ScanMode.DEEP:
                "Every non-hidden file, DICOM detection by content (slower)",
        }
        return mapping.get(self, self.value)

    def __repr__(self) -> str:
        return self.value


class DocumentKind(Enum):
    IMAGE_LIKE = "image"
    ENCAPSULATED_DOCUMENT = "encapsulated-document"
    STRUCTURED_REPORT = "structured-report"
    STRUCTURED_THERAPY_PLAN = "rt-structure-set"
    WAVEFORM = "waveform"
    UNRECOGNIZED = "unrecognized"


class RecordStatus(Enum):
    """Outcome of processing a single file."""
    HASHED = "hashed"
    NO_PAYLOAD = "no-payload"
    NOT_DICOM = "not-dicom"
    TOO_LARGE = "too-large"
    FAILED = "failed"


class ErrorCategory(Enum):
    DIRECTORY_UNREADABLE = "directory-unreadable"
    FILE_UNREADABLE = "file-unreadable"
    DECODE_FAILURE = "decode-failure"


class SortOrder(Enum):
    COMPLETION = "completion"
    SHORTEST_PATH = "shortest-path"
    SHORTEST_FILENAME = "shortest-filename"

    @property
    def display_name(self) -> str:
        """Human-readable name for UI display."""
        mapping = {
            SortOrder.COMPLETION: "Completion Order",
            SortOrder.SHORTEST_PATH: "Shortest Path",
            SortOrder.SHORTEST_FILENAME: "Shortest Filename",
        }
        return mapping.get(self, self.value)


# ======================
#  Core Data Models
# ======================

@dataclass
class Classification:
    """Document type plus the exact bytes that define its content."""
    kind: DocumentKind
    payload: bytes

    def __post_init__(self):
        if not self.payload:
            raise ValueError("Classification payload must not be empty")


@dataclass
class ScanError:
    path: str
    category: ErrorCategory
    message: str

    def __str__(self):
        return f"{self.path} :: {self.message}"


@dataclass
class HashRecord:
    """
    Result of processing one discovered path.
    `digest` is set only when status is HASHED; every other status is a null record.
    """
    path: str
    status: RecordStatus
    digest: Optional[str] = None
    kind: Optional[DocumentKind] = None
    error: Optional[ScanError] = None

    def __post_init__(self):
        if self.status == RecordStatus.HASHED and not self.digest:
            raise ValueError("Hashed record requires a digest")
        if self.status != RecordStatus.HASHED and self.digest is not None:
            raise ValueError(f"Record with status '{self.status.value}' cannot carry a digest")

    @property
    def is_null(self) -> bool:
        return self.digest is None

    @classmethod
    def hashed(cls, path: str, digest: str, kind: DocumentKind) -> 'HashRecord':
        return cls(path=path, status=RecordStatus.HASHED, digest=digest, kind=kind)

    @classmethod
    def failed(cls, path: str, category: ErrorCategory, message: str) -> 'HashRecord':
        return cls(
            path=path,
            status=RecordStatus.FAILED,
            error=ScanError(path=path, category=category, message=message)
        )

    def __repr__(self):
        return f"<HashRecord path={self.path}, status={self.status.value}>"


@dataclass
class DuplicateGroup:
    """
    Paths sharing one content digest, in processing completion order.
    Index 0 is the first file that finished hashing; no other primacy is implied.
    """
    digest: str
    paths: List[str] = field(default_factory=list)

    @property
    def duplicate_count(self) -> int:
        """How many files are in this group."""
        return len(self.paths)

    @property
    def redundant_count(self) -> int:
        """Files that could be removed while keeping one copy."""
        return max(0, len(self.paths) - 1)

    def add_path(self, path: str) -> None:
        self.paths.append(path)

    def is_duplicate(self) -> bool:
        """True if this group contains at least two files."""
        return self.duplicate_count >= 2

    def __repr__(self):
        return f"<DuplicateGroup digest={self.digest[:12]}, count={len(self.paths)}>"


@dataclass
class ScanCounters:
    """
    Monotonic counters for one run.
    Invariant after a run: files_seen == documents_recognized + null records.
    """
    files_seen: int = 0
    documents_recognized: int = 0
    redundant_files: int = 0
    errors: int = 0
    skipped_too_large: int = 0
    no_payload: int = 0
    not_dicom: int = 0
    directories_skipped: int = 0

    @property
    def null_records(self) -> int:
        return self.files_seen - self.documents_recognized

    def as_dict(self) -> Dict[str, int]:
        return {
            "filesSeen": self.files_seen,
            "documentsRecognized": self.documents_recognized,
            "redundantFiles": self.redundant_files,
            "errors": self.errors,
            "skippedTooLarge": self.skipped_too_large,
            "noPayload": self.no_payload,
            "notDicom": self.not_dicom,
            "directoriesSkipped": self.directories_skipped,
        }


@dataclass
class WalkReport:
    """Outcome of the discovery phase."""
    files_written: int = 0
    errors: List[ScanError] = field(default_factory=list)
    cancelled: bool = False


@dataclass
class ScanResult:
    duplicate_groups: List[DuplicateGroup]
    counters: ScanCounters
    errors: List[ScanError] = field(default_factory=list)
    reported_errors: List[ScanError] = field(default_factory=list)
    cancelled: bool = False
    elapsed: float = 0.0

    @property
    def redundant_files(self) -> int:
        return sum(g.redundant_count for g in self.duplicate_groups)

    def to_report(self) -> Dict[str, Union[List[List[str]], Dict[str, int]]]:
        """Output mapping handed to reporters: duplicate groups plus counters."""
        return {
            "duplicateGroups": [list(g.paths) for g in self.duplicate_groups],
            "counters": self.counters.as_dict(),
        }


"""
DTO for scan parameters with built-in validation.
Interface-agnostic - used by both the CLI and library callers.
"""
from dicomdedup.utils.convert_utils import ConvertUtils

DEFAULT_MAX_FILE_SIZE = 1_000_000_000
DEFAULT_MAX_REPORTED_ERRORS = 5


@dataclass
class ScanParams:
    """Parameters for a scan with validation."""
    roots: List[str]
    mode: ScanMode = ScanMode.FILTERED
    concurrency: Optional[int] = None
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    max_reported_errors: int = DEFAULT_MAX_REPORTED_ERRORS
    spool_dir: Optional[str] = None

    def __post_init__(self):
        """Validate parameters immediately after creation."""
        if isinstance(self.roots, (str, bytes, os.PathLike)):
            self.roots = [self.roots]
        self.roots = [os.fspath(r) for r in self.roots if r]
        if not self.roots:
            raise ConfigurationError("At least one root directory is required")

        if not isinstance(self.mode, ScanMode):
            raise ConfigurationError(f"Invalid scan mode: {self.mode!r}")

        if self.concurrency is not None and self.concurrency < 1:
            raise ConfigurationError("Concurrency must be at least 1")

        if self.max_file_size <= 0:
            raise ConfigurationError("Maximum file size must be positive")

        if self.max_reported_errors < 0:
            raise ConfigurationError("Error report limit cannot be negative")

    @staticmethod
    def from_human_readable(
            roots: List[str],
            mode: str = "filtered",
            concurrency: Optional[int] = None,
            max_size_str: Optional[str] = None,
            max_reported_errors: int = DEFAULT_MAX_REPORTED_ERRORS,
            spool_dir: Optional[str] = None,
    ) -> 'ScanParams':
        """
        Factory method to create params from human-readable inputs.
        Useful for CLI argument parsing.
        """
        try:
            scan_mode = ScanMode(mode.strip().lower())
        except (ValueError, AttributeError):
            raise ConfigurationError(f"Invalid scan mode: {mode!r}")

        max_size = DEFAULT_MAX_FILE_SIZE
        if max_size_str:
            try:
                max_size = ConvertUtils.human_to_bytes(max_size_str)
            except ValueError as e:
                raise ConfigurationError(str(e)) from e

        return ScanParams(
            roots=list(roots),
            mode=scan_mode,
            concurrency=concurrency,
            max_file_size=max_size,
            max_reported_errors=max_reported_errors,
            spool_dir=spool_dir,
        )
