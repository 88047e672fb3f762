"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

interfaces.py

Defines core interfaces (Protocols) used throughout the scanning pipeline.
These protocols enforce structural typing using Python's `typing.Protocol` so that
every stage can be replaced in tests without touching the others.

Key Components:
---------------
- ParsedDataset / DatasetDecoder: the external DICOM parser seen by the classifier.
- FormatClassifier: selects the byte region that defines "same content".
- HashAlgorithm / ContentHasher: digest over the selected bytes.
- TreeWalker: streams discovered paths into a spool.
- FileProcessor: read → decode → classify → hash for one path.
- WorkerPool: bounded-concurrency driver over a sealed spool.
- HashAggregator: single-owner grouping of hash records.
"""

from typing import Protocol, Iterable, Iterator, List, Optional, Callable

from dicomdedup.core.models import (
    Classification,
    HashRecord,
    ScanError,
    ScanResult,
    WalkReport,
)

ProgressCallback = Callable[[str, int, Optional[int]], None]
StoppedFlag = Callable[[], bool]


# ===== Interfaces =====

class ParsedDataset(Protocol):
    """A decoded DICOM dataset, valid for one classify+hash operation."""

    def string_value(self, tag: int) -> Optional[str]:
        """Returns the stripped string value of a top-level element, or None."""
        ...

    def raw_bytes(self, tag: int) -> Optional[bytes]:
        """Returns the on-disk value bytes of a top-level element, or None if absent."""
        ...


class DatasetDecoder(Protocol):
    def decode(self, buffer: bytes) -> ParsedDataset:
        """
        Decode a complete file buffer.

        Raises:
            NotDicomError: buffer is not a DICOM Part-10 file.
            DecodeFailure: buffer looks like DICOM but cannot be parsed.
        """
        ...


class FormatClassifier(Protocol):
    def classify(self, dataset: ParsedDataset) -> Optional[Classification]:
        """Returns the document kind and payload, or None when nothing is hashable."""
        ...


class HashAlgorithm(Protocol):
    """
    Interface for generic hash algorithms.

    Allows plugging in a different collision-resistant function without
    affecting the rest of the pipeline.
    """

    @staticmethod
    def hash(data: bytes) -> str:
        """Computes the hex digest of the provided byte data."""
        ...


class ContentHasher(Protocol):
    def digest(self, data: bytes) -> str: ...


class PathSink(Protocol):
    """Append-only destination for discovered paths (a PathSpool while writing)."""

    def append(self, path: str) -> None: ...


class PathSource(Protocol):
    """Sealed, sequentially readable list of paths (a PathSpool after sealing)."""

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[str]: ...


class TreeWalker(Protocol):
    def enumerate(self, roots: List[str], sink: PathSink) -> WalkReport:
        """
        Walk every root and append included files to the sink.

        Returns:
            WalkReport with the number of paths written and directory errors.
        """
        ...


class FileProcessor(Protocol):
    def process(self, path: str) -> HashRecord:
        """Never raises for per-file problems; they become null records."""
        ...


class WorkerPool(Protocol):
    def process(
        self,
        spool: PathSource,
        task: Callable[[str], HashRecord],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Iterator[HashRecord]:
        """
        Run `task` over every path with bounded concurrency.

        `total` for progress is len(spool), known before the first submission.
        Yields exactly one record per path read, in completion order.
        """
        ...


class HashAggregator(Protocol):
    def add(self, record: HashRecord) -> None: ...

    def add_walk_errors(self, errors: Iterable[ScanError]) -> None: ...

    def result(self, cancelled: bool = False, elapsed: float = 0.0) -> ScanResult: ...
