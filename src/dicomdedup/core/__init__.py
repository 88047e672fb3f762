"""
Core scanning engine: spool, walker, decoder, classifier, hasher, pool and aggregator.

This package contains the bounded-memory foundation of dicomdedup:
- PathSpool: temporary on-disk list of discovered paths
- TreeWalkerImpl: iterative directory traversal streaming paths into the spool
- PydicomDecoder + FormatClassifierImpl: SOP-class-aware payload selection
- ContentHasherImpl + Sha256AlgorithmImpl: SHA-256 content digests
- WorkerPoolImpl + FileProcessorImpl: bounded-concurrency per-file processing
- HashAggregatorImpl: digest grouping and run counters
- Models: HashRecord, DuplicateGroup, ScanCounters, ScanResult, ScanParams

No GUI or network dependencies; suitable for CLI and library usage.
"""

from .spool import PathSpool
from .scanner import TreeWalkerImpl, remove_nested_roots
from .decoder import PydicomDecoder, DicomDataset
from .classifier import FormatClassifierImpl, ClassificationRule, DEFAULT_RULES, SopClass, DicomTag
from .hasher import ContentHasherImpl, Sha256AlgorithmImpl
from .processor import FileProcessorImpl
from .pool import WorkerPoolImpl, default_concurrency
from .aggregator import HashAggregatorImpl
from .sorter import Sorter
from .errors import (
    DicomDedupError, ConfigurationError, DirectoryUnreadable, FileUnreadable,
    FileTooLarge, DecodeFailure, NotDicomError)
from .models import (
    ScanMode, DocumentKind, RecordStatus, ErrorCategory, SortOrder, Classification,
    ScanError, HashRecord, DuplicateGroup, ScanCounters, WalkReport, ScanResult, ScanParams)

__all__ = [
    "PathSpool",
    "TreeWalkerImpl",
    "remove_nested_roots",
    "PydicomDecoder",
    "DicomDataset",
    "FormatClassifierImpl",
    "ClassificationRule",
    "DEFAULT_RULES",
    "SopClass",
    "DicomTag",
    "ContentHasherImpl",
    "Sha256AlgorithmImpl",
    "FileProcessorImpl",
    "WorkerPoolImpl",
    "default_concurrency",
    "HashAggregatorImpl",
    "Sorter",
    "DicomDedupError",
    "ConfigurationError",
    "DirectoryUnreadable",
    "FileUnreadable",
    "FileTooLarge",
    "DecodeFailure",
    "NotDicomError",
    "ScanMode",
    "DocumentKind",
    "RecordStatus",
    "ErrorCategory",
    "SortOrder",
    "Classification",
    "ScanError",
    "HashRecord",
    "DuplicateGroup",
    "ScanCounters",
    "WalkReport",
    "ScanResult",
    "ScanParams",
]
