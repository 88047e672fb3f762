"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/aggregator.py
Groups hash records by digest and keeps the run counters.
Owned by the single consuming thread; never shared with workers.
"""

import logging
from typing import Dict, Iterable, List

from dicomdedup.core.interfaces import HashAggregator
from dicomdedup.core.models import (
    DEFAULT_MAX_REPORTED_ERRORS,
    DuplicateGroup,
    HashRecord,
    RecordStatus,
    ScanCounters,
    ScanError,
    ScanResult,
)

logger = logging.getLogger(__name__)


class HashAggregatorImpl(HashAggregator):
    """
    Accumulates records into digest groups.

    Group order follows the first completion of each digest; paths inside a
    group follow completion order.
    """

    def __init__(self, max_reported_errors: int = DEFAULT_MAX_REPORTED_ERRORS):
        self.max_reported_errors = max_reported_errors
        self.counters = ScanCounters()
        self.errors: List[ScanError] = []
        self._groups: Dict[str, DuplicateGroup] = {}

    def add(self, record: HashRecord) -> None:
        self.counters.files_seen += 1

        if record.status == RecordStatus.HASHED:
            self.counters.documents_recognized += 1
            group = self._groups.get(record.digest)
            if group is None:
                group = self._groups[record.digest] = DuplicateGroup(digest=record.digest)
            group.add_path(record.path)
        elif record.status == RecordStatus.NO_PAYLOAD:
            self.counters.no_payload += 1
        elif record.status == RecordStatus.NOT_DICOM:
            self.counters.not_dicom += 1
        elif record.status == RecordStatus.TOO_LARGE:
            self.counters.skipped_too_large += 1
        elif record.status == RecordStatus.FAILED:
            self._record_error(record.error)

    def add_walk_errors(self, errors: Iterable[ScanError]) -> None:
        """Directory errors count as errors but never as files seen."""
        for error in errors:
            self.counters.directories_skipped += 1
            self._record_error(error, logged=True)

    def aggregate(self, records: Iterable[HashRecord]) -> None:
        for record in records:
            self.add(record)

    def _record_error(self, error: ScanError, logged: bool = False) -> None:
        self.counters.errors += 1
        self.errors.append(error)
        if logged:
            # Already reported by whoever produced it
            return
        if self.counters.errors <= self.max_reported_errors:
            logger.warning(str(error))
        else:
            logger.debug(str(error))

    def result(self, cancelled: bool = False, elapsed: float = 0.0) -> ScanResult:
        """Snapshot of the current state. Singletons stay counted but are not reported as groups."""
        groups = [g for g in self._groups.values() if g.is_duplicate()]
        self.counters.redundant_files = sum(g.redundant_count for g in groups)
        return ScanResult(
            duplicate_groups=groups,
            counters=self.counters,
            errors=list(self.errors),
            reported_errors=self.errors[:self.max_reported_errors],
            cancelled=cancelled,
            elapsed=elapsed,
        )
