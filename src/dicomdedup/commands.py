"""
Unified command orchestrator for a duplicate scan.
This is the SINGLE source of truth for the pipeline: used by the CLI and by library callers.
"""
import logging
import time
from typing import Callable, Optional

from dicomdedup.core.aggregator import HashAggregatorImpl
from dicomdedup.core.classifier import FormatClassifierImpl
from dicomdedup.core.decoder import PydicomDecoder
from dicomdedup.core.hasher import ContentHasherImpl, Sha256AlgorithmImpl
from dicomdedup.core.interfaces import ContentHasher, DatasetDecoder, FormatClassifier
from dicomdedup.core.models import HashRecord, ScanParams, ScanResult
from dicomdedup.core.pool import WorkerPoolImpl
from dicomdedup.core.processor import FileProcessorImpl
from dicomdedup.core.scanner import TreeWalkerImpl
from dicomdedup.core.spool import PathSpool

logger = logging.getLogger(__name__)

RecordCallback = Callable[[HashRecord, int, int], None]


class ScanCommand:
    """
    Orchestrates the whole scan:
    1. Walk the roots and spool every candidate path
    2. Seal the spool (total becomes known)
    3. Hash paths with bounded concurrency
    4. Aggregate records into duplicate groups and counters

    The spool file is removed on every exit path, including KeyboardInterrupt.

    Usage:
        params = ScanParams(roots=["/data/pacs"])
        result = ScanCommand().execute(
            params,
            progress_callback=cli_progress_printer,
            stopped_flag=signal_handler_check
        )
    """

    def __init__(
            self,
            decoder: Optional[DatasetDecoder] = None,
            classifier: Optional[FormatClassifier] = None,
            hasher: Optional[ContentHasher] = None
    ):
        self.decoder = decoder or PydicomDecoder()
        self.classifier = classifier or FormatClassifierImpl()
        self.hasher = hasher or ContentHasherImpl(Sha256AlgorithmImpl())

    def execute(
            self,
            params: ScanParams,
            progress_callback: Optional[Callable[[str, int, Optional[int]], None]] = None,
            stopped_flag: Optional[Callable[[], bool]] = None,
            record_callback: Optional[RecordCallback] = None
    ) -> ScanResult:
        """
        Run a scan with given parameters.

        Args:
            params: Validated scan parameters
            progress_callback: (stage: str, current: int, total: Optional[int]) -> None
            stopped_flag: () -> bool (returns True if operation should stop)
            record_callback: (record, current, total) -> None, called once per processed file

        Returns:
            ScanResult with duplicate groups (>= 2 paths each), counters and errors

        Raises:
            ConfigurationError: If a root is missing or not a directory
        """
        start_time = time.time()
        walker = TreeWalkerImpl(
            mode=params.mode,
            stopped_flag=stopped_flag,
            progress_callback=progress_callback
        )
        # Fail before creating any temporary file
        walker.validate_roots(params.roots)

        pool = WorkerPoolImpl(params.concurrency)
        processor = FileProcessorImpl(
            decoder=self.decoder,
            classifier=self.classifier,
            hasher=self.hasher,
            max_file_size=params.max_file_size
        )
        aggregator = HashAggregatorImpl(max_reported_errors=params.max_reported_errors)

        with PathSpool(params.spool_dir) as spool:
            # Step 1: discovery
            walk_report = walker.enumerate(params.roots, spool)
            spool.seal()
            aggregator.add_walk_errors(walk_report.errors)
            logger.info(f"Discovered {walk_report.files_written} candidate files")

            # Step 2: processing
            cancelled = walk_report.cancelled
            if not cancelled:
                total = len(spool)
                current = 0
                for record in pool.process(spool, processor.process, stopped_flag, progress_callback):
                    aggregator.add(record)
                    current += 1
                    if record_callback:
                        record_callback(record, current, total)
                cancelled = pool.cancelled

        result = aggregator.result(cancelled=cancelled, elapsed=time.time() - start_time)
        logger.info(
            f"Scan finished in {result.elapsed:.2f}s: {result.counters.files_seen} files, "
            f"{result.counters.documents_recognized} recognized, "
            f"{len(result.duplicate_groups)} duplicate groups"
        )
        return result
