"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/pool.py
Bounded-concurrency driver over a sealed path spool.

Paths are read from the spool lazily and submitted to a thread pool only while
fewer than `concurrency` tasks are in flight, so memory does not depend on the
number of files. Records are yielded to the single consuming thread in
completion order; workers never touch shared state.
"""

import logging
import os
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, Iterator, Optional

from dicomdedup.core.interfaces import PathSource, ProgressCallback, StoppedFlag, WorkerPool
from dicomdedup.core.models import ErrorCategory, HashRecord

logger = logging.getLogger(__name__)


def default_concurrency() -> int:
    """One worker per CPU minus one for the consumer, but never fewer than two."""
    return max(2, (os.cpu_count() or 1) - 1)


class WorkerPoolImpl(WorkerPool):
    """
    Runs a per-path task with at most `concurrency` paths in flight.

    Attributes:
        concurrency: Admission ceiling (and thread count)
        cancelled: True if the last run stopped admitting paths because of stopped_flag
    """

    def __init__(self, concurrency: Optional[int] = None):
        if concurrency is None:
            concurrency = default_concurrency()
        if concurrency < 1:
            raise ValueError("Concurrency must be at least 1")
        self.concurrency = concurrency
        self.cancelled = False

    def process(
        self,
        spool: PathSource,
        task: Callable[[str], HashRecord],
        stopped_flag: Optional[StoppedFlag] = None,
        progress_callback: Optional[ProgressCallback] = None
    ) -> Iterator[HashRecord]:
        total = len(spool)
        self.cancelled = False
        logger.debug(f"Processing {total} paths with concurrency {self.concurrency}")

        paths = iter(spool)
        in_flight: Dict[Future, str] = {}
        exhausted = False
        current = 0

        try:
            with ThreadPoolExecutor(max_workers=self.concurrency, thread_name_prefix="dicomdedup") as executor:
                while True:
                    # Admission gate: refill up to the ceiling
                    while not exhausted and len(in_flight) < self.concurrency:
                        if stopped_flag and stopped_flag():
                            logger.debug("Processing interrupted by user, draining in-flight tasks")
                            self.cancelled = True
                            exhausted = True
                            break
                        path = next(paths, None)
                        if path is None:
                            exhausted = True
                            break
                        in_flight[executor.submit(task, path)] = path

                    if not in_flight:
                        break

                    done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                    for future in done:
                        path = in_flight.pop(future)
                        record = self._record_from(future, path)
                        current += 1
                        if progress_callback:
                            progress_callback("Hashing", current, total)
                        yield record
        finally:
            close = getattr(paths, "close", None)
            if close is not None:
                close()

        logger.debug(f"Processed {current}/{total} paths (cancelled={self.cancelled})")

    @staticmethod
    def _record_from(future: Future, path: str) -> HashRecord:
        """Result of a finished task; a raised exception becomes a failed record."""
        try:
            return future.result()
        except Exception as e:
            logger.debug(f"Task failed for {path}", exc_info=True)
            return HashRecord.failed(path, ErrorCategory.DECODE_FAILURE, f"{type(e).__name__}: {e}")
