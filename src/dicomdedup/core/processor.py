"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/processor.py
Per-file task run inside a worker: stat -> read -> decode -> classify -> hash.

Every outcome, including failures, becomes exactly one HashRecord so the
worker pool never has to deal with per-file exceptions.
"""

import logging
import os

from dicomdedup.core.errors import DecodeFailure, FileTooLarge, FileUnreadable, NotDicomError
from dicomdedup.core.interfaces import ContentHasher, DatasetDecoder, FileProcessor, FormatClassifier
from dicomdedup.core.models import DEFAULT_MAX_FILE_SIZE, DocumentKind, ErrorCategory, HashRecord, RecordStatus

logger = logging.getLogger(__name__)


class FileProcessorImpl(FileProcessor):
    """
    Turns one path into one HashRecord.

    Attributes:
        decoder: Parses the file buffer (PydicomDecoder in production)
        classifier: Picks the payload bytes for the SOP class
        hasher: Digests the payload
        max_file_size: Files above this many bytes are skipped without being read
    """

    def __init__(
        self,
        decoder: DatasetDecoder,
        classifier: FormatClassifier,
        hasher: ContentHasher,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE
    ):
        self.decoder = decoder
        self.classifier = classifier
        self.hasher = hasher
        self.max_file_size = max_file_size

    def process(self, path: str) -> HashRecord:
        try:
            buffer = self._read(path)
        except FileTooLarge as e:
            logger.debug(f"Skipping {path}: {e}")
            return HashRecord(path=path, status=RecordStatus.TOO_LARGE)
        except FileUnreadable as e:
            return HashRecord.failed(path, ErrorCategory.FILE_UNREADABLE, e.reason)

        try:
            dataset = self.decoder.decode(buffer)
        except NotDicomError:
            logger.debug(f"Not a DICOM file: {path}")
            return HashRecord(path=path, status=RecordStatus.NOT_DICOM, kind=DocumentKind.UNRECOGNIZED)
        except DecodeFailure as e:
            return HashRecord.failed(path, ErrorCategory.DECODE_FAILURE, str(e))

        try:
            classification = self.classifier.classify(dataset)
            if classification is None:
                logger.debug(f"No hashable payload in {path}")
                return HashRecord(path=path, status=RecordStatus.NO_PAYLOAD)
            digest = self.hasher.digest(classification.payload)
        except DecodeFailure as e:
            return HashRecord.failed(path, ErrorCategory.DECODE_FAILURE, str(e))
        except Exception as e:
            # Third-party parser faults surface lazily, while elements are accessed
            logger.debug(f"Unexpected error while classifying {path}", exc_info=True)
            return HashRecord.failed(path, ErrorCategory.DECODE_FAILURE, f"{type(e).__name__}: {e}")

        return HashRecord.hashed(path, digest, classification.kind)

    def _read(self, path: str) -> bytes:
        """
        Reads the whole file after checking its size.
        Raises:
            FileTooLarge: size exceeds max_file_size
            FileUnreadable: stat or read failed
        """
        try:
            size = os.stat(path).st_size
            if size > self.max_file_size:
                raise FileTooLarge(path, size, self.max_file_size)
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise FileUnreadable(path, e.strerror or str(e)) from e
