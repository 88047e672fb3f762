"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/spool.py
Append-then-stream list of discovered paths kept in a temporary file.

Discovery writes every included path here instead of collecting a list, so peak
memory does not grow with the size of the scanned tree. The spool has exactly
two phases: one writer while the tree is walked, then one sequential reader
while files are processed. The two never overlap, so no locking is needed.

Entries are stored as os.fsencode(path) followed by a NUL byte. NUL cannot
appear in a POSIX or Windows path, so any file name survives the round-trip.
"""

import logging
import os
import tempfile
import weakref
from typing import Iterator, Optional

logger = logging.getLogger(__name__)

_SEPARATOR = b"\0"
_READ_BLOCK = 64 * 1024


def _remove_file(path: str) -> None:
    try:
        os.unlink(path)
        logger.debug(f"Removed spool file {path}")
    except FileNotFoundError:
        pass


class PathSpool:
    """
    Temporary on-disk list of paths.

    Usage:
        with PathSpool() as spool:
            spool.append("/data/a.dcm")
            spool.seal()
            for path in spool:
                ...
        # file removed here, also on exceptions and KeyboardInterrupt
    """

    def __init__(self, directory: Optional[str] = None):
        fd, self.path = tempfile.mkstemp(prefix="dicomdedup-", suffix=".spool", dir=directory)
        self._writer = os.fdopen(fd, "wb")
        self._count = 0
        self._sealed = False
        self._closed = False
        # Removal at interpreter exit if close() is never reached
        self._finalizer = weakref.finalize(self, _remove_file, self.path)
        logger.debug(f"Created spool file {self.path}")

    def __enter__(self) -> "PathSpool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __len__(self) -> int:
        return self._count

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def closed(self) -> bool:
        return self._closed

    def append(self, path: str) -> None:
        """Appends one path. Only allowed before seal()."""
        if self._closed:
            raise RuntimeError("Spool is closed")
        if self._sealed:
            raise RuntimeError("Spool is sealed; no more paths can be appended")
        encoded = os.fsencode(path)
        if _SEPARATOR in encoded:
            raise ValueError(f"Path contains a NUL byte: {path!r}")
        self._writer.write(encoded + _SEPARATOR)
        self._count += 1

    def seal(self) -> None:
        """Ends the writing phase. Idempotent."""
        if self._closed:
            raise RuntimeError("Spool is closed")
        if not self._sealed:
            self._writer.close()
            self._sealed = True
            logger.debug(f"Sealed spool with {self._count} paths")

    def __iter__(self) -> Iterator[str]:
        """Streams paths back in the order they were appended."""
        if self._closed:
            raise RuntimeError("Spool is closed")
        if not self._sealed:
            raise RuntimeError("Spool must be sealed before it is read")
        return self._read()

    def _read(self) -> Iterator[str]:
        pending = b""
        with open(self.path, "rb") as f:
            while True:
                block = f.read(_READ_BLOCK)
                if not block:
                    break
                pending += block
                *entries, pending = pending.split(_SEPARATOR)
                for entry in entries:
                    yield os.fsdecode(entry)
        if pending:
            # Writer always terminates entries, so leftovers mean a truncated file
            logger.warning(f"Ignoring unterminated spool entry in {self.path}")

    def close(self) -> None:
        """Deletes the spool file. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        if not self._writer.closed:
            self._writer.close()
        self._finalizer()

    def __repr__(self):
        return f"<PathSpool path={self.path}, entries={self._count}, sealed={self._sealed}>"
