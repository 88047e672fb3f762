"""
dicomdedup - duplicate DICOM finder for very large archives.

Core features:
- Content-based identity: files are duplicates when their clinical payload
  (pixel data, encapsulated document, SR content, RT structures, waveform) is identical
- Bounded memory: discovered paths are spooled to a temporary file, never held in a list
- Bounded concurrency: a fixed number of files are read and hashed at a time
- Safe removal of redundant copies to the system trash (via send2trash)
- CLI interface with text, JSON and line-delimited event output
"""

# Get version
try:
    from importlib.metadata import version as _version, PackageNotFoundError
    __version__ = _version("dicomdedup")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Public API - only what users should import directly
from dicomdedup.commands import ScanCommand
from dicomdedup.core import ScanParams, ScanMode, SortOrder, ScanResult, DuplicateGroup, HashRecord
from dicomdedup.utils.convert_utils import ConvertUtils
from dicomdedup.services import DuplicateService, ReportService
from dicomdedup.services.file_service import FileService

__all__ = [
    "ScanCommand",
    "ScanParams",
    "ScanMode",
    "SortOrder",
    "ScanResult",
    "DuplicateGroup",
    "HashRecord",
    "ConvertUtils",
    "DuplicateService",
    "ReportService",
    "FileService",
    "__version__",
]
