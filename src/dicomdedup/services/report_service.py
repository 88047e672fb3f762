"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

services/report_service.py
Renders a ScanResult for people (plain text) and for programs (JSON, line-delimited events).
"""
import json
import logging
import os
from typing import Any, Dict, Iterable, Iterator, Optional

from dicomdedup.core.models import HashRecord, ScanError, ScanResult

logger = logging.getLogger(__name__)


class ReportService:
    SEPARATOR = "-" * 51

    @staticmethod
    def format_summary(result: ScanResult) -> str:
        counters = result.counters
        return (f"Files checked: {counters.files_seen}, "
                f"dicoms: {counters.documents_recognized}, "
                f"duplicates: {counters.redundant_files}")

    @staticmethod
    def format_text(result: ScanResult, show_groups: bool = True) -> str:
        """
        Human-readable report: numbered duplicate groups, then the summary line.
        """
        lines = []
        if not result.duplicate_groups:
            lines.append("No duplicates found.")
        elif show_groups:
            lines.append("Duplicate DICOM file groups (by content hash):")
            lines.append(ReportService.SEPARATOR)
            for idx, group in enumerate(result.duplicate_groups, 1):
                lines.append(f"duplicate {idx}:")
                lines.extend(f"- {path}" for path in group.paths)
                lines.append("")
        lines.append(ReportService.SEPARATOR)
        lines.append(ReportService.format_summary(result))
        if result.counters.errors:
            lines.append(f"Errors: {result.counters.errors}")
        if result.cancelled:
            lines.append("Scan was cancelled; results are partial.")
        return "\n".join(lines)

    @staticmethod
    def to_json(result: ScanResult) -> str:
        return json.dumps(result.to_report(), indent=2, ensure_ascii=False)

    @staticmethod
    def write_json(result: ScanResult, path: str) -> None:
        """Writes the JSON report; raises OSError if the file cannot be written."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(ReportService.to_json(result))
            f.write("\n")
        logger.debug(f"Report written to {path}")

    @staticmethod
    def _event(payload: Dict[str, Any]) -> str:
        return json.dumps(payload, ensure_ascii=False)

    @staticmethod
    def hash_event(record: HashRecord, current: int, total: int) -> Optional[str]:
        """One 'hash' event line for a hashed record, None for null records."""
        if record.is_null:
            return None
        return ReportService._event({
            "type": "hash",
            "fileName": os.path.basename(record.path),
            "fullPath": record.path,
            "hash": record.digest,
            "progressCurrent": current,
            "progressTotal": total,
        })

    @staticmethod
    def iter_events(result: ScanResult) -> Iterator[str]:
        """
        Line-delimited JSON events: one 'duplicate' event per group, then one 'summary'.
        """
        for group in result.duplicate_groups:
            yield ReportService._event({
                "type": "duplicate",
                "group": [
                    {"fileName": os.path.basename(path), "fullPath": path}
                    for path in group.paths
                ],
                "hash": group.digest,
            })
        yield ReportService._event({
            "type": "summary",
            "totalFiles": result.counters.files_seen,
            "totalDicoms": result.counters.documents_recognized,
            "totalDuplicates": result.counters.redundant_files,
            "timeSeconds": round(result.elapsed, 3),
        })

    @staticmethod
    def write_error_log(errors: Iterable[ScanError], path: str) -> int:
        """Writes one 'path :: message' line per error. Returns the number of lines."""
        count = 0
        with open(path, "w", encoding="utf-8") as f:
            for error in errors:
                f.write(f"{error}\n")
                count += 1
        logger.debug(f"Wrote {count} errors to {path}")
        return count
