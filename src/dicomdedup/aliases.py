from dicomdedup.core.models import ScanMode, SortOrder

SORT_ALIASES = {
    "completion": SortOrder.COMPLETION,
    "shortest-path": SortOrder.SHORTEST_PATH,
    "shortest-filename": SortOrder.SHORTEST_FILENAME,
}

SORT_CHOICES = list(SORT_ALIASES.keys())

SORT_HELP_TEXT = (
    "Which copy --keep-one preserves (first file of each group):\n"
    "  completion        : first file that finished hashing. Default\n"
    "  shortest-path     : file closest to the filesystem root\n"
    "  shortest-filename : file with the shortest name\n"
)

MODE_ALIASES = {
    False: ScanMode.FILTERED,
    True: ScanMode.DEEP,
}

DEEP_HELP_TEXT = (
    "Deep scan: " + ScanMode.DEEP.description + ".\n"
    "Without it: " + ScanMode.FILTERED.description + "."
)

EPILOG_TEXT = """
Examples:
  Basic usage - find duplicate DICOM files in one archive
  %(prog)s /data/pacs

  Several roots at once (nested roots are scanned only once)
  %(prog)s /data/pacs /mnt/backup/pacs

  Look at every file regardless of extension, 8 workers
  %(prog)s /data/import --deep -j 8

  Save duplicate groups as JSON and the error list as text
  %(prog)s /data/pacs -f duplicates.json --error-log errors.txt

  Machine-readable events for another program (one JSON object per line)
  %(prog)s /data/pacs --communicate

  Keep one copy per group and move the rest to trash (with confirmation prompt)
  %(prog)s /data/pacs --keep-one --sort shortest-path

Exit codes: 0 success, 1 error, 130 interrupted (Ctrl+C), 143 terminated (SIGTERM)
"""
