"""
Unit tests for HashAggregatorImpl.
Verifies grouping order, counters invariant and the reported-error cap.
"""
import logging

from dicomdedup.core.aggregator import HashAggregatorImpl
from dicomdedup.core.models import (
    DocumentKind, ErrorCategory, HashRecord, RecordStatus, ScanError)

DIGEST_A = "a" * 64
DIGEST_B = "b" * 64
DIGEST_C = "c" * 64


def hashed(path, digest):
    return HashRecord.hashed(path, digest, DocumentKind.IMAGE_LIKE)


class TestGrouping:

    def test_groups_by_digest_in_completion_order(self):
        agg = HashAggregatorImpl()
        agg.aggregate([
            hashed("/3", DIGEST_A),
            hashed("/1", DIGEST_B),
            hashed("/2", DIGEST_A),
            hashed("/4", DIGEST_B),
            hashed("/5", DIGEST_A),
        ])
        result = agg.result()
        assert [g.digest for g in result.duplicate_groups] == [DIGEST_A, DIGEST_B]
        assert result.duplicate_groups[0].paths == ["/3", "/2", "/5"]
        assert result.duplicate_groups[1].paths == ["/1", "/4"]

    def test_singletons_counted_but_not_reported(self):
        agg = HashAggregatorImpl()
        agg.aggregate([hashed("/a", DIGEST_A), hashed("/b", DIGEST_B), hashed("/c", DIGEST_B)])
        result = agg.result()
        assert len(result.duplicate_groups) == 1
        assert result.counters.documents_recognized == 3

    def test_redundant_files(self):
        agg = HashAggregatorImpl()
        agg.aggregate([hashed(f"/a{i}", DIGEST_A) for i in range(3)]
                      + [hashed(f"/b{i}", DIGEST_B) for i in range(2)]
                      + [hashed("/c", DIGEST_C)])
        result = agg.result()
        assert result.counters.redundant_files == 3
        assert result.redundant_files == 3

    def test_no_records(self):
        result = HashAggregatorImpl().result()
        assert result.duplicate_groups == []
        assert result.counters.files_seen == 0


class TestCounters:

    def test_invariant_files_seen_equals_recognized_plus_null(self):
        agg = HashAggregatorImpl()
        agg.aggregate([
            hashed("/a", DIGEST_A),
            HashRecord(path="/b", status=RecordStatus.NO_PAYLOAD),
            HashRecord(path="/c", status=RecordStatus.NOT_DICOM, kind=DocumentKind.UNRECOGNIZED),
            HashRecord(path="/d", status=RecordStatus.TOO_LARGE),
            HashRecord.failed("/e", ErrorCategory.FILE_UNREADABLE, "gone"),
        ])
        counters = agg.result().counters
        assert counters.files_seen == 5
        assert counters.documents_recognized == 1
        assert counters.null_records == 4
        assert counters.no_payload == 1
        assert counters.not_dicom == 1
        assert counters.skipped_too_large == 1
        assert counters.errors == 1

    def test_walk_errors_not_counted_as_files(self):
        agg = HashAggregatorImpl()
        agg.add_walk_errors([ScanError("/locked", ErrorCategory.DIRECTORY_UNREADABLE, "denied")])
        result = agg.result()
        assert result.counters.files_seen == 0
        assert result.counters.errors == 1
        assert result.counters.directories_skipped == 1
        assert result.errors[0].path == "/locked"

    def test_as_dict_keys(self):
        agg = HashAggregatorImpl()
        agg.aggregate([hashed("/a", DIGEST_A), hashed("/b", DIGEST_A)])
        report = agg.result().to_report()
        assert report["duplicateGroups"] == [["/a", "/b"]]
        assert report["counters"]["filesSeen"] == 2
        assert report["counters"]["documentsRecognized"] == 2
        assert report["counters"]["redundantFiles"] == 1
        assert report["counters"]["errors"] == 0


class TestErrorReporting:

    def test_reported_errors_capped(self):
        agg = HashAggregatorImpl(max_reported_errors=2)
        agg.aggregate([HashRecord.failed(f"/e{i}", ErrorCategory.DECODE_FAILURE, "bad") for i in range(5)])
        result = agg.result()
        assert result.counters.errors == 5
        assert len(result.errors) == 5
        assert [e.path for e in result.reported_errors] == ["/e0", "/e1"]

    def test_only_first_errors_logged_as_warnings(self, caplog):
        agg = HashAggregatorImpl(max_reported_errors=2)
        with caplog.at_level(logging.DEBUG, logger="dicomdedup.core.aggregator"):
            agg.aggregate([HashRecord.failed(f"/e{i}", ErrorCategory.DECODE_FAILURE, "bad") for i in range(4)])
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert [r.getMessage() for r in warnings] == ["/e0 :: bad", "/e1 :: bad"]

    def test_cancelled_flag_passed_through(self):
        result = HashAggregatorImpl().result(cancelled=True, elapsed=1.5)
        assert result.cancelled
        assert result.elapsed == 1.5
