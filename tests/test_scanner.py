"""
Unit tests for TreeWalkerImpl and root de-duplication.
Verifies filtered/deep inclusion rules, hidden and symlinked entries, unreadable folders and cancellation.
"""
import os
import pytest

from dicomdedup.core import scanner as scanner_module
from dicomdedup.core.errors import ConfigurationError
from dicomdedup.core.models import ScanMode, ErrorCategory
from dicomdedup.core.scanner import TreeWalkerImpl, remove_nested_roots
from dicomdedup.core.spool import PathSpool


def walk(roots, mode=ScanMode.FILTERED, spool_dir=None, **kwargs):
    """Runs the walker into a real spool and returns (sorted paths, report)."""
    walker = TreeWalkerImpl(mode=mode, **kwargs)
    with PathSpool(spool_dir) as spool:
        report = walker.enumerate([str(r) for r in roots], spool)
        spool.seal()
        return sorted(spool), report


class TestRemoveNestedRoots:
    """Root overlap elimination."""

    def test_nested_roots_collapse_to_parent(self):
        sep = os.sep
        a = os.path.abspath(f"{sep}a")
        result = remove_nested_roots([a, f"{a}{sep}b", f"{a}{sep}bc"])
        assert result == [a]

    def test_sibling_with_common_prefix_is_not_nested(self):
        """'/a/bc' shares a string prefix with '/a/b' but is not inside it."""
        sep = os.sep
        b = os.path.abspath(f"{sep}a{sep}b")
        bc = os.path.abspath(f"{sep}a{sep}bc")
        assert sorted(remove_nested_roots([b, bc])) == sorted([b, bc])

    def test_exact_duplicates_removed(self, tmp_path):
        assert remove_nested_roots([str(tmp_path), str(tmp_path), str(tmp_path) + os.sep]) == [str(tmp_path)]

    def test_order_of_input_does_not_matter(self, tmp_path):
        child = str(tmp_path / "child")
        assert remove_nested_roots([child, str(tmp_path)]) == [str(tmp_path)]

    def test_relative_roots_are_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert remove_nested_roots(["."]) == [str(tmp_path)]


class TestTreeWalkerFiltering:
    """Which files end up in the spool."""

    def test_filtered_mode_keeps_dicom_like_names(self, dicom_tree):
        paths, report = walk([dicom_tree["root"]])
        expected = sorted(str(dicom_tree[k]) for k in
                          ("ct_a", "ct_a_other_patient", "ct_b", "ct_a_nested", "text"))
        assert paths == expected
        assert report.files_written == 5
        assert report.errors == []

    def test_deep_mode_keeps_every_visible_file(self, dicom_tree):
        paths, _ = walk([dicom_tree["root"]], mode=ScanMode.DEEP)
        assert str(dicom_tree["other_extension"]) in paths
        assert str(dicom_tree["hidden"]) not in paths
        assert len(paths) == 6

    def test_hidden_directories_not_descended(self, tmp_path):
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "object").write_bytes(b"x")
        (tmp_path / "visible").write_bytes(b"x")
        paths, _ = walk([tmp_path], mode=ScanMode.DEEP)
        assert paths == [str(tmp_path / "visible")]

    def test_extension_check_is_case_insensitive(self, tmp_path):
        (tmp_path / "UPPER.DCM").write_bytes(b"x")
        (tmp_path / "Mixed.Dicom").write_bytes(b"x")
        (tmp_path / "report.pdf").write_bytes(b"x")
        paths, _ = walk([tmp_path])
        assert paths == sorted([str(tmp_path / "UPPER.DCM"), str(tmp_path / "Mixed.Dicom")])

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks not supported")
    def test_symlinks_are_not_followed(self, tmp_path):
        target = tmp_path / "target"
        target.mkdir()
        (target / "img.dcm").write_bytes(b"x")
        root = tmp_path / "root"
        root.mkdir()
        (root / "real.dcm").write_bytes(b"x")
        try:
            os.symlink(str(target), str(root / "linked_dir"))
            os.symlink(str(target / "img.dcm"), str(root / "linked.dcm"))
        except OSError:
            pytest.skip("cannot create symlinks here")
        paths, _ = walk([root])
        assert paths == [str(root / "real.dcm")]

    def test_nested_roots_visit_each_file_once(self, dicom_tree):
        root = dicom_tree["root"]
        paths, report = walk([root, root / "series"])
        assert len(paths) == len(set(paths)) == 5
        assert report.files_written == 5


class TestTreeWalkerErrors:
    """Configuration errors are fatal, unreadable folders are not."""

    def test_no_roots(self):
        with pytest.raises(ConfigurationError):
            TreeWalkerImpl.validate_roots([])

    def test_missing_root(self, tmp_path):
        with pytest.raises(ConfigurationError):
            walk([tmp_path / "missing"])

    def test_root_is_a_file(self, tmp_path):
        f = tmp_path / "file.dcm"
        f.write_bytes(b"x")
        with pytest.raises(ConfigurationError):
            walk([f])

    def test_unreadable_directory_is_recorded_and_skipped(self, tmp_path, monkeypatch):
        root = tmp_path / "root"
        (root / "locked").mkdir(parents=True)
        (root / "locked" / "secret.dcm").write_bytes(b"x")
        (root / "open").mkdir()
        (root / "open" / "img.dcm").write_bytes(b"x")
        (root / "top.dcm").write_bytes(b"x")

        real_scandir = os.scandir

        def fake_scandir(path):
            if os.path.basename(str(path)) == "locked":
                raise PermissionError(13, "Permission denied")
            return real_scandir(path)

        monkeypatch.setattr(scanner_module.os, "scandir", fake_scandir)
        paths, report = walk([root], spool_dir=str(tmp_path))

        assert paths == sorted([str(root / "open" / "img.dcm"), str(root / "top.dcm")])
        assert len(report.errors) == 1
        assert report.errors[0].category == ErrorCategory.DIRECTORY_UNREADABLE
        assert report.errors[0].path == str(root / "locked")
        assert "Permission denied" in report.errors[0].message


class TestTreeWalkerControl:
    """Progress and cancellation."""

    def test_stopped_flag_ends_walk(self, dicom_tree):
        paths, report = walk([dicom_tree["root"]], stopped_flag=lambda: True)
        assert report.cancelled
        assert paths == []

    def test_final_progress_update(self, dicom_tree):
        calls = []
        walk([dicom_tree["root"]], progress_callback=lambda *args: calls.append(args))
        assert calls[-1] == ("Scanning", 5, None)

    def test_progress_throttled(self, tmp_path, monkeypatch):
        monkeypatch.setattr(TreeWalkerImpl, "PROGRESS_INTERVAL", 3)
        for i in range(7):
            (tmp_path / f"f{i}.dcm").write_bytes(b"x")
        calls = []
        walk([tmp_path], spool_dir=None, progress_callback=lambda *args: calls.append(args))
        assert [c[1] for c in calls] == [3, 6, 7]

    def test_stopped_flag_polled_inside_large_directory(self, tmp_path, monkeypatch):
        monkeypatch.setattr(TreeWalkerImpl, "PROGRESS_INTERVAL", 2)
        for i in range(10):
            (tmp_path / f"f{i}.dcm").write_bytes(b"x")
        polls = []

        def stop_after_first_poll():
            polls.append(1)
            return len(polls) > 1

        paths, report = walk([tmp_path], stopped_flag=stop_after_first_poll)
        assert report.cancelled
        assert report.files_written == 2
        assert len(paths) == 2
