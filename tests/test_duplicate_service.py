"""
Tests for DuplicateService and Sorter: which copy is kept and which are removed.
Critical for data safety: exactly one path per group must survive.
"""
import os

from dicomdedup.core.models import DuplicateGroup, SortOrder
from dicomdedup.core.sorter import Sorter
from dicomdedup.services.duplicate_service import DuplicateService

D1 = "1" * 64
D2 = "2" * 64


class TestKeepOnlyOne:

    def test_first_path_of_each_group_is_kept(self):
        groups = [
            DuplicateGroup(digest=D1, paths=["/keep1", "/del1", "/del2"]),
            DuplicateGroup(digest=D2, paths=["/keep2", "/del3"]),
        ]
        to_delete, updated = DuplicateService.keep_only_one_file_per_group(groups)
        assert to_delete == ["/del1", "/del2", "/del3"]
        assert updated == []

    def test_input_groups_not_modified(self):
        groups = [DuplicateGroup(digest=D1, paths=["/a", "/b"])]
        DuplicateService.keep_only_one_file_per_group(groups)
        assert groups[0].paths == ["/a", "/b"]

    def test_empty(self):
        assert DuplicateService.keep_only_one_file_per_group([]) == ([], [])


class TestRemovePaths:

    def test_groups_shrinking_below_two_are_dropped(self):
        groups = [
            DuplicateGroup(digest=D1, paths=["/a", "/b", "/c"]),
            DuplicateGroup(digest=D2, paths=["/x", "/y"]),
        ]
        updated = DuplicateService.remove_paths_from_groups(groups, ["/a", "/y"])
        assert len(updated) == 1
        assert updated[0].digest == D1
        assert updated[0].paths == ["/b", "/c"]


class TestSorter:

    def test_completion_order_is_kept_by_default(self):
        group = DuplicateGroup(digest=D1, paths=["/deep/er/file.dcm", "/a.dcm"])
        Sorter.sort_paths_inside_groups([group])
        assert group.paths == ["/deep/er/file.dcm", "/a.dcm"]
        Sorter.sort_paths_inside_groups([group], SortOrder.COMPLETION)
        assert group.paths == ["/deep/er/file.dcm", "/a.dcm"]

    def test_shortest_path(self):
        group = DuplicateGroup(digest=D1, paths=["/x/y/z/a.dcm", "/x/long_name.dcm", "/x/y/b.dcm"])
        Sorter.sort_paths_inside_groups([group], SortOrder.SHORTEST_PATH)
        assert group.paths == ["/x/long_name.dcm", "/x/y/b.dcm", "/x/y/z/a.dcm"]

    def test_shortest_filename(self):
        group = DuplicateGroup(digest=D1, paths=["/x/long_name.dcm", "/x/y/z/a.dcm", "/x/y/bb.dcm"])
        Sorter.sort_paths_inside_groups([group], SortOrder.SHORTEST_FILENAME)
        assert group.paths == ["/x/y/z/a.dcm", "/x/y/bb.dcm", "/x/long_name.dcm"]

    def test_ties_keep_completion_order(self):
        group = DuplicateGroup(digest=D1, paths=["/b/same", "/a/same"])
        Sorter.sort_paths_inside_groups([group], SortOrder.SHORTEST_PATH)
        assert group.paths == ["/b/same", "/a/same"]

    def test_empty_groups(self):
        groups = []
        Sorter.sort_paths_inside_groups(groups, SortOrder.SHORTEST_PATH)
        assert groups == []

    def test_path_depth(self):
        assert Sorter.path_depth(os.path.join(os.sep, "a", "b", "c.dcm")) == 3
