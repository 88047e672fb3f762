"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/sorter.py
Pure sorting logic for duplicate groups.
Decides which path comes first, i.e. which copy --keep-one preserves.
"""
import os
from typing import List, Optional

from dicomdedup.core.models import DuplicateGroup, SortOrder


class Sorter:
    """
    Sorts paths inside duplicate groups according to specified order.
    Modifies groups in-place.
    - COMPLETION: keep processing completion order (DEFAULT)
    - SHORTEST_PATH: path closest to the filesystem root goes first
    - SHORTEST_FILENAME: shortest file name goes first
    Ties keep their completion order (sort is stable).
    """

    @staticmethod
    def sort_paths_inside_groups(groups: List[DuplicateGroup], sort_order: Optional[SortOrder] = None) -> None:
        if not groups:
            return

        if sort_order is None or sort_order == SortOrder.COMPLETION:
            return

        for group in groups:
            if sort_order == SortOrder.SHORTEST_FILENAME:
                key_func = lambda p: (
                    len(os.path.basename(p)),
                    Sorter.path_depth(p)
                )
            else:
                key_func = lambda p: (
                    Sorter.path_depth(p),
                    len(os.path.basename(p))
                )
            group.paths.sort(key=key_func)

    @staticmethod
    def path_depth(path: str) -> int:
        return len([part for part in os.path.normpath(path).split(os.sep) if part])
