from typing import List, Tuple
from dicomdedup.core.models import DuplicateGroup


class DuplicateService:
    @staticmethod
    def remove_paths_from_groups(groups: List[DuplicateGroup], paths: List[str]) -> List[DuplicateGroup]:
        """
        Removes the specified paths from all duplicate groups.

        Groups that contain fewer than 2 paths after removal are discarded.

        Args:
            groups (List[DuplicateGroup]): List of duplicate groups to update.
            paths (List[str]): Paths to remove.

        Returns:
            List[DuplicateGroup]: Updated list of duplicate groups.
        """
        removed = set(paths)
        updated_groups = []
        for group in groups:
            remaining = [p for p in group.paths if p not in removed]
            if len(remaining) >= 2:
                updated_groups.append(DuplicateGroup(digest=group.digest, paths=remaining))
        return updated_groups

    @staticmethod
    def keep_only_one_file_per_group(groups: List[DuplicateGroup]) -> Tuple[List[str], List[DuplicateGroup]]:
        """
        Keeps the first path of each group and marks the rest for deletion.
        Returns:
            - List of paths to be deleted
            - Updated list of duplicate groups
        """
        paths_to_delete = []

        for group in groups:
            if len(group.paths) > 1:
                paths_to_delete.extend(group.paths[1:])

        updated_groups = DuplicateService.remove_paths_from_groups(groups, paths_to_delete)

        return paths_to_delete, updated_groups
