"""Collect the files changed between two branches."""

import logging
from typing import Iterable

from branchsplit.git import RepositoryAccessor
from branchsplit.models import ChangeType, Snapshot, TreeChange


LOG = logging.getLogger(__name__)


def collect_changed_files(changes: Iterable[TreeChange]) -> list[str]:
    """
    Turn diff entries into an ordered list of distinct paths.

    Deletions are dropped. Every other change contributes its new-side
    path, or its old-side path when there is no new side. The first
    occurrence of a path wins.
    """
    seen: set[str] = set()
    files = []

    for change in changes:
        if change.change_type == ChangeType.DELETE:
            continue

        path = change.new_path or change.old_path
        if path and path not in seen:
            seen.add(path)
            files.append(path)

    return files


def collect_diff(git: RepositoryAccessor, base: Snapshot, source: Snapshot) -> list[str]:
    """Diff the base snapshot against the source snapshot."""
    changes = git.diff_trees(base, source)
    files = collect_changed_files(changes)
    LOG.debug(
        "%d diff entries between %s and %s, %d files kept",
        len(changes), base.short_sha, source.short_sha, len(files),
    )
    return files
