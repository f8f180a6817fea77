"""Create one branch per plan group and commit the group's files into it."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator

from branchsplit.errors import GitError, MaterializeError
from branchsplit.git import RepositoryAccessor
from branchsplit.models import (
    BranchGroup,
    GroupOutcome,
    GroupResult,
    MaterializePhase,
    Snapshot,
    SplitPlan,
)


LOG = logging.getLogger(__name__)

COMMIT_SUBJECT = "Update diff files"

ProgressCallback = Callable[[int, int, str, str], None]


def build_commit_message(files: list[str], history: dict[str, list[str]] | None = None) -> str:
    """
    Build the commit message for a group.

    The subject lists the updated files. When ``history`` is given, the
    body lists the historical commit subjects for each file.
    """
    message = f"{COMMIT_SUBJECT}: {', '.join(files)}"
    if not history:
        return message

    sections = []
    for path in files:
        subjects = list(dict.fromkeys(history.get(path, [])))
        if subjects:
            sections.append("\n".join([f"{path}:", *(f"- {s}" for s in subjects)]))

    if sections:
        message += "\n\n" + "\n\n".join(sections)
    return message


@contextmanager
def original_branch_restored(git: RepositoryAccessor) -> Iterator[str]:
    """
    Record the checked out branch and check it out again on exit.

    A failed restore is raised only when the body itself succeeded;
    otherwise it is logged and the body's error propagates.
    """
    original = git.current_branch
    LOG.debug("Recorded original branch %s", original)

    completed = False
    try:
        yield original
        completed = True
    finally:
        try:
            git.checkout(original)
            LOG.debug("Restored original branch %s", original)
        except GitError as e:
            if completed:
                raise MaterializeError(f"Failed to return to original branch {original}: {e}")
            LOG.error("Failed to return to original branch %s: %s", original, e)


class BranchMaterializer:
    """Replay a split plan against the repository."""

    def __init__(
        self,
        git: RepositoryAccessor,
        base: Snapshot,
        source: Snapshot,
        history_message: bool = False,
        on_progress: ProgressCallback | None = None,
    ):
        self.git = git
        self.base = base
        self.source = source
        self.history_message = history_message
        self.on_progress = on_progress

        self.phase = MaterializePhase.RECORD_ORIGINAL
        self.original_branch: str | None = None
        self.results: list[GroupResult] = []

    def materialize(self, plan: SplitPlan) -> list[GroupResult]:
        """
        Materialize every group in plan order.

        The first fatal failure stops the run with a MaterializeError.
        The originally checked out branch is restored either way.
        """
        self.results = []
        identity = None
        if any(group.files for group in plan.groups):
            identity = self.git.require_identity()

        self.phase = MaterializePhase.RECORD_ORIGINAL
        with original_branch_restored(self.git) as original:
            self.original_branch = original
            total = len(plan.groups)

            for step, group in enumerate(plan.groups, 1):
                result = self._materialize_group(step, total, group, identity)
                self.results.append(result)

            self.phase = MaterializePhase.RESTORE_ORIGINAL

        return self.results

    def _report(self, step: int, total: int, name: str, status: str) -> None:
        if self.on_progress:
            self.on_progress(step, total, name, status)

    def _materialize_group(
        self,
        step: int,
        total: int,
        group: BranchGroup,
        identity: tuple[str, str] | None,
    ) -> GroupResult:
        if not group.files:
            LOG.info("Skipping branch %s: no files", group.name)
            self._report(step, total, group.name, "skipped (no files)")
            return GroupResult(name=group.name, outcome=GroupOutcome.SKIPPED_EMPTY)

        self._report(step, total, group.name, "creating")

        try:
            self.phase = MaterializePhase.CHECKOUT_BASE
            self.git.checkout(self.base.ref)

            self.phase = MaterializePhase.CREATE_GROUP_BRANCH
            self.git.create_branch(group.name, self.base.commit_sha)

            updated, missing = self._copy_files(step, total, group)

            self.phase = MaterializePhase.COMMIT_IF_DIRTY
            if not self.git.has_staged_changes():
                LOG.info("Nothing staged on %s, skipping commit", group.name)
                self._report(step, total, group.name, "no changes")
                return GroupResult(
                    name=group.name,
                    outcome=GroupOutcome.NO_CHANGES,
                    updated_files=updated,
                    missing_files=missing,
                )

            name, email = identity
            commit_sha = self.git.commit(
                self._commit_message(updated),
                name,
                email,
                self.source.committed_date,
            )

        except GitError as e:
            raise MaterializeError(
                f"Branch '{group.name}' failed at {self.phase.value}: {e}"
            )

        self._report(step, total, group.name, f"done {commit_sha[:8]}")
        return GroupResult(
            name=group.name,
            outcome=GroupOutcome.CREATED,
            updated_files=updated,
            missing_files=missing,
            commit_sha=commit_sha,
        )

    def _copy_files(
        self,
        step: int,
        total: int,
        group: BranchGroup,
    ) -> tuple[list[str], list[str]]:
        """
        Copy each of the group's files from the source snapshot and stage it.

        Files are checked out of the source commit rather than written by
        hand, so modes and symlinks come across as they are on the source.
        """
        updated: list[str] = []
        missing: list[str] = []

        for path in group.files:
            self.phase = MaterializePhase.COPY_FILES
            if not self.git.has_file(self.source, path):
                LOG.warning("%s does not exist on %s, skipping", path, self.source.ref)
                self._report(step, total, group.name, f"missing {path}")
                missing.append(path)
                continue

            self.git.restore_file(self.source, path)

            self.phase = MaterializePhase.STAGE
            self.git.stage(path)

            if path not in updated:
                updated.append(path)
            self._report(step, total, group.name, f"updated {path}")

        return updated, missing

    def _commit_message(self, files: list[str]) -> str:
        if not self.history_message:
            return build_commit_message(files)

        history = {path: self.git.file_history(self.source, path) for path in files}
        return build_commit_message(files, history)
