"""Main split pipeline: diff, plan, edit, materialize."""

import logging
from typing import Callable

from branchsplit import display
from branchsplit.diff import collect_diff
from branchsplit.editor import edit_plan, resolve_editor_command
from branchsplit.errors import BranchNotFoundError
from branchsplit.git import RepositoryAccessor, open_repository
from branchsplit.materializer import BranchMaterializer
from branchsplit.models import Snapshot, SplitConfig, SplitPlan, SplitResult
from branchsplit.planner import partition


LOG = logging.getLogger(__name__)

PlanEditor = Callable[[SplitPlan], SplitPlan]


class SplitEngine:
    """
    Runs one split from start to finish.

    Base and source are resolved once up front; every group is then
    populated from the source snapshot, never from the working tree.
    """

    def __init__(
        self,
        git: RepositoryAccessor,
        config: SplitConfig,
        editor: PlanEditor | None = None,
    ):
        self.git = git
        self.config = config
        self.editor = editor or edit_plan

    def run(self) -> SplitResult:
        """
        Run the split engine.

        Fatal failures raise a BranchSplitError subclass; soft failures
        are recorded on the returned result.
        """
        config = self.config
        result = SplitResult(dry_run=config.dry_run)

        display.print_repository(self.git.working_dir, self.git.current_branch)

        base_name = config.base or self.git.get_default_branch()
        result.base = self._resolve("BASE", base_name)
        result.source = self._resolve("SOURCE", config.source)

        result.changed_files = collect_diff(self.git, result.base, result.source)
        plan = partition(result.changed_files, config.files_per_branch, config.prefix)

        display.print_file_count(
            len(result.changed_files), base_name, config.source, len(plan.groups)
        )
        if not result.changed_files:
            display.print_info("No changed files, nothing to split")
            return result

        if config.edit:
            display.print_opening_editor(resolve_editor_command())
            plan = self.editor(plan)

        result.plan = plan
        display.print_plan(plan)

        if config.dry_run:
            display.print_dry_run_notice()
            return result

        materializer = BranchMaterializer(
            self.git,
            result.base,
            result.source,
            history_message=config.history_message,
            on_progress=display.print_branch_progress,
        )

        display.print_creating_split()
        try:
            materializer.materialize(plan)
        finally:
            result.groups = list(materializer.results)
            result.original_branch = materializer.original_branch

        display.print_summary(result)
        return result

    def _resolve(self, label: str, name: str) -> Snapshot:
        """Resolve a branch, listing the alternatives when it is missing."""
        try:
            snapshot = self.git.resolve_branch(name)
        except BranchNotFoundError as e:
            display.print_branches(e.available)
            raise

        LOG.debug("%s %s resolved to %s", label, name, snapshot.commit_sha)
        display.print_snapshot(label, snapshot)
        return snapshot


def create_engine(config: SplitConfig, editor: PlanEditor | None = None) -> SplitEngine:
    """Create a configured split engine."""
    git = open_repository(config.repo_path, config.backend)
    return SplitEngine(git, config, editor=editor)
