"""Data models for branchsplit."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from branchsplit.errors import ConfigError


DEFAULT_PREFIX = "split"


class ChangeType(str, Enum):
    """Kind of change reported by a tree diff."""

    ADD = "add"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"


@dataclass(frozen=True)
class TreeChange:
    """A single entry of a tree-to-tree diff."""

    change_type: ChangeType
    old_path: str | None = None
    new_path: str | None = None


@dataclass(frozen=True)
class Snapshot:
    """An immutable view of a branch resolved at the start of a run."""

    ref: str
    commit_sha: str
    tree_sha: str
    committed_date: datetime

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:8]


@dataclass
class BranchGroup:
    """A named subset of changed files destined for one new branch."""

    name: str
    files: list[str] = field(default_factory=list)


@dataclass
class SplitPlan:
    """The ordered collection of groups to materialize."""

    groups: list[BranchGroup] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return sum(len(g.files) for g in self.groups)


@dataclass(frozen=True)
class SplitConfig:
    """Options for a single split run."""

    source: str
    files_per_branch: int
    base: str | None = None
    prefix: str = DEFAULT_PREFIX
    repo_path: Path | None = None
    backend: str = "native"
    edit: bool = True
    dry_run: bool = False
    history_message: bool = False

    def __post_init__(self) -> None:
        if not self.source:
            raise ConfigError("Source branch is required")
        if self.files_per_branch < 1:
            raise ConfigError(
                f"Files per branch must be at least 1, got {self.files_per_branch}"
            )
        if not self.prefix:
            raise ConfigError("Branch prefix must not be empty")
        if self.backend not in ("native", "cli"):
            raise ConfigError(f"Unknown backend: {self.backend}")


class MaterializePhase(str, Enum):
    """Current step of branch materialization."""

    RECORD_ORIGINAL = "record_original"
    CHECKOUT_BASE = "checkout_base"
    CREATE_GROUP_BRANCH = "create_group_branch"
    COPY_FILES = "copy_files"
    STAGE = "stage"
    COMMIT_IF_DIRTY = "commit_if_dirty"
    RESTORE_ORIGINAL = "restore_original"


class GroupOutcome(str, Enum):
    """How a group ended up after materialization."""

    CREATED = "created"
    SKIPPED_EMPTY = "skipped_empty"
    NO_CHANGES = "no_changes"


@dataclass
class GroupResult:
    """Result of materializing a single group."""

    name: str
    outcome: GroupOutcome
    updated_files: list[str] = field(default_factory=list)
    missing_files: list[str] = field(default_factory=list)
    commit_sha: str | None = None


@dataclass
class SplitResult:
    """Summary of a whole run."""

    base: Snapshot | None = None
    source: Snapshot | None = None
    changed_files: list[str] = field(default_factory=list)
    plan: SplitPlan | None = None
    groups: list[GroupResult] = field(default_factory=list)
    original_branch: str | None = None
    dry_run: bool = False

    @property
    def created_branches(self) -> list[str]:
        return [g.name for g in self.groups if g.outcome == GroupOutcome.CREATED]
