"""Shared test fixtures and configuration."""

import logging
from datetime import datetime, timezone
from pathlib import Path

import pytest
from git import Repo

from branchsplit.errors import BranchNotFoundError, GitError
from branchsplit.git import RepositoryAccessor
from branchsplit.models import ChangeType, Snapshot, TreeChange


SOURCE_DATE = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI attaches so they do not leak between tests."""
    yield
    logger = logging.getLogger("branchsplit")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True


class FakeRepository(RepositoryAccessor):
    """In-memory repository with one tree per branch."""

    def __init__(self, working_dir: Path, trees: dict[str, dict[str, bytes]], current: str = "main"):
        self.working_dir = working_dir
        self.trees = trees
        self.branches = list(trees)
        self.current = current
        self.identity = ("Test User", "test@example.com")
        self.history: dict[str, list[str]] = {}
        self.fail_checkout: set[str] = set()
        self.staged: set[str] = set()
        self.commits: list[dict] = []
        self.calls: list[tuple] = []

    @property
    def current_branch(self) -> str:
        return self.current

    def list_branches(self) -> list[str]:
        return list(self.branches)

    def resolve_branch(self, name: str) -> Snapshot:
        if name not in self.trees:
            raise BranchNotFoundError(name, self.list_branches())
        return Snapshot(
            ref=name,
            commit_sha=f"{name}-commit",
            tree_sha=name,
            committed_date=SOURCE_DATE,
        )

    def diff_trees(self, base: Snapshot, source: Snapshot) -> list[TreeChange]:
        old, new = self.trees[base.tree_sha], self.trees[source.tree_sha]
        changes = []
        for path in sorted(set(old) | set(new)):
            if path not in new:
                changes.append(TreeChange(ChangeType.DELETE, old_path=path))
            elif path not in old:
                changes.append(TreeChange(ChangeType.ADD, new_path=path))
            elif old[path] != new[path]:
                changes.append(TreeChange(ChangeType.MODIFY, old_path=path, new_path=path))
        return changes

    def has_file(self, snapshot: Snapshot, path: str) -> bool:
        return path in self.trees[snapshot.tree_sha]

    def restore_file(self, snapshot: Snapshot, path: str) -> None:
        self.calls.append(("restore_file", snapshot.ref, path))
        target = self.working_dir / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.trees[snapshot.tree_sha][path])

    def checkout(self, ref: str) -> None:
        self.calls.append(("checkout", ref))
        if ref in self.fail_checkout:
            raise GitError(f"Failed to checkout {ref}")
        self.current = ref
        self.staged.clear()

    def create_branch(self, name: str, commit_sha: str) -> None:
        self.calls.append(("create_branch", name, commit_sha))
        if name in self.branches:
            raise GitError(f"Branch already exists: {name}")
        self.branches.append(name)
        self.current = name

    def stage(self, path: str) -> None:
        self.calls.append(("stage", path))
        content = (self.working_dir / path).read_bytes()
        if self.trees["main"].get(path) != content:
            self.staged.add(path)

    def has_staged_changes(self) -> bool:
        return bool(self.staged)

    def get_identity(self) -> tuple[str, str]:
        return self.identity

    def commit(self, message: str, name: str, email: str, when: datetime) -> str:
        sha = f"{len(self.commits) + 1:040d}"
        self.commits.append({
            "branch": self.current,
            "message": message,
            "name": name,
            "email": email,
            "when": when,
            "files": sorted(self.staged),
            "sha": sha,
        })
        self.staged.clear()
        return sha

    def file_history(self, snapshot: Snapshot, path: str) -> list[str]:
        return self.history.get(path, [])


@pytest.fixture
def fake_repo(tmp_path):
    """Fake repository: main has a.txt and b.txt; feature modifies a.txt and adds c.txt."""
    trees = {
        "main": {"a.txt": b"a\n", "b.txt": b"b\n"},
        "feature": {"a.txt": b"a changed\n", "b.txt": b"b\n", "c.txt": b"c\n"},
    }
    return FakeRepository(tmp_path, trees)


def _commit_files(repo: Repo, files: dict[str, str], message: str) -> None:
    root = Path(repo.working_tree_dir)
    for path, content in files.items():
        target = root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content)
    repo.index.add(list(files))
    repo.index.commit(message)


@pytest.fixture
def git_repo(tmp_path):
    """
    A real repository with two branches.

    main:    a.txt, b.txt, old.txt
    feature: a.txt (modified), b.txt, c.txt (new), docs/guide.md (new);
             old.txt deleted
    """
    path = tmp_path / "repo"
    path.mkdir()
    repo = Repo.init(path)

    with repo.config_writer() as cw:
        cw.set_value("user", "name", "Test User")
        cw.set_value("user", "email", "test@example.com")
        cw.set_value("commit", "gpgsign", "false")

    _commit_files(repo, {"a.txt": "a\n", "b.txt": "b\n", "old.txt": "old\n"}, "Initial commit")
    repo.git.branch("-M", "main")

    repo.create_head("feature").checkout()
    _commit_files(repo, {"a.txt": "a changed\n", "c.txt": "c\n"}, "Change a, add c")
    _commit_files(repo, {"docs/guide.md": "# Guide\n"}, "Add guide")
    repo.index.remove(["old.txt"], working_tree=True)
    repo.index.commit("Remove old")

    repo.heads["main"].checkout()
    return repo
