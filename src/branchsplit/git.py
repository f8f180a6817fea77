"""Git operations for branchsplit.

Two interchangeable backends sit behind :class:`RepositoryAccessor`:
``GitOperations`` drives the repository through GitPython, while
``GitCliOperations`` shells out to the ``git`` binary.
"""

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path

from git import Actor, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from branchsplit.errors import BranchNotFoundError, GitError
from branchsplit.models import ChangeType, Snapshot, TreeChange


LOG = logging.getLogger(__name__)

BACKENDS = ("native", "cli")

# Paths from the plan are file names, never glob patterns
LITERAL_PATHSPECS = {"GIT_LITERAL_PATHSPECS": "1"}


def format_git_date(when: datetime) -> str:
    """Format a datetime in git's internal ``<epoch> <offset>`` form."""
    offset = when.strftime("%z") or "+0000"
    return f"{int(when.timestamp())} {offset}"


class RepositoryAccessor(ABC):
    """Everything branchsplit needs from a repository."""

    working_dir: Path

    @property
    @abstractmethod
    def current_branch(self) -> str:
        """Name of the checked out branch, or the commit hash when detached."""

    @abstractmethod
    def list_branches(self) -> list[str]:
        """Names of all local branches."""

    @abstractmethod
    def resolve_branch(self, name: str) -> Snapshot:
        """Resolve a local branch to its commit and tree."""

    @abstractmethod
    def diff_trees(self, base: Snapshot, source: Snapshot) -> list[TreeChange]:
        """Diff the tree of ``base`` against the tree of ``source``."""

    @abstractmethod
    def has_file(self, snapshot: Snapshot, path: str) -> bool:
        """Check whether ``path`` is a file in the snapshot's tree."""

    @abstractmethod
    def restore_file(self, snapshot: Snapshot, path: str) -> None:
        """
        Write ``path`` from the snapshot into the working tree and index.

        The entry keeps its mode: executables stay executable and symlinks
        are recreated as links, replacing whatever the working tree holds.
        """

    @abstractmethod
    def checkout(self, ref: str) -> None:
        """Check out an existing branch (or commit) into the working tree."""

    @abstractmethod
    def create_branch(self, name: str, commit_sha: str) -> None:
        """Create a new branch at ``commit_sha`` and check it out."""

    @abstractmethod
    def stage(self, path: str) -> None:
        """Stage a single path."""

    @abstractmethod
    def has_staged_changes(self) -> bool:
        """Check whether the index differs from HEAD."""

    @abstractmethod
    def get_identity(self) -> tuple[str, str]:
        """Return the configured ``(user.name, user.email)``."""

    @abstractmethod
    def commit(self, message: str, name: str, email: str, when: datetime) -> str:
        """Commit staged changes and return the new commit hash."""

    @abstractmethod
    def file_history(self, snapshot: Snapshot, path: str) -> list[str]:
        """Subjects of commits reachable from the snapshot that touched ``path``."""

    def branch_exists(self, name: str) -> bool:
        """Check if a branch exists."""
        return name in self.list_branches()

    def get_default_branch(self) -> str:
        """Get the default branch (main or master)."""
        branches = self.list_branches()
        for name in ["main", "master"]:
            if name in branches:
                return name
        return "main"

    def require_identity(self) -> tuple[str, str]:
        """Return the configured identity, failing when it is incomplete."""
        name, email = self.get_identity()
        if not name or not email:
            raise GitError(
                "user.name and user.email must be set in git config before committing"
            )
        return name, email


class GitOperations(RepositoryAccessor):
    """Repository access through GitPython."""

    def __init__(self, repo_path: str | Path | None = None):
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        try:
            self.repo = Repo(self.repo_path)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise GitError(f"Not a git repository: {self.repo_path}")
        if self.repo.bare:
            raise GitError(f"Repository has no working tree: {self.repo_path}")
        self.working_dir = Path(self.repo.working_tree_dir)

    @property
    def current_branch(self) -> str:
        """Get the current branch name."""
        if self.repo.head.is_detached:
            return self.repo.head.commit.hexsha
        return self.repo.active_branch.name

    def list_branches(self) -> list[str]:
        return [h.name for h in self.repo.heads]

    def get_default_branch(self) -> str:
        """Get the default branch (main or master)."""
        branches = self.list_branches()
        for name in ["main", "master"]:
            if name in branches:
                return name

        # Fallback: try to get from remote
        for remote in self.repo.remotes:
            for ref in remote.refs:
                if ref.remote_head == "HEAD":
                    try:
                        return ref.reference.remote_head
                    except (TypeError, ValueError):
                        continue

        return "main"

    def resolve_branch(self, name: str) -> Snapshot:
        try:
            commit = self.repo.heads[name].commit
        except (IndexError, KeyError, ValueError):
            raise BranchNotFoundError(name, self.list_branches())

        return Snapshot(
            ref=name,
            commit_sha=commit.hexsha,
            tree_sha=commit.tree.hexsha,
            committed_date=commit.committed_datetime,
        )

    def diff_trees(self, base: Snapshot, source: Snapshot) -> list[TreeChange]:
        try:
            diff_index = self.repo.commit(base.commit_sha).diff(source.commit_sha)
        except (GitCommandError, ValueError) as e:
            raise GitError(f"Failed to get diff: {e}")

        changes = []
        for diff in diff_index:
            if diff.new_file:
                change_type = ChangeType.ADD
            elif diff.deleted_file:
                change_type = ChangeType.DELETE
            elif diff.renamed_file:
                change_type = ChangeType.RENAME
            else:
                change_type = ChangeType.MODIFY

            changes.append(
                TreeChange(
                    change_type=change_type,
                    old_path=diff.a_path,
                    new_path=diff.b_path,
                )
            )

        return changes

    def has_file(self, snapshot: Snapshot, path: str) -> bool:
        # A commit's root tree carries the path attribute that tree lookups need
        tree = self.repo.commit(snapshot.commit_sha).tree
        try:
            obj = tree / path
        except KeyError:
            return False
        return obj.type == "blob"

    def restore_file(self, snapshot: Snapshot, path: str) -> None:
        try:
            self.repo.git.checkout(snapshot.commit_sha, "--", path, env=LITERAL_PATHSPECS)
        except GitCommandError as e:
            raise GitError(f"Failed to copy {path} from {snapshot.ref}: {e}")

    def checkout(self, ref: str) -> None:
        """Checkout a branch."""
        try:
            if ref in self.list_branches():
                self.repo.heads[ref].checkout()
            else:
                self.repo.git.checkout(ref)
        except GitCommandError as e:
            raise GitError(f"Failed to checkout {ref}: {e}")

    def create_branch(self, name: str, commit_sha: str) -> None:
        """Create a new branch and check it out."""
        if self.branch_exists(name):
            raise GitError(f"Branch already exists: {name}")

        try:
            self.repo.git.check_ref_format("--branch", name)
        except GitCommandError:
            raise GitError(f"Invalid branch name: {name!r}")

        try:
            head = self.repo.create_head(name, commit_sha)
            head.checkout()
        except (GitCommandError, OSError) as e:
            raise GitError(f"Failed to create branch {name}: {e}")

    def stage(self, path: str) -> None:
        try:
            self.repo.git.add("--", path, env=LITERAL_PATHSPECS)
        except GitCommandError as e:
            raise GitError(f"Failed to stage {path}: {e}")

    def has_staged_changes(self) -> bool:
        try:
            return self.repo.is_dirty(index=True, working_tree=False, untracked_files=False)
        except GitCommandError as e:
            raise GitError(f"Failed to read status: {e}")

    def get_identity(self) -> tuple[str, str]:
        reader = self.repo.config_reader()
        name = reader.get_value("user", "name", "")
        email = reader.get_value("user", "email", "")
        return str(name), str(email)

    def commit(self, message: str, name: str, email: str, when: datetime) -> str:
        """Create a commit and return the commit hash."""
        actor = Actor(name, email)
        date = format_git_date(when)
        try:
            commit = self.repo.index.commit(
                message,
                author=actor,
                committer=actor,
                author_date=date,
                commit_date=date,
                skip_hooks=True,
            )
        except (GitCommandError, ValueError, OSError) as e:
            raise GitError(f"Failed to commit: {e}")
        return commit.hexsha

    def file_history(self, snapshot: Snapshot, path: str) -> list[str]:
        try:
            return [c.summary for c in self.repo.iter_commits(snapshot.commit_sha, paths=path)]
        except GitCommandError as e:
            raise GitError(f"Failed to read history of {path}: {e}")


class GitCliOperations(RepositoryAccessor):
    """Repository access by shelling out to the git binary."""

    def __init__(self, repo_path: str | Path | None = None):
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        if not self.repo_path.is_dir():
            raise GitError(f"Not a git repository: {self.repo_path}")
        try:
            top = self._run(["rev-parse", "--show-toplevel"]).stdout.strip()
        except GitError:
            raise GitError(f"Not a git repository: {self.repo_path}")
        self.working_dir = Path(top)

    def _run(
        self,
        args: list[str],
        env: dict[str, str] | None = None,
        ok_codes: tuple[int, ...] = (0,),
    ) -> subprocess.CompletedProcess:
        """Run a git command in the repository and return the completed process."""
        cmd = ["git", *args]
        LOG.debug("Running git command: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_path,
                env={**os.environ, **env} if env else None,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise GitError(f"Failed to execute git: {e}")

        if result.returncode not in ok_codes:
            LOG.debug("git stderr: %s", result.stderr)
            raise GitError(f"git command failed: {' '.join(cmd)}: {result.stderr.strip()}")

        return result

    @property
    def current_branch(self) -> str:
        result = self._run(["symbolic-ref", "--short", "-q", "HEAD"], ok_codes=(0, 1))
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
        return self._run(["rev-parse", "HEAD"]).stdout.strip()

    def list_branches(self) -> list[str]:
        output = self._run(["for-each-ref", "--format=%(refname:short)", "refs/heads"]).stdout
        return [line for line in output.splitlines() if line]

    def resolve_branch(self, name: str) -> Snapshot:
        result = self._run(
            ["rev-parse", "--verify", "--quiet", f"refs/heads/{name}^{{commit}}"],
            ok_codes=(0, 1, 128),
        )
        commit_sha = result.stdout.strip()
        if result.returncode != 0 or not commit_sha:
            raise BranchNotFoundError(name, self.list_branches())

        tree_sha = self._run(["rev-parse", f"{commit_sha}^{{tree}}"]).stdout.strip()
        date = self._run(["show", "-s", "--format=%cI", commit_sha]).stdout.strip()

        return Snapshot(
            ref=name,
            commit_sha=commit_sha,
            tree_sha=tree_sha,
            committed_date=datetime.fromisoformat(date),
        )

    def diff_trees(self, base: Snapshot, source: Snapshot) -> list[TreeChange]:
        output = self._run(
            ["diff-tree", "-r", "-z", "--name-status", "-M", base.commit_sha, source.commit_sha]
        ).stdout
        return parse_name_status(output)

    def _object_type(self, snapshot: Snapshot, path: str) -> str | None:
        result = self._run(
            ["cat-file", "-t", f"{snapshot.tree_sha}:{path}"], ok_codes=(0, 128)
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip()

    def has_file(self, snapshot: Snapshot, path: str) -> bool:
        return self._object_type(snapshot, path) == "blob"

    def restore_file(self, snapshot: Snapshot, path: str) -> None:
        try:
            self._run(["checkout", "-q", snapshot.commit_sha, "--", path], env=LITERAL_PATHSPECS)
        except GitError as e:
            raise GitError(f"Failed to copy {path} from {snapshot.ref}: {e}")

    def checkout(self, ref: str) -> None:
        try:
            self._run(["checkout", "-q", ref, "--"])
        except GitError as e:
            raise GitError(f"Failed to checkout {ref}: {e}")

    def create_branch(self, name: str, commit_sha: str) -> None:
        if self.branch_exists(name):
            raise GitError(f"Branch already exists: {name}")

        result = self._run(["check-ref-format", "--branch", name], ok_codes=(0, 1, 128))
        if result.returncode != 0:
            raise GitError(f"Invalid branch name: {name!r}")

        try:
            self._run(["checkout", "-q", "-b", name, commit_sha])
        except GitError as e:
            raise GitError(f"Failed to create branch {name}: {e}")

    def stage(self, path: str) -> None:
        self._run(["add", "--", path], env=LITERAL_PATHSPECS)

    def has_staged_changes(self) -> bool:
        result = self._run(["diff", "--cached", "--quiet"], ok_codes=(0, 1))
        return result.returncode == 1

    def _config_value(self, key: str) -> str:
        result = self._run(["config", "--get", key], ok_codes=(0, 1))
        return result.stdout.strip()

    def get_identity(self) -> tuple[str, str]:
        return self._config_value("user.name"), self._config_value("user.email")

    def commit(self, message: str, name: str, email: str, when: datetime) -> str:
        date = format_git_date(when)
        env = {
            "GIT_AUTHOR_NAME": name,
            "GIT_AUTHOR_EMAIL": email,
            "GIT_AUTHOR_DATE": date,
            "GIT_COMMITTER_NAME": name,
            "GIT_COMMITTER_EMAIL": email,
            "GIT_COMMITTER_DATE": date,
        }
        try:
            self._run(["commit", "-q", "--no-verify", "-m", message], env=env)
        except GitError as e:
            raise GitError(f"Failed to commit: {e}")
        return self._run(["rev-parse", "HEAD"]).stdout.strip()

    def file_history(self, snapshot: Snapshot, path: str) -> list[str]:
        output = self._run(["log", "--format=%s", snapshot.commit_sha, "--", path]).stdout
        return [line for line in output.splitlines() if line]


def parse_name_status(output: str) -> list[TreeChange]:
    """Parse ``git diff-tree -z --name-status`` output into tree changes."""
    tokens = output.split("\0")
    changes = []
    i = 0
    while i < len(tokens):
        status = tokens[i]
        if not status:
            i += 1
            continue

        code = status[0]
        if code in ("R", "C"):
            old_path, new_path = tokens[i + 1], tokens[i + 2]
            i += 3
            change_type = ChangeType.RENAME if code == "R" else ChangeType.ADD
            changes.append(TreeChange(change_type, old_path=old_path, new_path=new_path))
            continue

        path = tokens[i + 1]
        i += 2
        if code == "A":
            changes.append(TreeChange(ChangeType.ADD, new_path=path))
        elif code == "D":
            changes.append(TreeChange(ChangeType.DELETE, old_path=path))
        else:
            changes.append(TreeChange(ChangeType.MODIFY, old_path=path, new_path=path))

    return changes


def open_repository(repo_path: str | Path | None = None, backend: str = "native") -> RepositoryAccessor:
    """Open a repository with the requested backend."""
    if backend == "native":
        return GitOperations(repo_path)
    if backend == "cli":
        return GitCliOperations(repo_path)
    raise GitError(f"Unknown backend: {backend}")
