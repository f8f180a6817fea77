"""Tests for branchsplit.cli module."""

import pytest
from click.testing import CliRunner

from branchsplit import __version__
from branchsplit.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def _args(git_repo, *extra):
    return ["-s", "feature", "-b", "main", "-n", "2", "--repo", git_repo.working_tree_dir, *extra]


def _split_branches(git_repo):
    return sorted(h.name for h in git_repo.heads if h.name.startswith("split_"))


class TestOptions:
    """Argument validation happens before any repository access."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "--source" in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_source_required(self, runner, tmp_path):
        result = runner.invoke(cli, ["-n", "2", "--repo", str(tmp_path)])
        assert result.exit_code == 2

    def test_number_required(self, runner, tmp_path):
        result = runner.invoke(cli, ["-s", "feature", "--repo", str(tmp_path)])
        assert result.exit_code == 2

    @pytest.mark.parametrize("number", ["0", "-3", "many"])
    def test_number_must_be_positive(self, runner, tmp_path, number):
        result = runner.invoke(cli, ["-s", "feature", "-n", number, "--repo", str(tmp_path)])
        assert result.exit_code == 2


class TestRun:
    """End-to-end runs against a real repository."""

    def test_no_edit(self, runner, git_repo):
        result = runner.invoke(cli, _args(git_repo, "--no-edit"))

        assert result.exit_code == 0, result.output
        assert _split_branches(git_repo) == ["split_1", "split_2"]
        assert git_repo.active_branch.name == "main"

    def test_editor_accepting_plan(self, runner, git_repo):
        result = runner.invoke(cli, _args(git_repo, "-p", "part"), env={"EDITOR": "true"})

        assert result.exit_code == 0, result.output
        assert sorted(h.name for h in git_repo.heads if h.name.startswith("part_")) == [
            "part_1",
            "part_2",
        ]

    def test_editor_failure_exits_nonzero(self, runner, git_repo):
        result = runner.invoke(cli, _args(git_repo), env={"EDITOR": "false"})

        assert result.exit_code == 1
        assert "Error" in result.output
        assert _split_branches(git_repo) == []

    def test_unknown_branch_lists_branches(self, runner, git_repo):
        result = runner.invoke(
            cli, ["-s", "nope", "-n", "1", "--repo", git_repo.working_tree_dir, "--no-edit"]
        )

        assert result.exit_code == 1
        assert "Available branches" in result.output
        assert "feature" in result.output

    def test_not_a_repository(self, runner, tmp_path):
        result = runner.invoke(cli, ["-s", "feature", "-n", "1", "--repo", str(tmp_path), "--no-edit"])

        assert result.exit_code == 1
        assert "Not a git repository" in result.output

    def test_dry_run(self, runner, git_repo):
        result = runner.invoke(cli, _args(git_repo, "--no-edit", "--dry-run"))

        assert result.exit_code == 0, result.output
        assert "DRY RUN" in result.output
        assert _split_branches(git_repo) == []

    def test_existing_branch_exits_nonzero(self, runner, git_repo):
        git_repo.create_head("split_1", "main")

        result = runner.invoke(cli, _args(git_repo, "--no-edit", "--backend", "cli"))

        assert result.exit_code == 1
        assert git_repo.active_branch.name == "main"

    def test_log_file(self, runner, git_repo, tmp_path):
        log_file = tmp_path / "branchsplit.log"

        result = runner.invoke(cli, _args(git_repo, "--no-edit", "--backend", "cli", "--log-file", str(log_file)))

        assert result.exit_code == 0, result.output
        assert "Running git command" in log_file.read_text()
