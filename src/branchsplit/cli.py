"""CLI for branchsplit."""

import sys
from pathlib import Path

import rich_click as click

from branchsplit import __version__, display

# Configure rich-click for pretty help output
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.MAX_WIDTH = 100
click.rich_click.STYLE_OPTION = "bold cyan"
click.rich_click.STYLE_SWITCH = "bold yellow"
from branchsplit.engine import create_engine
from branchsplit.errors import BranchSplitError
from branchsplit.logging_utils import configure_logging
from branchsplit.models import DEFAULT_PREFIX, SplitConfig
from branchsplit.git import BACKENDS


@click.command()
@click.option(
    "--source", "-s", required=True, metavar="BRANCH",
    help="Branch whose changed files are split out. File contents are "
         "always taken from this branch."
)
@click.option(
    "--base", "-b", default=None, metavar="BRANCH",
    help="Branch every new branch starts from. Defaults to 'main' or 'master'."
)
@click.option(
    "--number", "-n", "files_per_branch", required=True, type=click.IntRange(min=1),
    metavar="N",
    help="Maximum number of files per new branch."
)
@click.option(
    "--prefix", "-p", default=DEFAULT_PREFIX, show_default=True, metavar="PREFIX",
    help="Prefix for generated branch names (PREFIX_1, PREFIX_2, ...)."
)
@click.option(
    "--repo", "repo_path", default=None, type=click.Path(file_okay=False, path_type=Path),
    help="Repository to operate on. Defaults to the current directory."
)
@click.option(
    "--backend", type=click.Choice(BACKENDS), default="native", show_default=True,
    help="How to talk to git: 'native' uses GitPython, 'cli' runs the git binary."
)
@click.option(
    "--no-edit", is_flag=True,
    help="Skip the editor and create branches from the generated plan as-is."
)
@click.option(
    "--dry-run", is_flag=True,
    help="Plan and edit the split, print the final plan, and create nothing."
)
@click.option(
    "--history-message", is_flag=True,
    help="Add the commit subjects that touched each file on the source "
         "branch to the commit message."
)
@click.option(
    "--verbose", "-v", is_flag=True,
    help="Show debug logging, including every git command issued."
)
@click.option(
    "--log-file", type=click.Path(dir_okay=False, path_type=Path), default=None,
    envvar="BRANCHSPLIT_LOG_FILE",
    help="Append a debug log of the run to this file."
)
@click.version_option(__version__, prog_name="branchsplit")
def cli(
    source,
    base,
    files_per_branch,
    prefix,
    repo_path,
    backend,
    no_edit,
    dry_run,
    history_message,
    verbose,
    log_file,
):
    """**branchsplit** - split the files changed between two branches into
    several smaller branches.

    Every file added or modified on SOURCE relative to BASE is assigned
    to a group of at most N files. The plan opens in **$EDITOR** (default
    `vi`) as YAML so you can rename, reorder, drop, or regroup before any
    branch is created. Each group then becomes a branch off BASE with one
    commit holding that group's files as they are on SOURCE.

    Deleted files are never carried over.

    **Examples:**

        branchsplit -s feature -b main -n 5

        branchsplit -s feature -n 3 -p review --dry-run

        EDITOR="code -w" branchsplit -s feature -b develop -n 10
    """
    configure_logging(verbose=verbose, log_file=log_file)
    display.print_header()

    try:
        config = SplitConfig(
            source=source,
            base=base,
            files_per_branch=files_per_branch,
            prefix=prefix,
            repo_path=repo_path,
            backend=backend,
            edit=not no_edit,
            dry_run=dry_run,
            history_message=history_message,
        )
        engine = create_engine(config)
        engine.run()

    except BranchSplitError as e:
        display.print_error(str(e))
        sys.exit(1)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
