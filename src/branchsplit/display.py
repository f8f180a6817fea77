"""Rich terminal display for branchsplit."""

from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from branchsplit.models import GroupOutcome, Snapshot, SplitPlan, SplitResult


console = Console()


def print_header() -> None:
    """Print the branchsplit header."""
    console.print()
    console.print("[bold cyan]branchsplit[/bold cyan] - Split a diff into branches")
    console.print()


def print_repository(path: Path, branch: str) -> None:
    """Print which repository and branch the run starts from."""
    console.print(f"Repository: [bold]{path}[/bold]")
    console.print(f"  Current branch '[bold]{branch}[/bold]'")


def print_branches(branches: list[str]) -> None:
    """Print the available local branches."""
    console.print()
    console.print("[bold]Available branches:[/bold]")
    for name in branches:
        console.print(f"  - {name}")


def print_snapshot(label: str, snapshot: Snapshot) -> None:
    """Print a resolved branch."""
    console.print(
        f"  {label} '[bold]{snapshot.ref}[/bold]' at [dim]{snapshot.commit_sha}[/dim]"
    )


def print_file_count(count: int, base: str, source: str, branches: int) -> None:
    """Print the size of the diff and how many branches it becomes."""
    console.print()
    console.print(
        f"Found [bold]{count}[/bold] changed files between "
        f"'[bold]{base}[/bold]' and '[bold]{source}[/bold]'"
    )
    if count:
        console.print(f"  Planning [bold]{branches}[/bold] branches")


def print_plan(plan: SplitPlan, title: str = "Split plan:") -> None:
    """Print the groups of a plan."""
    console.print()
    console.print(f"[bold]{title}[/bold]")
    console.print()

    table = Table(show_header=True, header_style="bold", box=None, padding=(0, 2))
    table.add_column("Branch", style="cyan")
    table.add_column("Files", style="dim", justify="right")
    table.add_column("Paths")

    for group in plan.groups:
        paths = escape("\n".join(group.files)) if group.files else "[dim](none)[/dim]"
        table.add_row(escape(group.name), str(len(group.files)), paths)

    console.print(table)


def print_opening_editor(command: list[str]) -> None:
    """Print which editor is about to open."""
    console.print()
    console.print(f"[dim]Opening editor: {' '.join(command)}[/dim]")


def print_creating_split() -> None:
    """Print creating split message."""
    console.print()
    console.print("[bold]Creating branches...[/bold]")
    console.print()


def print_branch_progress(step: int, total: int, branch_name: str, status: str) -> None:
    """Print progress for branch creation."""
    status_colors = {
        "creating": "yellow",
        "updated": "white",
        "missing": "yellow",
        "done": "green",
        "no": "dim",
        "skipped": "dim",
    }
    color = status_colors.get(status.split()[0].lower(), "white")
    if status == "creating":
        console.print(f"  [{step}/{total}] Creating branch '[bold]{branch_name}[/bold]'")
        return
    console.print(f"        [{color}]{escape(status)}[/{color}]")


def print_dry_run_notice() -> None:
    """Print dry run notice."""
    console.print()
    console.print(Panel(
        "[yellow]DRY RUN MODE[/yellow] - No branches will be created",
        style="yellow",
    ))


def print_summary(result: SplitResult) -> None:
    """Print split completion summary."""
    console.print()
    console.print("[bold green]Split complete![/bold green]")
    console.print()

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Branch", style="bold")
    table.add_column("Outcome")

    labels = {
        GroupOutcome.CREATED: "[green]created[/green]",
        GroupOutcome.NO_CHANGES: "[dim]no changes, not committed[/dim]",
        GroupOutcome.SKIPPED_EMPTY: "[dim]skipped, no files[/dim]",
    }
    for group in result.groups:
        outcome = labels[group.outcome]
        if group.commit_sha:
            outcome += f" [dim]{group.commit_sha[:8]}[/dim]"
        if group.missing_files:
            outcome += f" [yellow]({len(group.missing_files)} missing)[/yellow]"
        table.add_row(escape(group.name), outcome)

    console.print(table)
    console.print()
    console.print(f"  Created {len(result.created_branches)} branches")
    if result.original_branch:
        print_info(f"Returned to original branch '{escape(result.original_branch)}'")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[dim]{message}[/dim]")