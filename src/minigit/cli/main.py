"""Main CLI entry point for MiniGit."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel

from minigit.constants import (
    ENV_REPO_DIR,
    EXIT_DATA_ERROR,
    EXIT_HASH_COLLISION,
    EXIT_SUCCESS,
    EXIT_SYSTEM_ERROR,
    EXIT_USER_ERROR,
    REPO_DIR,
)
from minigit.core import Repository, Status
from minigit.core.results import Result
from minigit.errors import (
    ConfigError,
    MiniGitError,
    NotARepositoryError,
    PersistenceError,
    RepositoryExistsError,
)

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="minigit",
    help="A minimal local version-control engine",
    add_completion=False,
)

EXIT_CODES = {
    Status.OK: EXIT_SUCCESS,
    Status.ALREADY_STAGED: EXIT_SUCCESS,
    Status.NOTHING_TO_COMMIT: EXIT_SUCCESS,
    Status.NOT_STAGED: EXIT_USER_ERROR,
    Status.FILE_NOT_FOUND: EXIT_USER_ERROR,
    Status.INVALID_PATH: EXIT_USER_ERROR,
    Status.OUTSIDE_REPOSITORY: EXIT_USER_ERROR,
    Status.NOT_FOUND: EXIT_USER_ERROR,
    Status.NOT_IMPLEMENTED: EXIT_USER_ERROR,
    Status.PERSISTENCE_FAILURE: EXIT_SYSTEM_ERROR,
    Status.CORRUPTED: EXIT_DATA_ERROR,
    Status.HISTORY_TRUNCATED: EXIT_DATA_ERROR,
    Status.HASH_COLLISION: EXIT_HASH_COLLISION,
}


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=False)],
        force=True,
    )


def _workspace(ctx: typer.Context) -> Path:
    """Directory the command runs in; relative paths are taken from here."""
    if ctx.obj and ctx.obj.get("repo"):
        return Path(ctx.obj["repo"]).resolve()
    return Path.cwd()


def _open_repository(ctx: typer.Context) -> Repository:
    """Open the repository or exit with a hint."""
    workspace_root = _workspace(ctx)
    try:
        return Repository.discover(workspace_root)
    except NotARepositoryError:
        console.print(
            "[bold red]Error:[/bold red] Not a MiniGit repository",
            style="red",
        )
        console.print(
            f"  No {REPO_DIR}/ directory found in {workspace_root}",
            style="dim",
        )
        console.print(
            "\nRun [bold]minigit init[/bold] to initialize a repository",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)
    except MiniGitError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_DATA_ERROR)


def _report(result: Result) -> int:
    """Print a result line and return its exit code."""
    message = escape(result.message)
    if result.ok:
        console.print(f"[green]{message}[/green]")
    elif result.status in (Status.ALREADY_STAGED, Status.NOTHING_TO_COMMIT):
        console.print(f"[yellow]{message}[/yellow]")
    else:
        console.print(f"[bold red]Error:[/bold red] {message}", style="red")
    return EXIT_CODES[result.status]


def _format_timestamp(timestamp: int) -> str:
    try:
        dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return str(timestamp)
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


@app.callback()
def main_callback(
    ctx: typer.Context,
    repo: Optional[Path] = typer.Option(
        None,
        "--repo",
        "-C",
        envvar=ENV_REPO_DIR,
        help="Run as if started in this directory",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Show debug logging",
    ),
) -> None:
    """A minimal local version-control engine."""
    _configure_logging(verbose)
    ctx.obj = {"repo": repo, "verbose": verbose}


@app.command()
def version() -> None:
    """Show MiniGit version."""
    from minigit import __version__
    typer.echo(f"MiniGit version {__version__}")


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(
        False,
        "--force",
        help="Overwrite existing .minigit/ directory (dangerous!)",
    ),
    hash_algorithm: Optional[str] = typer.Option(
        None,
        "--hash-algorithm",
        help="Object hash: sha256 (default) or checksum",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Suppress output except errors",
    ),
) -> None:
    """Initialize a MiniGit repository in the current directory."""
    workspace_root = _workspace(ctx)

    try:
        repository = Repository.init(workspace_root, hash_algorithm=hash_algorithm, force=force)
    except RepositoryExistsError:
        console.print(
            f"[bold red]Error:[/bold red] MiniGit repository already exists in {workspace_root}",
            style="red",
        )
        console.print(
            "\nUse [bold]--force[/bold] to reinitialize (will delete existing data!)",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_USER_ERROR)
    except PersistenceError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", style="red")
        raise typer.Exit(EXIT_SYSTEM_ERROR)

    if not quiet:
        success_message = f"""[bold green]✓[/bold green] Initialized MiniGit repository

[dim]Repository root:[/dim] {escape(str(repository.workspace_root))}
[dim]Storage location:[/dim] {escape(str(repository.repo_dir))}
[dim]Hash algorithm:[/dim] {repository.hasher.algorithm}

[bold]Next steps:[/bold]
  1. Stage files: [cyan]minigit add <file>[/cyan]
  2. Commit them: [cyan]minigit commit -m "Initial commit"[/cyan]
  3. Review history: [cyan]minigit log[/cyan]
"""
        console.print(Panel(success_message, border_style="green", title="MiniGit Initialized"))


@app.command()
def add(
    ctx: typer.Context,
    paths: List[str] = typer.Argument(..., help="Files to stage"),
) -> None:
    """Add files to the staging area."""
    repository = _open_repository(ctx)

    exit_code = EXIT_SUCCESS
    for path in paths:
        result = repository.add(_workspace(ctx) / path)
        code = _report(result)
        if result.ok:
            console.print(f"  [dim]blob {result.blob_hash}[/dim]")
        exit_code = max(exit_code, code)

    if exit_code != EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@app.command()
def unstage(
    ctx: typer.Context,
    paths: List[str] = typer.Argument(..., help="Files to remove from the staging area"),
) -> None:
    """Remove files from the staging area (blobs are kept)."""
    repository = _open_repository(ctx)

    exit_code = EXIT_SUCCESS
    for path in paths:
        exit_code = max(exit_code, _report(repository.unstage(_workspace(ctx) / path)))

    if exit_code != EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@app.command()
def commit(
    ctx: typer.Context,
    message: Optional[str] = typer.Option(
        None,
        "--message",
        "-m",
        help="Commit message (required)",
    ),
) -> None:
    """Commit staged files as a snapshot."""
    if not message:
        console.print(
            "[bold red]Error:[/bold red] Commit message is required",
            style="red",
        )
        console.print(
            "  Use [bold]-m \"your message\"[/bold] to provide a commit message",
            style="yellow",
        )
        raise typer.Exit(EXIT_USER_ERROR)

    repository = _open_repository(ctx)
    result = repository.commit(message)
    exit_code = _report(result)

    if result.status is Status.NOTHING_TO_COMMIT:
        console.print(
            "  Use [bold]minigit add <files>[/bold] to stage files",
            style="dim",
        )
    elif result.ok:
        for path in result.commit.files:
            console.print(f"  [green]+[/green] {escape(path)}")

    if exit_code != EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@app.command()
def log(
    ctx: typer.Context,
    max_count: Optional[int] = typer.Option(
        None,
        "--max-count",
        "-n",
        help="Limit number of commits to show",
    ),
    oneline: bool = typer.Option(
        False,
        "--oneline",
        help="Show each commit on a single line",
    ),
) -> None:
    """Show commit history."""
    repository = _open_repository(ctx)
    result = repository.log(max_count=max_count)

    if result.ok and not result.commits:
        console.print("[dim]No commits yet[/dim]")
        return

    for i, entry in enumerate(result.commits):
        first_line = entry.message.split("\n")[0]
        if oneline:
            console.print(f"[yellow]{entry.hash[:12]}[/yellow] {escape(first_line)}")
            continue

        console.print(f"[bold yellow]commit {entry.hash}[/bold yellow]")
        if entry.parent_hash:
            console.print(f"[dim]Parent: {entry.parent_hash}[/dim]")
        else:
            console.print("[dim]Parent: (root commit)[/dim]")
        console.print(f"[bold]Date:[/bold]   {_format_timestamp(entry.timestamp)}")
        console.print()
        for line in entry.message.split("\n"):
            console.print(f"    {escape(line)}")
        console.print()
        console.print("[bold]Files:[/bold]")
        for path in entry.files:
            console.print(f"  {escape(path)}")

        if i < len(result.commits) - 1:
            console.print()

    if result.status is Status.HISTORY_TRUNCATED:
        console.print()
        console.print(
            f"[bold red]Error:[/bold red] history truncated, could not read commit "
            f"{result.truncated_at}",
            style="red",
        )
        raise typer.Exit(EXIT_CODES[result.status])


@app.command()
def status(ctx: typer.Context) -> None:
    """Show HEAD and the staging area."""
    repository = _open_repository(ctx)
    report = repository.status()

    if report.head:
        console.print(f"[bold]HEAD:[/bold] {report.head}")
    else:
        console.print("[bold]HEAD:[/bold] [dim](no commits yet)[/dim]")
    console.print(f"[dim]Hash algorithm: {report.hash_algorithm}[/dim]\n")

    if report.staged:
        console.print("[bold green]Changes to be committed:[/bold green]")
        for path in report.staged:
            console.print(f"  [green]+[/green] {escape(path)}")
        console.print(f"\n[bold green]>[/bold green] {len(report.staged)} file(s) staged for commit")
    else:
        console.print("[yellow]No files staged for commit[/yellow]")
        console.print("  Use [bold]minigit add <file>[/bold] to stage files")


@app.command()
def show(
    ctx: typer.Context,
    commit_hash: str = typer.Argument(..., help="Commit hash"),
) -> None:
    """Show a commit record."""
    repository = _open_repository(ctx)
    result = repository.show(commit_hash)
    if not result.ok:
        raise typer.Exit(_report(result))

    entry = result.commit
    console.print(f"[bold yellow]commit {entry.hash}[/bold yellow]")
    console.print(f"Message: {escape(entry.message)}")
    console.print(f"Timestamp: {entry.timestamp}")
    console.print(f"Parent: {entry.parent_hash}")
    console.print("Files:")
    for path in entry.files:
        console.print(escape(path))


@app.command("cat-blob")
def cat_blob(
    ctx: typer.Context,
    blob_hash: str = typer.Argument(..., help="Blob hash"),
) -> None:
    """Write the content of a stored blob to stdout."""
    repository = _open_repository(ctx)
    result = repository.cat_blob(blob_hash)
    if not result.ok:
        raise typer.Exit(_report(result))

    sys.stdout.buffer.write(result.content)
    sys.stdout.flush()


@app.command()
def branch(ctx: typer.Context, name: str = typer.Argument(..., help="Branch name")) -> None:
    """Create a branch (not implemented)."""
    raise typer.Exit(_report(_open_repository(ctx).branch(name)))


@app.command()
def checkout(ctx: typer.Context, name: str = typer.Argument(..., help="Branch name")) -> None:
    """Switch branches (not implemented)."""
    raise typer.Exit(_report(_open_repository(ctx).checkout(name)))


@app.command()
def merge(ctx: typer.Context, name: str = typer.Argument(..., help="Branch name")) -> None:
    """Merge a branch (not implemented)."""
    raise typer.Exit(_report(_open_repository(ctx).merge(name)))


@app.command()
def diff(
    ctx: typer.Context,
    rev1: str = typer.Argument(..., help="First commit"),
    rev2: str = typer.Argument(..., help="Second commit"),
) -> None:
    """Compare two commits (not implemented)."""
    raise typer.Exit(_report(_open_repository(ctx).diff(rev1, rev2)))


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
