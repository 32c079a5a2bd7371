"""Working tree status formatting utilities."""

from typing import List

from git_worktree_pool.models.status import GitStatus


def format_status(status: GitStatus) -> str:
    """
    Summarize uncommitted changes as Rich markup.

    Args:
        status: Status of a worktree

    Returns:
        Comma-separated counts, e.g. "[green]1 staged[/green], [yellow]2 modified[/yellow]",
        or "[green]clean[/green]" when there is nothing to report
    """
    parts = []
    if status.staged:
        parts.append(f"[green]{len(status.staged)} staged[/green]")
    if status.modified:
        parts.append(f"[yellow]{len(status.modified)} modified[/yellow]")
    if status.not_added:
        parts.append(f"[red]{len(status.not_added)} untracked[/red]")
    if status.deleted:
        parts.append(f"[red]{len(status.deleted)} deleted[/red]")
    if status.created:
        parts.append(f"[green]{len(status.created)} added[/green]")
    return ", ".join(parts) if parts else "[green]clean[/green]"


def format_status_details(status: GitStatus) -> List[str]:
    """
    List the affected files per bucket, one line per non-empty bucket.

    Args:
        status: Status of a worktree

    Returns:
        Lines such as "Staged: a.py, b.py"
    """
    buckets = [
        ("Staged", status.staged),
        ("Modified", status.modified),
        ("Untracked", status.not_added),
        ("Deleted", status.deleted),
    ]
    return [f"{label}: {', '.join(files)}" for label, files in buckets if files]
