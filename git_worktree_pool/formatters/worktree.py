"""Worktree listing formatting utilities."""

from rich.markup import escape

from git_worktree_pool.constants import SYMBOL_AVAILABLE, SYMBOL_BASE, SYMBOL_CLAIMED
from git_worktree_pool.models.worktree import Worktree


def format_worktree_line(worktree: Worktree, status_text: str) -> str:
    """
    Format one worktree for the pool listing.

    Args:
        worktree: The worktree to show
        status_text: Pre-formatted status summary (Rich markup)

    Returns:
        "<symbol> <name> (<branch>) - <status>" as Rich markup
    """
    if worktree.is_base:
        symbol, name = f"[cyan]{SYMBOL_BASE}[/cyan]", "base"
    elif worktree.is_available:
        symbol, name = f"[yellow]{SYMBOL_AVAILABLE}[/yellow]", worktree.worktree_name
    else:
        symbol, name = f"[green]{SYMBOL_CLAIMED}[/green]", worktree.worktree_name

    branch = escape(worktree.local_branch)
    return f"  {symbol} [bold]{escape(name)}[/bold] [dim]({branch})[/dim] - {status_text}"


def format_pool_summary(claimed: int, available: int) -> str:
    """Totals line shown below the listing."""
    total = claimed + available
    return f"[dim]Total: {total} worktrees ({claimed} claimed, {available} available)[/dim]"
