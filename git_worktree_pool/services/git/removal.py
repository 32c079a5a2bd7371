"""Worktree removal with recovery fallbacks.

Removal can fail for reasons unrelated to the caller's intent: locked
files, a directory that is already gone, a stale registration. The chain
tries each strategy in order until one leaves the slot removed.
"""

import os
import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional, Protocol

from git_worktree_pool.utils.logging import get_logger

logger = get_logger(__name__)


class WorktreeRemover(Protocol):
    """The git operations the removal chain needs."""

    def remove_worktree(self, path: str, force: bool = False): ...

    def prune_worktrees(self): ...


@dataclass
class RemovalStrategy:
    """One step of the chain. run() raises to hand over to the next step."""

    name: str
    run: Callable[[str], None]


def delete_directory(path: str):
    """Recursively delete a directory tree."""
    shutil.rmtree(path)


class RemovalRecoveryChain:
    """Ordered removal strategies, evaluated until one succeeds."""

    def __init__(
        self,
        remover: WorktreeRemover,
        delete_dir: Callable[[str], None] = delete_directory,
        strategies: Optional[List[RemovalStrategy]] = None,
    ):
        self.remover = remover
        self.delete_dir = delete_dir
        self.strategies = strategies if strategies is not None else self.default_strategies()

    def default_strategies(self) -> List[RemovalStrategy]:
        return [
            RemovalStrategy("force-remove", self._force_remove),
            RemovalStrategy("manual-delete", self._delete_then_remove),
            RemovalStrategy("prune", self._prune_and_delete),
        ]

    def run(self, path: str) -> str:
        """Remove the worktree at path.

        Returns:
            Name of the strategy that succeeded

        Raises:
            Exception: the last strategy's error if every strategy failed
                (the default chain's final step never fails)
        """
        last_error: Optional[Exception] = None
        for strategy in self.strategies:
            try:
                strategy.run(path)
            except Exception as e:
                logger.debug(f"Removal strategy '{strategy.name}' failed for {path}: {e}")
                last_error = e
                continue
            logger.info(f"Removed worktree {path} ({strategy.name})")
            return strategy.name

        if last_error is None:
            raise ValueError("No removal strategies configured")
        raise last_error

    def _force_remove(self, path: str):
        self.remover.remove_worktree(path, force=True)

    def _delete_then_remove(self, path: str):
        if not os.path.exists(path):
            raise FileNotFoundError(path)
        self.delete_dir(path)
        # Only the registration is left to clean up
        self.remover.remove_worktree(path)

    def _prune_and_delete(self, path: str):
        try:
            self.remover.prune_worktrees()
        except Exception as e:
            logger.debug(f"Prune failed: {e}")

        if os.path.exists(path):
            try:
                self.delete_dir(path)
            except OSError as e:
                logger.debug(f"Final directory cleanup of {path} failed: {e}")
