"""Configuration handling for git-worktree-pool"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class RepositoryConfig:
    """Per-repository configuration, passed into every pool operation.

    The pool never loads or saves this itself; callers own persistence.
    """

    # Explicit default branch; None means detect it
    main_branch: Optional[str] = None
    # Shell command run inside each newly created worktree
    init_command: Optional[str] = None
    # Parent directory for new worktrees; None means next to the repository
    worktree_directory: Optional[str] = None

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_main_branch()
        self._validate_init_command()
        self._validate_worktree_directory()

    def _validate_main_branch(self):
        """Normalize main_branch: blank means unset."""
        if self.main_branch is not None:
            if not isinstance(self.main_branch, str):
                raise ValueError(f"main_branch must be a string, got {type(self.main_branch).__name__}")
            self.main_branch = self.main_branch.strip() or None

    def _validate_init_command(self):
        """Normalize init_command: blank means unset."""
        if self.init_command is not None:
            if not isinstance(self.init_command, str):
                raise ValueError(f"init_command must be a string, got {type(self.init_command).__name__}")
            self.init_command = self.init_command.strip() or None

    def _validate_worktree_directory(self):
        """Expand ~ in worktree_directory; blank means unset."""
        if self.worktree_directory is not None:
            if not isinstance(self.worktree_directory, (str, os.PathLike)):
                raise ValueError("worktree_directory must be a path")
            directory = str(self.worktree_directory).strip()
            self.worktree_directory = os.path.expanduser(directory) if directory else None

    def base_directory(self, repo_path: str) -> str:
        """Directory in which new worktrees for repo_path are created."""
        if self.worktree_directory:
            return os.path.abspath(self.worktree_directory)
        return os.path.dirname(os.path.abspath(repo_path))

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "main_branch": self.main_branch,
            "init_command": self.init_command,
            "worktree_directory": self.worktree_directory,
        }

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: Optional[dict]) -> "RepositoryConfig":
        """Create RepositoryConfig from dictionary.

        Accepts both snake_case keys and the camelCase keys used by the
        app-data file (mainBranch, initCommand, worktreeDirectory).
        """
        if not config_dict:
            return cls()

        aliases = {
            "mainBranch": "main_branch",
            "initCommand": "init_command",
            "worktreeDirectory": "worktree_directory",
        }
        known_fields = {"main_branch", "init_command", "worktree_directory"}

        filtered = {}
        for key, value in config_dict.items():
            key = aliases.get(key, key)
            if key in known_fields:
                filtered[key] = value
        return cls(**filtered)
