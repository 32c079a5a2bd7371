"""Working tree status and dirty-state models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List


class DirtyStateOption(Enum):
    """How to handle uncommitted changes before a worktree changes hands."""
    STASH = "stash"
    COMMIT = "commit"
    AMEND = "amend"
    CLEAN = "clean"
    CANCEL = "cancel"


@dataclass
class GitStatus:
    """Uncommitted changes of a worktree, grouped by kind. Paths are relative."""
    modified: List[str] = field(default_factory=list)
    staged: List[str] = field(default_factory=list)
    not_added: List[str] = field(default_factory=list)  # Untracked
    deleted: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.modified or self.staged or self.not_added or self.deleted)

    @property
    def has_staged(self) -> bool:
        return bool(self.staged)

    @property
    def is_dirty(self) -> bool:
        return self.has_changes or bool(self.created)

    def counts(self) -> Dict[str, int]:
        """Number of files per bucket."""
        return {
            "staged": len(self.staged),
            "modified": len(self.modified),
            "not_added": len(self.not_added),
            "deleted": len(self.deleted),
            "created": len(self.created),
        }
