"""Per-worktree advisory locking for git-worktree-pool."""

import hashlib
import os
from contextlib import contextmanager
from pathlib import Path
from threading import Lock
from weakref import WeakValueDictionary

from git_worktree_pool.utils.logging import get_logger

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = get_logger(__name__)

# In-process locks, shared by every WorktreeLock so threads serialize too.
# An entry lives only while some caller holds a reference to its lock.
_process_locks: "WeakValueDictionary[str, Lock]" = WeakValueDictionary()
_registry_lock = Lock()


def _process_lock(key: str) -> Lock:
    with _registry_lock:
        lock = _process_locks.get(key)
        if lock is None:
            lock = Lock()
            _process_locks[key] = lock
        return lock


class WorktreeLock:
    """Serializes mutating operations on one worktree path.

    Combines a thread lock with an flock on a file under lock_dir, so
    concurrent threads and concurrent processes are both excluded.
    Not reentrant.
    """

    def __init__(self, lock_dir: Path):
        self.lock_dir = Path(lock_dir)

    def lock_file_for(self, worktree_path: str) -> Path:
        key = os.path.realpath(worktree_path)
        digest = hashlib.md5(key.encode()).hexdigest()
        return self.lock_dir / f"{digest}.lock"

    @contextmanager
    def acquire(self, worktree_path: str):
        """Hold the lock for worktree_path for the duration of the block."""
        key = os.path.realpath(worktree_path)
        thread_lock = _process_lock(key)

        with thread_lock:
            self.lock_dir.mkdir(parents=True, exist_ok=True)
            lock_file = self.lock_file_for(worktree_path)
            with open(lock_file, "a") as handle:
                if HAS_FCNTL:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                    logger.debug(f"Acquired lock for {key}")
                else:
                    logger.debug("File locking not available on this platform")
                try:
                    yield lock_file
                finally:
                    if HAS_FCNTL:
                        try:
                            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                            logger.debug(f"Released lock for {key}")
                        except OSError as e:
                            logger.debug(f"Error releasing lock: {e}")
