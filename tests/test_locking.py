"""Tests for per-worktree locking"""
import gc
import os
import threading
import time

from git_worktree_pool.services import locking
from git_worktree_pool.services.locking import WorktreeLock


class TestWorktreeLock:
    """Test lock file placement and mutual exclusion."""

    def test_lock_file_is_stable_per_path(self, temp_dir):
        lock = WorktreeLock(temp_dir / "locks")
        first = lock.lock_file_for(str(temp_dir / "a"))
        assert first == lock.lock_file_for(str(temp_dir / "a" / ".." / "a"))
        assert first != lock.lock_file_for(str(temp_dir / "b"))
        assert first.parent == temp_dir / "locks"

    def test_acquire_creates_lock_file(self, temp_dir):
        lock = WorktreeLock(temp_dir / "locks")
        with lock.acquire(str(temp_dir / "a")) as lock_file:
            assert lock_file.exists()

    def test_serializes_same_path(self, temp_dir):
        lock = WorktreeLock(temp_dir / "locks")
        path = str(temp_dir / "slot")
        events = []

        def worker(name):
            with lock.acquire(path):
                events.append(f"{name}-start")
                time.sleep(0.05)
                events.append(f"{name}-end")

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("a", "b")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        # No interleaving: each start is directly followed by its own end
        assert events[0].split("-")[0] == events[1].split("-")[0]
        assert events[2].split("-")[0] == events[3].split("-")[0]

    def test_different_paths_do_not_block(self, temp_dir):
        lock = WorktreeLock(temp_dir / "locks")
        with lock.acquire(str(temp_dir / "a")):
            acquired = threading.Event()

            def other():
                with lock.acquire(str(temp_dir / "b")):
                    acquired.set()

            t = threading.Thread(target=other)
            t.start()
            t.join(timeout=5)
            assert acquired.is_set()

    def test_in_process_lock_is_dropped_after_use(self, temp_dir):
        lock = WorktreeLock(temp_dir / "locks")
        key = os.path.realpath(str(temp_dir / "a"))

        with lock.acquire(str(temp_dir / "a")):
            assert key in locking._process_locks

        gc.collect()
        assert key not in locking._process_locks
