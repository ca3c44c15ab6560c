"""
Per-(user, quiz) locks for the attempt-count check and the attempt insert.

Within one process the lock makes "count, grade, insert" behave as if
serialized for each (user, quiz) pair. Across processes the unique
``(quiz_id, user_id, attempt_number)`` constraint rejects the second writer.
"""
import threading
import weakref
from contextlib import contextmanager


class _KeyLock:
    # threading.Lock itself cannot be weakly referenced
    __slots__ = ('lock', '__weakref__')

    def __init__(self):
        self.lock = threading.Lock()


class AttemptLocks:
    """Registry of locks keyed by (user_id, quiz_id); unused locks are garbage collected."""

    def __init__(self):
        self._locks = weakref.WeakValueDictionary()
        self._guard = threading.Lock()

    def _lock_for(self, key) -> _KeyLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._locks[key] = entry
            return entry

    @contextmanager
    def hold(self, user_id: int, quiz_id: int):
        # The local reference keeps the entry alive while the lock is held
        entry = self._lock_for((user_id, quiz_id))
        with entry.lock:
            yield

    def __len__(self) -> int:
        return len(self._locks)


# Shared by every request handled by this process
attempt_locks = AttemptLocks()
