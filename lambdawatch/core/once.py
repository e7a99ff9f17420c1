"""Compute-once cell guarding backend initialization."""

import threading
from collections.abc import Callable


class InitializationGuard:
    """Runs an initializer until it first succeeds, then never again.

    The flag starts unset and is set exactly once, on the first
    initializer call that returns True. A failed attempt leaves it unset
    so a later call may retry. Concurrent callers serialize on a lock;
    once set, callers take a lock-free fast path.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._initialized = False
        self.attempts = 0

    @property
    def is_set(self) -> bool:
        return self._initialized

    def run(self, initializer: Callable[[], bool]) -> bool:
        """Run initializer unless already initialized.

        Args:
            initializer: Zero-argument callable returning True on success.
                Exceptions propagate to the caller and leave the flag unset.

        Returns:
            True if initialized (now or previously), False otherwise.
        """
        if self._initialized:
            return True

        with self._lock:
            if self._initialized:
                return True
            self.attempts += 1
            if initializer():
                self._initialized = True
            return self._initialized
