"""Mutual exclusion for mutating status actions."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 3.0
LOCK_BUSY_MESSAGE = "Action in progress. Try again after completion"


class ActionLock:
    """Flag held from a mutating action until its change notification arrives.

    Whichever comes first releases it: an explicit ``release()`` (the
    repository-changed notification) or the timeout timer, so a lost
    notification cannot wedge the session.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        timer_factory: Callable[..., threading.Timer] = threading.Timer,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._timer_factory = timer_factory
        self._guard = threading.Lock()
        self._locked = False
        self._timer: threading.Timer | None = None
        self._generation = 0

    def acquire(self) -> bool:
        """Take the lock; ``False`` when another action still holds it."""
        with self._guard:
            if self._locked:
                return False
            self._locked = True
            self._generation += 1
            timer = self._timer_factory(self.timeout_seconds, self._expire, args=(self._generation,))
            timer.daemon = True
            self._timer = timer
        timer.start()
        return True

    def release(self) -> None:
        with self._guard:
            timer = self._timer
            self._timer = None
            self._locked = False
        if timer is not None:
            timer.cancel()

    def is_locked(self) -> bool:
        with self._guard:
            return self._locked

    def _expire(self, generation: int) -> None:
        with self._guard:
            if not self._locked or generation != self._generation:
                return
            self._locked = False
            self._timer = None
        logger.debug("action lock released after %.1fs timeout", self.timeout_seconds)
