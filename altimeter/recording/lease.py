"""
Background execution lease.

When the host moves the app out of the foreground it grants a limited
amount of extra run time. The recorder asks for that time through a
LeaseProvider and polls the lease before each point; platform-specific
background task APIs are adapted to this interface at the edge.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class LeaseHandle(ABC):
    """A granted, cancellable extension of run time."""

    @abstractmethod
    def remaining(self) -> Optional[float]:
        """
        Seconds left, or None when the host imposes no limit
        (execution is back in the foreground).
        """

    @abstractmethod
    def release(self) -> None:
        """Give the remaining time back. Safe to call more than once."""

    @property
    @abstractmethod
    def released(self) -> bool:
        """True after release()."""


class LeaseProvider(ABC):
    """Source of background leases."""

    @abstractmethod
    def acquire_lease(self, budget_seconds: float) -> Optional[LeaseHandle]:
        """Request extra run time. None when the host refuses."""


class TimedLease(LeaseHandle):
    """Lease that simply counts down from its budget."""

    def __init__(self, budget_seconds: float, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._deadline = clock() + budget_seconds
        self._released = False
        self._lock = threading.Lock()

    def remaining(self) -> Optional[float]:
        if self._released:
            return 0.0
        return max(0.0, self._deadline - self._clock())

    def release(self) -> None:
        with self._lock:
            self._released = True

    @property
    def released(self) -> bool:
        return self._released


class TimedLeaseProvider(LeaseProvider):
    """Host-independent provider: grants whatever budget is asked for."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock

    def acquire_lease(self, budget_seconds: float) -> Optional[LeaseHandle]:
        logger.debug(f'Granting background lease of {budget_seconds:.0f}s')
        return TimedLease(budget_seconds, clock=self._clock)
