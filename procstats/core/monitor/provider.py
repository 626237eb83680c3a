from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .types import Sample, ZERO_SAMPLE

log = logging.getLogger(__name__)

BYTES_PER_MB = 1024.0 * 1024.0
KB_PER_MB = 1024.0
# pid_t is a signed 32-bit int on every supported OS
PID_MAX = 2**31 - 1


class MetricsProvider(ABC):
    """Interface for reading cumulative CPU time and resident memory of a process."""

    name: str = "abstract"

    @abstractmethod
    def read(self, pid: int) -> Optional[Sample]:
        """
        Read one sample for a positive pid.

        Returns None when the process does not exist, cannot be accessed,
        or the platform cannot be queried. Must not raise for those cases.
        The returned sample always has cpu_percent == 0.0.
        """
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider can query the OS on the current platform."""
        ...

    def measure(self, pid: int) -> Sample:
        """Read a sample, degrading invalid or unreadable pids to a zero sample."""
        if pid <= 0:
            return ZERO_SAMPLE
        sample = self.read(pid)
        if sample is None:
            return ZERO_SAMPLE
        return sample


class NullProvider(MetricsProvider):
    """Provider for platforms without process accounting support."""

    name = "null"

    def __init__(self) -> None:
        self._warned = False

    def read(self, pid: int) -> Optional[Sample]:
        if not self._warned:
            log.warning("Process monitoring not supported on this platform")
            self._warned = True
        return None

    def is_available(self) -> bool:
        return False
