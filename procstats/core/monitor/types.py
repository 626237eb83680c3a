from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Sample:
    """Point-in-time resource reading for one process."""
    cpu_time_seconds: float = 0.0  # cumulative user + system
    memory_mb: float = 0.0  # resident, binary megabytes
    cpu_percent: float = 0.0  # filled in by RateTracker


ZERO_SAMPLE = Sample()


@dataclass
class TrackerEntry:
    """Previous observation kept per pid for rate computation."""
    last_cpu_time_seconds: float
    last_observed_at_ms: int
