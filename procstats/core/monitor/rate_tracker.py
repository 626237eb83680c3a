"""
Previous-sample cache turning two cumulative CPU readings into a percentage.

    cpu_percent = (cpu_delta_seconds / wall_delta_seconds) * 100

The first observation of a pid (or the first after eviction/reset) has no
rate and reports 0.0. Results are never clamped: a negative value means the
OS counter went backwards and is surfaced as-is, with a warning and the
on_anomaly callback as a separate diagnostic channel.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from typing import Callable, Dict, Iterable, Optional

from .types import Sample, TrackerEntry

log = logging.getLogger(__name__)

AnomalyCallback = Callable[[int, float, float], None]


def _now_ms() -> int:
    return int(time.time() * 1000)


class RateTracker:
    """
    Per-pid store of (last cpu seconds, last observed ms).

    observe/evict/reset share one lock, so a tracker can be used from
    several host threads.
    """

    def __init__(self, clock_ms: Optional[Callable[[], int]] = None) -> None:
        self._clock_ms = clock_ms or _now_ms
        self._entries: Dict[int, TrackerEntry] = {}
        self._lock = threading.Lock()
        self._anomaly_cb: Optional[AnomalyCallback] = None

    def on_anomaly(self, cb: Optional[AnomalyCallback]) -> None:
        """Register a callback receiving (pid, cpu_delta_s, time_delta_s) for negative CPU deltas."""
        self._anomaly_cb = cb

    def observe(self, pid: int, sample: Sample) -> Sample:
        """Return sample with cpu_percent filled in and store it as the new baseline."""
        anomaly: Optional[tuple[float, float]] = None

        with self._lock:
            now_ms = self._clock_ms()
            cpu_percent = 0.0
            previous = self._entries.get(pid)
            if previous is not None:
                time_delta = (now_ms - previous.last_observed_at_ms) / 1000.0
                cpu_delta = sample.cpu_time_seconds - previous.last_cpu_time_seconds
                if time_delta > 0:
                    cpu_percent = (cpu_delta / time_delta) * 100.0
                    if cpu_delta < 0:
                        anomaly = (cpu_delta, time_delta)

            # Overwritten even when no rate was computed
            self._entries[pid] = TrackerEntry(
                last_cpu_time_seconds=sample.cpu_time_seconds,
                last_observed_at_ms=now_ms,
            )

        if anomaly is not None:
            cpu_delta, time_delta = anomaly
            log.warning(
                f"CPU time went backwards for pid {pid}: {cpu_delta:.3f}s over {time_delta:.3f}s "
                f"({cpu_percent:.1f}%)"
            )
            if self._anomaly_cb:
                self._anomaly_cb(pid, cpu_delta, time_delta)

        return dataclasses.replace(sample, cpu_percent=cpu_percent)

    def evict(self, active_pids: Iterable[int]) -> int:
        """Drop entries for pids not in active_pids. Returns how many were removed."""
        active = set(active_pids)
        with self._lock:
            stale = [pid for pid in self._entries if pid not in active]
            for pid in stale:
                del self._entries[pid]
        if stale:
            log.debug(f"Evicted {len(stale)} stale tracker entries: {stale}")
        return len(stale)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def entry(self, pid: int) -> Optional[TrackerEntry]:
        with self._lock:
            entry = self._entries.get(pid)
            return dataclasses.replace(entry) if entry is not None else None

    def __contains__(self, pid: object) -> bool:
        with self._lock:
            return pid in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
