"""
Per-module resource report.

Output is a compact JSON array, one object per valid (name, pid) pair in the
mapping's iteration order:

  [{"name":"plugin_a","cpu_percent":12.5,"cpu_time_seconds":3.2,"memory_mb":45.0}]
"""

from __future__ import annotations

import logging
from typing import List, Mapping

from pydantic import BaseModel, ConfigDict, TypeAdapter

from .provider import MetricsProvider
from .rate_tracker import RateTracker
from .types import Sample, ZERO_SAMPLE

log = logging.getLogger(__name__)


class ModuleReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    cpu_percent: float
    cpu_time_seconds: float
    memory_mb: float

    @classmethod
    def from_sample(cls, name: str, sample: Sample) -> "ModuleReport":
        return cls(
            name=name,
            cpu_percent=sample.cpu_percent,
            cpu_time_seconds=sample.cpu_time_seconds,
            memory_mb=sample.memory_mb,
        )


_REPORT_ADAPTER = TypeAdapter(List[ModuleReport])


def dump_report(reports: List[ModuleReport]) -> str:
    return _REPORT_ADAPTER.dump_json(reports).decode("utf-8")


def load_report(json_text: str) -> List[ModuleReport]:
    """Validate a serialized report back into ModuleReport models."""
    return _REPORT_ADAPTER.validate_json(json_text)


class ReportBuilder:
    """Samples every named pid once and assembles the module report."""

    def __init__(self, provider: MetricsProvider, tracker: RateTracker) -> None:
        self._provider = provider
        self._tracker = tracker

    def sample(self, pid: int) -> Sample:
        """
        Single-pid query with rate applied.

        Invalid or unreadable pids give a zero sample and leave the tracker
        untouched, so a vanished process never becomes a baseline.
        """
        if pid <= 0:
            return ZERO_SAMPLE
        reading = self._provider.read(pid)
        if reading is None:
            return ZERO_SAMPLE
        return self._tracker.observe(pid, reading)

    def collect(self, names_to_pids: Mapping[str, int]) -> List[ModuleReport]:
        # Purge cached history for pids the caller stopped tracking
        self._tracker.evict(names_to_pids.values())

        reports: List[ModuleReport] = []
        for name, pid in names_to_pids.items():
            if pid <= 0:
                log.warning(f"Invalid PID for module {name!r}: {pid}")
                continue

            stats = self.sample(pid)
            reports.append(ModuleReport.from_sample(name, stats))
            log.debug(
                f"Module stats for {name} - CPU: {stats.cpu_percent:.1f}% "
                f"({stats.cpu_time_seconds:.2f}s), Memory: {stats.memory_mb:.1f}MB"
            )
        return reports

    def build(self, names_to_pids: Mapping[str, int]) -> str:
        """Return the report as compact JSON; an empty mapping gives '[]'."""
        reports = self.collect(names_to_pids)
        log.debug(f"Returning module stats JSON for {len(reports)} modules")
        return dump_report(reports)
