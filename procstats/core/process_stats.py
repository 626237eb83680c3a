"""
Host-facing facade: one provider, one rate tracker, one report builder.

Each ProcessStats instance owns its own CPU history; create one per
monitoring domain and call clear_history() to invalidate it.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional

from procstats.core.monitor.factory import select_provider
from procstats.core.monitor.provider import MetricsProvider
from procstats.core.monitor.rate_tracker import RateTracker
from procstats.core.monitor.report_builder import ReportBuilder
from procstats.core.monitor.types import Sample
from procstats.shared.config import AppConfig

log = logging.getLogger(__name__)


class ProcessStats:
    def __init__(self, provider: MetricsProvider, tracker: Optional[RateTracker] = None) -> None:
        self.provider = provider
        self.tracker = tracker or RateTracker()
        self._builder = ReportBuilder(self.provider, self.tracker)

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProcessStats":
        return cls(select_provider(config.provider))

    def get_process_stats(self, pid: int) -> Sample:
        """CPU percent, cumulative CPU seconds and resident MB for one pid; zeros if unavailable."""
        return self._builder.sample(pid)

    def get_module_stats(self, names_to_pids: Mapping[str, int]) -> str:
        """JSON array of per-module stats; pids <= 0 are skipped."""
        return self._builder.build(names_to_pids)

    def clear_history(self) -> None:
        """Forget all previous CPU samples. Safe to call at any time."""
        self.tracker.reset()
        log.debug("CPU time history cleared")
