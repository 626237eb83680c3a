from __future__ import annotations

import logging
from typing import Optional

import psutil

from .provider import BYTES_PER_MB, PID_MAX, MetricsProvider
from .types import Sample

log = logging.getLogger(__name__)


class PsutilProvider(MetricsProvider):
    """
    Portable provider using psutil (Windows, BSDs, and as a fallback elsewhere).

    CPU time is cpu_times().user + cpu_times().system; memory is memory_info().rss.
    """

    name = "psutil"

    def is_available(self) -> bool:
        return True

    def read(self, pid: int) -> Optional[Sample]:
        if not 0 < pid <= PID_MAX:
            return None
        try:
            proc = psutil.Process(pid)
            with proc.oneshot():
                times = proc.cpu_times()
                rss = proc.memory_info().rss
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess) as e:
            log.debug(f"psutil: cannot read pid {pid}: {e}")
            return None

        return Sample(
            cpu_time_seconds=float(times.user + times.system),
            memory_mb=rss / BYTES_PER_MB,
        )
