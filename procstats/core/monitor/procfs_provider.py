"""
Linux process metrics read from the /proc filesystem.

Sources:
  /proc/<pid>/stat    fields 14 (utime) and 15 (stime), in clock ticks
  /proc/<pid>/status  VmRSS line, in kB

The command name (field 2) is wrapped in parentheses and may itself contain
spaces or ')', so the remaining fields are split after the LAST ')'.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Union

from .provider import KB_PER_MB, PID_MAX, MetricsProvider
from .types import Sample

log = logging.getLogger(__name__)

# Index of utime/stime among the fields following the command name
# (field 3, "state", is index 0).
_UTIME_INDEX = 11
_STIME_INDEX = 12


def _default_clock_ticks() -> int:
    sysconf = getattr(os, "sysconf", None)
    if sysconf is None:
        return 0
    try:
        return int(sysconf("SC_CLK_TCK"))
    except (ValueError, OSError):
        return 0


def parse_stat_cpu_ticks(stat_line: str) -> Optional[int]:
    """Return utime + stime in clock ticks from a /proc/<pid>/stat line."""
    close = stat_line.rfind(")")
    if close < 0:
        return None
    fields = stat_line[close + 1:].split()
    if len(fields) <= _STIME_INDEX:
        return None
    try:
        return int(fields[_UTIME_INDEX]) + int(fields[_STIME_INDEX])
    except ValueError:
        return None


def parse_status_rss_kb(status_text: str) -> Optional[float]:
    """Return VmRSS in kB from /proc/<pid>/status, None if the line is absent."""
    for line in status_text.splitlines():
        if line.startswith("VmRSS:"):
            parts = line.split()
            if len(parts) < 2:
                return None
            try:
                return float(parts[1])
            except ValueError:
                return None
    return None


class ProcfsProvider(MetricsProvider):
    """Linux provider reading /proc/<pid>/stat and /proc/<pid>/status."""

    name = "procfs"

    def __init__(self, proc_root: Union[str, Path] = "/proc", clock_ticks: Optional[int] = None) -> None:
        self._proc_root = Path(proc_root)
        self._clock_ticks = clock_ticks if clock_ticks is not None else _default_clock_ticks()

    def is_available(self) -> bool:
        return self._clock_ticks > 0 and self._proc_root.is_dir()

    def read(self, pid: int) -> Optional[Sample]:
        if not 0 < pid <= PID_MAX or self._clock_ticks <= 0:
            return None

        pid_dir = self._proc_root / str(pid)
        try:
            stat_line = (pid_dir / "stat").read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            # Process exited or is hidden from us
            log.debug(f"procfs: cannot read stat for pid {pid}: {e}")
            return None

        ticks = parse_stat_cpu_ticks(stat_line)
        if ticks is None:
            log.debug(f"procfs: malformed stat for pid {pid}")
            return None

        memory_mb = 0.0
        try:
            status_text = (pid_dir / "status").read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            log.debug(f"procfs: cannot read status for pid {pid}: {e}")
        else:
            # Zombies and kernel threads have no VmRSS line
            rss_kb = parse_status_rss_kb(status_text)
            if rss_kb is not None:
                memory_mb = rss_kb / KB_PER_MB

        return Sample(
            cpu_time_seconds=ticks / float(self._clock_ticks),
            memory_mb=memory_mb,
        )
