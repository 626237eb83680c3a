from __future__ import annotations

import subprocess
import sys
from typing import Dict, List, Optional

import pytest

from procstats.core.monitor.provider import MetricsProvider
from procstats.core.monitor.rate_tracker import RateTracker
from procstats.core.monitor.types import Sample


class FakeClock:
    def __init__(self, start_ms: int = 1_700_000_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class ScriptedProvider(MetricsProvider):
    """Returns preset samples per pid; pids without a script are absent."""

    name = "scripted"

    def __init__(self, samples: Optional[Dict[int, Sample]] = None) -> None:
        self.samples: Dict[int, Sample] = dict(samples or {})
        self.reads: List[int] = []

    def is_available(self) -> bool:
        return True

    def read(self, pid: int) -> Optional[Sample]:
        self.reads.append(pid)
        return self.samples.get(pid)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> RateTracker:
    return RateTracker(clock_ms=clock)


@pytest.fixture
def scripted() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def spawn_sleeper():
    """Start idle child processes; all are terminated at teardown."""
    procs: List[subprocess.Popen] = []

    def _spawn() -> subprocess.Popen:
        proc = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"])
        procs.append(proc)
        return proc

    yield _spawn

    for proc in procs:
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except subprocess.TimeoutExpired:
            proc.kill()
            proc.wait()
