from __future__ import annotations

import json
import os
import time

import pytest

from procstats.core.monitor.provider import NullProvider
from procstats.core.monitor.psutil_provider import PsutilProvider
from procstats.core.process_stats import ProcessStats
from procstats.shared.config import AppConfig


@pytest.fixture
def stats():
    stats = ProcessStats.from_config(AppConfig())
    stats.clear_history()
    yield stats
    stats.clear_history()


def _burn_cpu(seconds: float = 0.05) -> None:
    deadline = time.perf_counter() + seconds
    total = 0.0
    while time.perf_counter() < deadline:
        total += 0.1


@pytest.mark.parametrize("pid", [0, -1])
def test_invalid_pid_returns_zeros(stats, pid):
    sample = stats.get_process_stats(pid)
    assert (sample.cpu_percent, sample.cpu_time_seconds, sample.memory_mb) == (0.0, 0.0, 0.0)


def test_first_call_for_own_pid(stats):
    sample = stats.get_process_stats(os.getpid())
    assert sample.cpu_percent == 0.0
    assert sample.memory_mb > 0.0
    assert sample.cpu_time_seconds >= 0.0


def test_second_call_after_work(stats):
    stats.get_process_stats(os.getpid())
    _burn_cpu()
    time.sleep(0.01)
    sample = stats.get_process_stats(os.getpid())
    assert sample.cpu_percent >= 0.0


def test_clear_history_makes_next_call_first(stats):
    stats.get_process_stats(os.getpid())
    _burn_cpu()
    stats.clear_history()
    stats.clear_history()
    assert stats.get_process_stats(os.getpid()).cpu_percent == 0.0


def test_clear_history_before_any_measurement():
    stats = ProcessStats(PsutilProvider())
    stats.clear_history()
    assert len(stats.tracker) == 0


def test_instances_keep_separate_history():
    first, second = ProcessStats(PsutilProvider()), ProcessStats(PsutilProvider())
    first.get_process_stats(os.getpid())
    assert os.getpid() in first.tracker
    assert os.getpid() not in second.tracker


def test_module_stats_empty(stats):
    assert stats.get_module_stats({}) == "[]"


def test_unsupported_platform_gives_zero_rows():
    stats = ProcessStats(NullProvider())
    data = json.loads(stats.get_module_stats({"me": os.getpid()}))
    assert data == [{"name": "me", "cpu_percent": 0.0, "cpu_time_seconds": 0.0, "memory_mb": 0.0}]


def test_from_config_honours_provider_choice():
    assert isinstance(ProcessStats.from_config(AppConfig(provider="null")).provider, NullProvider)
