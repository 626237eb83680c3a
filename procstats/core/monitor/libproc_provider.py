"""
macOS process metrics via libproc's proc_pidinfo(PROC_PIDTASKINFO).

Call pattern:
  1. proc_pidinfo(pid, PROC_PIDTASKINFO, 0, &proc_taskinfo, sizeof)
     - returns the number of bytes written; anything other than
       sizeof(proc_taskinfo) means the pid is gone or not accessible
  2. pti_total_user + pti_total_system are Mach absolute time units, not
     microseconds. mach_timebase_info gives numer/denom to convert to ns
     (1/1 on Intel, 125/3 on Apple Silicon).
  3. pti_resident_size is in bytes.
"""

from __future__ import annotations

import ctypes
import ctypes.util
import logging
import sys
from typing import Optional

from .provider import BYTES_PER_MB, PID_MAX, MetricsProvider
from .types import Sample

log = logging.getLogger(__name__)

PROC_PIDTASKINFO = 4
NANOS_PER_SECOND = 1e9


class ProcTaskInfo(ctypes.Structure):
    """struct proc_taskinfo from <sys/proc_info.h>."""
    _fields_ = [
        ("pti_virtual_size", ctypes.c_uint64),
        ("pti_resident_size", ctypes.c_uint64),
        ("pti_total_user", ctypes.c_uint64),
        ("pti_total_system", ctypes.c_uint64),
        ("pti_threads_user", ctypes.c_uint64),
        ("pti_threads_system", ctypes.c_uint64),
        ("pti_policy", ctypes.c_int32),
        ("pti_faults", ctypes.c_int32),
        ("pti_pageins", ctypes.c_int32),
        ("pti_cow_faults", ctypes.c_int32),
        ("pti_messages_sent", ctypes.c_int32),
        ("pti_messages_received", ctypes.c_int32),
        ("pti_syscalls_mach", ctypes.c_int32),
        ("pti_syscalls_unix", ctypes.c_int32),
        ("pti_csw", ctypes.c_int32),
        ("pti_threadnum", ctypes.c_int32),
        ("pti_numrunning", ctypes.c_int32),
        ("pti_priority", ctypes.c_int32),
    ]


class MachTimebaseInfo(ctypes.Structure):
    _fields_ = [
        ("numer", ctypes.c_uint32),
        ("denom", ctypes.c_uint32),
    ]


def _load_libsystem() -> Optional[ctypes.CDLL]:
    if sys.platform != "darwin":
        return None
    path = ctypes.util.find_library("System") or "/usr/lib/libSystem.B.dylib"
    try:
        lib = ctypes.CDLL(path, use_errno=True)
    except OSError as e:
        log.error(f"libSystem not available: {e}")
        return None

    lib.proc_pidinfo.argtypes = [ctypes.c_int, ctypes.c_int, ctypes.c_uint64, ctypes.c_void_p, ctypes.c_int]
    lib.proc_pidinfo.restype = ctypes.c_int
    lib.mach_timebase_info.argtypes = [ctypes.POINTER(MachTimebaseInfo)]
    lib.mach_timebase_info.restype = ctypes.c_int
    return lib


def _timebase_seconds_per_tick(lib: ctypes.CDLL) -> float:
    info = MachTimebaseInfo()
    if lib.mach_timebase_info(ctypes.byref(info)) != 0 or info.denom == 0:
        log.warning("mach_timebase_info failed, assuming nanosecond ticks")
        return 1.0 / NANOS_PER_SECOND
    return info.numer / info.denom / NANOS_PER_SECOND


class LibprocProvider(MetricsProvider):
    """macOS provider backed by proc_pidinfo."""

    name = "libproc"

    def __init__(self) -> None:
        self._lib = _load_libsystem()
        self._seconds_per_tick = _timebase_seconds_per_tick(self._lib) if self._lib is not None else 0.0

    def is_available(self) -> bool:
        return self._lib is not None

    def read(self, pid: int) -> Optional[Sample]:
        if not 0 < pid <= PID_MAX or self._lib is None:
            return None

        info = ProcTaskInfo()
        size = ctypes.sizeof(info)
        written = self._lib.proc_pidinfo(pid, PROC_PIDTASKINFO, 0, ctypes.byref(info), size)
        if written != size:
            # ESRCH for exited pids, EPERM for other users' processes
            log.debug(f"libproc: proc_pidinfo({pid}) returned {written}, errno {ctypes.get_errno()}")
            return None

        ticks = info.pti_total_user + info.pti_total_system
        return Sample(
            cpu_time_seconds=ticks * self._seconds_per_tick,
            memory_mb=info.pti_resident_size / BYTES_PER_MB,
        )
