"""
Startup-time selection of the platform MetricsProvider.

"auto" resolves to procfs on Linux, libproc on macOS (psutil if libproc
cannot be loaded) and psutil everywhere else.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from procstats.shared.config import ProviderName

from .libproc_provider import LibprocProvider
from .procfs_provider import ProcfsProvider
from .provider import MetricsProvider, NullProvider
from .psutil_provider import PsutilProvider

log = logging.getLogger(__name__)


def _auto_provider(platform: str) -> MetricsProvider:
    if platform.startswith("linux"):
        procfs = ProcfsProvider()
        if procfs.is_available():
            return procfs
        log.warning("procfs not available, falling back to psutil")
    elif platform == "darwin":
        libproc = LibprocProvider()
        if libproc.is_available():
            return libproc
        log.warning("libproc not available, falling back to psutil")
    return PsutilProvider()


def select_provider(name: ProviderName = "auto", platform: Optional[str] = None) -> MetricsProvider:
    """Build the provider named by config; unknown names raise ValueError."""
    if name == "auto":
        provider = _auto_provider(platform or sys.platform)
    elif name == "procfs":
        provider = ProcfsProvider()
    elif name == "libproc":
        provider = LibprocProvider()
    elif name == "psutil":
        provider = PsutilProvider()
    elif name == "null":
        provider = NullProvider()
    else:
        raise ValueError(f"Unknown metrics provider: {name!r}")

    if not provider.is_available():
        log.warning(f"Metrics provider '{provider.name}' is not available on this platform; samples will be zero")
    log.info(f"Using metrics provider: {provider.name}")
    return provider
