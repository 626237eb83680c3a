"""
Command-line poller for procstats.

Prints one JSON report per cycle on stdout:

  procstats worker=1234 db=5678 --self cli --interval-ms 500 --count 10
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple, get_args

from procstats.core.logging_ import setup_logging
from procstats.core.process_stats import ProcessStats
from procstats.shared.config import LOG_LEVELS, ProviderName
from procstats.shared.store import ConfigStore

log = logging.getLogger(__name__)


def parse_module_pair(text: str) -> Tuple[str, int]:
    name, sep, pid_text = text.rpartition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=PID, got {text!r}")
    try:
        return name, int(pid_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"PID must be an integer in {text!r}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="procstats", description="Sample CPU and memory usage of named processes")
    parser.add_argument("modules", nargs="*", type=parse_module_pair, metavar="NAME=PID",
                        help="process to monitor under a logical name")
    parser.add_argument("--self", dest="self_name", metavar="NAME",
                        help="also monitor this CLI's own process under NAME")
    parser.add_argument("--provider", choices=list(get_args(ProviderName)),
                        help="override the metrics provider from config")
    parser.add_argument("--interval-ms", type=int, help="delay between reports")
    parser.add_argument("--count", type=int, default=1, help="number of reports, 0 = until Ctrl+C")
    parser.add_argument("--config", type=Path, help="config file (default: app data dir)")
    parser.add_argument("--log-level", type=str.upper, choices=list(LOG_LEVELS),
                        help="override log level from config")
    parser.add_argument("--no-log-file", action="store_true", help="log to stderr only")
    return parser


def resolve_modules(config_modules: Dict[str, int], pairs: List[Tuple[str, int]],
                    self_name: Optional[str]) -> Dict[str, int]:
    modules = dict(config_modules)
    modules.update(pairs)
    if self_name:
        modules[self_name] = os.getpid()
    return modules


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    # Checked before anything is written to disk
    if args.count < 0:
        parser.error("--count must be >= 0")
    if args.interval_ms is not None and args.interval_ms <= 0:
        parser.error("--interval-ms must be > 0")

    cfg = ConfigStore(args.config).load()
    updates = {}
    if args.provider:
        updates["provider"] = args.provider
    if args.interval_ms is not None:
        updates["sample_interval_ms"] = args.interval_ms
    if args.log_level:
        updates["log_level"] = args.log_level
    if args.no_log_file:
        updates["log_to_file"] = False
    cfg = cfg.model_copy(update=updates)

    setup_logging(cfg.log_level, cfg.log_to_file)

    modules = resolve_modules(cfg.modules, args.modules, args.self_name)
    stats = ProcessStats.from_config(cfg)
    log.info(f"Monitoring {len(modules)} module(s) every {cfg.sample_interval_ms}ms")

    cycle = 0
    try:
        while True:
            print(stats.get_module_stats(modules), flush=True)
            cycle += 1
            if args.count and cycle >= args.count:
                break
            time.sleep(cfg.sample_interval_ms / 1000.0)
    except KeyboardInterrupt:
        log.info("Interrupted, shutting down")

    return 0


if __name__ == "__main__":
    sys.exit(main())
