from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler

from procstats.shared.paths import log_path, ensure_app_dirs


def setup_logging(level: str = "INFO", log_to_file: bool = True) -> None:
    root = logging.getLogger()
    root.setLevel(level)

    if root.handlers:
        return

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

    # stderr, so JSON reports on stdout stay machine readable
    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    if log_to_file:
        ensure_app_dirs()
        fh = RotatingFileHandler(str(log_path()), maxBytes=2_000_000, backupCount=3, encoding="utf-8")
        fh.setLevel(level)
        fh.setFormatter(fmt)
        root.addHandler(fh)
