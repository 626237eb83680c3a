from __future__ import annotations

import os
from pathlib import Path

APP_NAME = "ProcStats"

def app_data_dir() -> Path:
    # PROCSTATS_HOME points straight at the app dir; APPDATA/home get APP_NAME appended
    override = os.environ.get("PROCSTATS_HOME")
    if override:
        return Path(override)
    base = os.environ.get("APPDATA") or str(Path.home())
    return Path(base) / APP_NAME

def config_path() -> Path:
    return app_data_dir() / "config.json"

def log_path() -> Path:
    return app_data_dir() / "logs" / "procstats.log"

def ensure_app_dirs() -> None:
    log_path().parent.mkdir(parents=True, exist_ok=True)
