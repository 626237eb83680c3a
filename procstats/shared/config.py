from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, Field, field_validator

ProviderName = Literal["auto", "procfs", "libproc", "psutil", "null"]
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class AppConfig(BaseModel):
    provider: ProviderName = "auto"
    sample_interval_ms: int = Field(default=1000, ge=1)
    log_level: str = "INFO"
    log_to_file: bool = True
    # Default name -> pid mapping for the CLI; merged under command-line pairs
    modules: Dict[str, int] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"unknown log level: {value}")
        return level
