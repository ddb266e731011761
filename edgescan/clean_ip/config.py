"""Scan settings: defaults < YAML file < environment < explicit overrides."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

from ..utils import env_overrides, load_yaml
from .aggregator import Bands, THEMES, SortMode
from .pool import DEFAULT_CONCURRENCY
from .prober import DEFAULT_ATTEMPTS, FALLBACK_PATH
from .ranges import DEFAULT_RANGE_URL
from .session import DEFAULT_COUNT, DEFAULT_THRESHOLD_MS, DEFAULT_TIMEOUT_MS, MAX_COUNT

ENV_VARS = {
    "EDGESCAN_RANGE_URL": "range_url",
    "EDGESCAN_LOG_LEVEL": "log_level",
}


class ScanSettings(BaseModel):
    range_url: str = DEFAULT_RANGE_URL
    count: int = Field(DEFAULT_COUNT, ge=1, le=MAX_COUNT)
    concurrency: int = Field(DEFAULT_CONCURRENCY, ge=1)
    timeout_ms: int = Field(DEFAULT_TIMEOUT_MS, ge=1)
    attempts: int = Field(DEFAULT_ATTEMPTS, ge=1)
    fallback_path: str = FALLBACK_PATH
    max_latency_ms: int = Field(DEFAULT_THRESHOLD_MS, ge=1, description="clean threshold")
    theme: str = "low"
    sort: SortMode = SortMode.LATENCY_ASC
    log_level: str = "INFO"

    @field_validator("theme")
    @classmethod
    def _known_theme(cls, v: str) -> str:
        if v not in THEMES:
            raise ValueError(f"unknown theme {v!r}; choose from {sorted(THEMES)}")
        return v

    @property
    def bands(self) -> Bands:
        return THEMES[self.theme]


def load_settings(path: Optional[str | Path] = None, **overrides: Any) -> ScanSettings:
    """Build settings; ``None`` overrides are ignored so CLI defaults don't mask the file."""
    data: Dict[str, Any] = {}
    if path is not None:
        data.update(load_yaml(path))
    data.update(env_overrides(ENV_VARS))
    data.update({k: v for k, v in overrides.items() if v is not None})
    return ScanSettings(**data)


__all__ = ["ScanSettings", "load_settings", "ENV_VARS"]
