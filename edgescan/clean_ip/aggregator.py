"""Result aggregation, classification and ranking.

Stored ProbeResults are never mutated by queries. The clean/unclean split is
computed from the threshold passed to each call, so a threshold change
reclassifies everything without re-probing.
"""

from __future__ import annotations

import math
import threading
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .models import ClassifiedResult, ProbeResult, Summary


class SortMode(str, Enum):
    LATENCY_ASC = "lat_asc"
    LATENCY_DESC = "lat_desc"
    ADDRESS_ASC = "ip_asc"
    ADDRESS_DESC = "ip_desc"


class Bands(BaseModel):
    """Latency colour boundaries in milliseconds."""

    model_config = ConfigDict(frozen=True)

    green: int = Field(100, ge=1)
    yellow: int = Field(200, ge=1)
    red: int = Field(400, ge=1)

    @model_validator(mode="after")
    def _ordered(self) -> "Bands":
        if not (self.green <= self.yellow <= self.red):
            raise ValueError("bands must satisfy green <= yellow <= red")
        return self


THEMES: Dict[str, Bands] = {
    "low": Bands(green=100, yellow=200, red=400),
    "med": Bands(green=150, yellow=300, red=600),
    "high": Bands(green=300, yellow=600, red=1200),
}


def band_for(latency_ms: Optional[int], bands: Bands) -> str:
    if latency_ms is None:
        return "gray"
    if latency_ms <= bands.green:
        return "green"
    if latency_ms <= bands.yellow:
        return "yellow"
    return "red"


def classify(result: ProbeResult, threshold_ms: int, bands: Optional[Bands] = None) -> ClassifiedResult:
    return ClassifiedResult(
        result=result,
        is_clean=result.is_clean(threshold_ms),
        band=band_for(result.latency_ms, bands or THEMES["low"]),
    )


def _latency_key_asc(r: ProbeResult) -> float:
    return r.latency_ms if r.latency_ms is not None else math.inf


def _latency_key_desc(r: ProbeResult) -> float:
    # missing latency counts as 0 so it lands after every measured entry
    return -(r.latency_ms if r.latency_ms is not None else 0)


def sort_results(results: List[ProbeResult], mode: SortMode | str) -> List[ProbeResult]:
    """Return a new ordered list; ties keep insertion order."""
    mode = SortMode(mode)
    if mode is SortMode.LATENCY_ASC:
        return sorted(results, key=_latency_key_asc)
    if mode is SortMode.LATENCY_DESC:
        return sorted(results, key=_latency_key_desc)
    if mode is SortMode.ADDRESS_ASC:
        return sorted(results, key=lambda r: int(r.address))
    return sorted(results, key=lambda r: -int(r.address))


class Aggregator:
    """Thread-safe holder of one scan's results, one slot per claimed index."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._slots: Dict[int, ProbeResult] = {}

    def record(self, index: int, result: ProbeResult) -> None:
        with self._lock:
            self._slots[index] = result

    def results(self) -> List[ProbeResult]:
        with self._lock:
            return list(self._slots.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._slots)

    def classify(self, threshold_ms: int, bands: Optional[Bands] = None) -> List[ClassifiedResult]:
        return [classify(r, threshold_ms, bands) for r in self.results()]

    def summarize(self, threshold_ms: int) -> Summary:
        results = self.results()
        measured = [r.latency_ms for r in results if r.succeeded and r.latency_ms is not None]
        return Summary(
            found_count=sum(1 for r in results if r.is_clean(threshold_ms)),
            average_latency_ms=(sum(measured) / len(measured)) if measured else None,
            total=len(results),
            succeeded=sum(1 for r in results if r.succeeded),
            pending=sum(1 for r in results if r.pending),
        )

    def sorted(
        self,
        mode: SortMode | str,
        threshold_ms: int,
        bands: Optional[Bands] = None,
    ) -> List[ClassifiedResult]:
        return [classify(r, threshold_ms, bands) for r in sort_results(self.results(), mode)]


__all__ = [
    "Aggregator",
    "Bands",
    "SortMode",
    "THEMES",
    "band_for",
    "classify",
    "sort_results",
]
