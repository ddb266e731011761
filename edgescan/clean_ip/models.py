"""Data model for the clean-IP scanner.

All models are frozen; classification against a latency threshold happens at
query time (see ``aggregator``), never on the stored probe result.
"""

from __future__ import annotations

from enum import Enum
from ipaddress import IPv4Address
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

MAX_ADDRESS = 0xFFFFFFFF


class Strategy(str, Enum):
    PRIMARY = "primary"
    FALLBACK = "fallback"
    NONE = "none"


class AddressRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    base: int = Field(..., ge=0, le=MAX_ADDRESS, description="network address as a 32-bit integer")
    prefix: int = Field(..., ge=0, le=32)

    @model_validator(mode="before")
    @classmethod
    def _mask_base(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("base"), int) and isinstance(data.get("prefix"), int):
            prefix = data["prefix"]
            if 0 <= prefix <= 32:
                mask = (MAX_ADDRESS << (32 - prefix)) & MAX_ADDRESS
                data = {**data, "base": data["base"] & mask}
        return data

    @property
    def size(self) -> int:
        return 1 << (32 - self.prefix)

    def __contains__(self, address: object) -> bool:
        value = int(address)  # type: ignore[call-overload]
        return self.base <= value < self.base + self.size

    def __str__(self) -> str:
        return f"{IPv4Address(self.base)}/{self.prefix}"


class ProbeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: IPv4Address
    latency_ms: Optional[int] = Field(None, ge=1)
    succeeded: bool = False
    strategy_used: Strategy = Strategy.NONE
    pending: bool = Field(False, description="placeholder published before the probe settles")

    @classmethod
    def placeholder(cls, address: IPv4Address) -> "ProbeResult":
        return cls(address=address, pending=True)

    @classmethod
    def unreachable(cls, address: IPv4Address) -> "ProbeResult":
        return cls(address=address)

    @classmethod
    def completed(cls, address: IPv4Address, latency_ms: int, strategy: Strategy) -> "ProbeResult":
        return cls(address=address, latency_ms=latency_ms, succeeded=True, strategy_used=strategy)

    def is_clean(self, threshold_ms: int) -> bool:
        return self.succeeded and self.latency_ms is not None and self.latency_ms <= threshold_ms


class ClassifiedResult(BaseModel):
    """A probe result viewed through the threshold current at query time."""

    model_config = ConfigDict(frozen=True)

    result: ProbeResult
    is_clean: bool
    band: str = "gray"

    @property
    def address(self) -> IPv4Address:
        return self.result.address

    @property
    def latency_ms(self) -> Optional[int]:
        return self.result.latency_ms


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True)

    found_count: int = 0
    average_latency_ms: Optional[float] = None
    total: int = 0
    succeeded: int = 0
    pending: int = 0


__all__ = [
    "AddressRange",
    "ClassifiedResult",
    "ProbeResult",
    "Strategy",
    "Summary",
]
