from __future__ import annotations

"""Deterministic synthetic probe results for offline/demo mode.

Seeded by address so demo runs and tests are stable across runs and platforms.
"""

import hashlib
import random
import time
from ipaddress import IPv4Address

from .models import ProbeResult, Strategy
from .prober import Prober


class SyntheticProber(Prober):
    def __init__(self, reachable_ratio: float = 0.7, simulate_delay: bool = False):
        self.reachable_ratio = reachable_ratio
        self.simulate_delay = simulate_delay

    def probe(self, address: IPv4Address, timeout: float) -> ProbeResult:
        seed = int(hashlib.sha256(str(address).encode()).hexdigest()[:8], 16)
        rng = random.Random(seed)
        ok = rng.random() < self.reachable_ratio
        latency = rng.randint(8, 900)
        strategy = Strategy.PRIMARY if rng.random() < 0.75 else Strategy.FALLBACK
        if self.simulate_delay:
            time.sleep(min(latency / 1000.0, timeout))
        if not ok or latency > timeout * 1000:
            return ProbeResult.unreachable(address)
        return ProbeResult.completed(address, latency, strategy)


__all__ = ["SyntheticProber"]
