"""Size-weighted random sampling of candidate addresses from CIDR ranges."""

from __future__ import annotations

import logging
import random
from ipaddress import IPv4Address
from typing import List, Optional, Sequence

from .models import AddressRange

# Per-range weight ceiling: one /16 worth of addresses.
WEIGHT_CAP = 65536
# Total draws allowed per requested candidate before giving up.
DRAW_FACTOR = 3

logger = logging.getLogger(__name__)


def range_weight(rng_: AddressRange) -> int:
    return min(rng_.size, WEIGHT_CAP)


def sample(
    ranges: Sequence[AddressRange],
    count: int,
    rng: Optional[random.Random] = None,
) -> List[IPv4Address]:
    """Draw up to ``count`` unique addresses from ``ranges``.

    Ranges are picked with probability proportional to ``min(size, 65536)``
    and an offset is drawn uniformly below that same bound, so every
    candidate lies inside its source range. Sampling stops after
    ``3 * count`` draws; the result may then be shorter than ``count``.
    """
    if count < 1:
        raise ValueError("count must be a positive integer")
    if not ranges:
        return []
    rng = rng or random.Random()

    weights = [range_weight(r) for r in ranges]
    total = sum(weights)
    seen: set[int] = set()
    picked: List[IPv4Address] = []
    draws = 0
    while len(picked) < count and draws < DRAW_FACTOR * count:
        draws += 1
        r = rng.random() * total
        acc = 0
        chosen = ranges[0]
        chosen_weight = weights[0]
        for candidate_range, weight in zip(ranges, weights):
            acc += weight
            if r <= acc:
                chosen, chosen_weight = candidate_range, weight
                break
        value = chosen.base + rng.randrange(chosen_weight)
        if value not in seen:
            seen.add(value)
            picked.append(IPv4Address(value))

    if len(picked) < count:
        logger.warning(
            "sample exhausted",
            extra={
                "event": "sample_exhausted",
                "fields": {"requested": count, "sampled": len(picked), "draws": draws},
            },
        )
    return picked


__all__ = ["sample", "range_weight", "WEIGHT_CAP"]
