"""Range-list retrieval and CIDR parsing.

The remote list is plain text, one CIDR per line. Comment lines, blank lines
and IPv6 entries are dropped here so the scanner only ever sees IPv4 CIDRs.
"""

from __future__ import annotations

import ipaddress
import logging
from pathlib import Path
from typing import Iterable, List

import requests

from .errors import InvalidRange, RangeListUnavailable
from .models import AddressRange

DEFAULT_RANGE_URL = "https://www.cloudflare.com/ips-v4"
DEFAULT_FETCH_TIMEOUT = 10  # seconds
# snapshot shipped with the package for offline mode
OFFLINE_RANGES = Path(__file__).resolve().parent / "data" / "ips-v4.txt"

logger = logging.getLogger(__name__)


def parse_range(cidr: str) -> AddressRange:
    """Parse ``a.b.c.d/p`` into an AddressRange; host bits are masked off."""
    try:
        net = ipaddress.IPv4Network(cidr.strip(), strict=False)
    except (ipaddress.AddressValueError, ipaddress.NetmaskValueError, ValueError) as exc:
        raise InvalidRange(f"not an IPv4 CIDR: {cidr!r}") from exc
    return AddressRange(base=int(net.network_address), prefix=net.prefixlen)


def filter_range_lines(lines: Iterable[str]) -> List[str]:
    out = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if ":" in line:  # IPv6
            continue
        out.append(line)
    return out


def fetch_range_list(url: str = DEFAULT_RANGE_URL, timeout: float = DEFAULT_FETCH_TIMEOUT) -> List[str]:
    """Fetch the remote range list. No retry: the caller starts a fresh scan."""
    try:
        resp = requests.get(url, timeout=timeout, headers={"Cache-Control": "no-cache"})
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning(
            "range list fetch failed",
            extra={"event": "ranges_fetch_failed", "fields": {"url": url, "error": str(exc)}},
        )
        raise RangeListUnavailable(f"failed to fetch range list from {url}: {exc}") from exc
    lines = filter_range_lines(resp.text.splitlines())
    logger.info(
        "range list fetched",
        extra={"event": "ranges_fetched", "fields": {"url": url, "count": len(lines)}},
    )
    return lines


def load_range_file(path: str | Path) -> List[str]:
    """Offline counterpart of fetch_range_list."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise RangeListUnavailable(f"cannot read range file {p}: {exc}") from exc
    return filter_range_lines(text.splitlines())


__all__ = [
    "DEFAULT_RANGE_URL",
    "OFFLINE_RANGES",
    "fetch_range_list",
    "filter_range_lines",
    "load_range_file",
    "parse_range",
]
