"""Single-address reachability probes.

"Success" means a connection attempt settled within its budget, not that a
valid application response came back. The metric is connection round-trip
time.

Each attempt tries the primary strategy (HTTPS request, any response counts)
and, if that fails, the fallback (plain HTTP for a small well-known resource,
where a response or a non-timeout connection error both count). Every
strategy gets its own full timeout.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from ipaddress import IPv4Address
from typing import Callable

import requests
import urllib3
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from .models import ProbeResult, Strategy

DEFAULT_TIMEOUT = 4.0  # seconds per strategy
DEFAULT_ATTEMPTS = 2
FALLBACK_PATH = "/favicon.ico"

# Probing bare IPs over HTTPS never matches a certificate.
urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

logger = logging.getLogger(__name__)


class StrategyFailed(Exception):
    """One strategy errored or ran out of time."""


class AttemptFailed(Exception):
    """Both strategies of one attempt failed."""


def elapsed_ms(start: float, end: float) -> int:
    return max(1, int(round((end - start) * 1000)))


class Prober(ABC):
    @abstractmethod
    def probe(self, address: IPv4Address, timeout: float) -> ProbeResult:
        """Probe one address. Must never raise."""
        raise NotImplementedError


class HttpProber(Prober):
    def __init__(
        self,
        attempts: int = DEFAULT_ATTEMPTS,
        fallback_path: str = FALLBACK_PATH,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.attempts = max(1, attempts)
        self.fallback_path = fallback_path
        self.clock = clock

    def _cache_buster(self) -> int:
        return int(time.time() * 1000)

    def _primary(self, address: IPv4Address, timeout: float) -> int:
        url = f"https://{address}/?t={self._cache_buster()}"
        start = self.clock()
        try:
            resp = requests.get(url, timeout=timeout, verify=False, allow_redirects=False, stream=True)
            resp.close()
        except requests.RequestException as exc:
            raise StrategyFailed(f"primary: {exc}") from exc
        end = self.clock()
        if end - start > timeout:
            raise StrategyFailed("primary: timeout")
        return elapsed_ms(start, end)

    def _fallback(self, address: IPv4Address, timeout: float) -> int:
        url = f"http://{address}{self.fallback_path}?t={self._cache_buster()}"
        start = self.clock()
        try:
            resp = requests.get(url, timeout=timeout, allow_redirects=False, stream=True)
            resp.close()
        except requests.Timeout as exc:
            raise StrategyFailed("fallback: timeout") from exc
        except requests.RequestException:
            # an error still means a connection attempt completed
            pass
        end = self.clock()
        if end - start > timeout:
            raise StrategyFailed("fallback: timeout")
        return elapsed_ms(start, end)

    def _attempt(self, address: IPv4Address, timeout: float) -> ProbeResult:
        try:
            return ProbeResult.completed(address, self._primary(address, timeout), Strategy.PRIMARY)
        except StrategyFailed:
            pass
        try:
            return ProbeResult.completed(address, self._fallback(address, timeout), Strategy.FALLBACK)
        except StrategyFailed as exc:
            raise AttemptFailed(str(exc)) from exc

    def probe(self, address: IPv4Address, timeout: float = DEFAULT_TIMEOUT) -> ProbeResult:
        retrying = Retrying(
            stop=stop_after_attempt(self.attempts),
            retry=retry_if_exception_type(AttemptFailed),
            reraise=True,
        )
        try:
            return retrying(self._attempt, address, timeout)
        except (AttemptFailed, RetryError):
            return ProbeResult.unreachable(address)
        except Exception as exc:
            logger.warning(
                "probe raised unexpectedly",
                extra={"event": "probe_error", "fields": {"address": str(address), "error": repr(exc)}},
            )
            return ProbeResult.unreachable(address)


__all__ = ["Prober", "HttpProber", "StrategyFailed", "AttemptFailed", "elapsed_ms"]
