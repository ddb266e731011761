"""Bounded-concurrency probing over a candidate list.

Workers pull the next unclaimed index from a shared cursor. Stopping is
cooperative: ``stop()`` prevents new claims, in-flight probes run to their
own timeout and are still published.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from ipaddress import IPv4Address
from typing import Callable, Optional, Sequence

from .models import ProbeResult
from .prober import Prober

DEFAULT_CONCURRENCY = 12

OnResult = Callable[[int, ProbeResult], None]

logger = logging.getLogger(__name__)


class WorkerPool:
    def __init__(self, prober: Prober, timeout: float):
        self.prober = prober
        self.timeout = timeout
        self._cursor = 0
        self._claim_lock = threading.Lock()
        self._stop = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    @property
    def claimed(self) -> int:
        with self._claim_lock:
            return self._cursor

    def stop(self) -> None:
        self._stop.set()

    def _claim(self, total: int) -> Optional[int]:
        with self._claim_lock:
            if self._stop.is_set() or self._cursor >= total:
                return None
            idx = self._cursor
            self._cursor += 1
            return idx

    def _worker(self, candidates: Sequence[IPv4Address], on_result: OnResult) -> int:
        done = 0
        while True:
            idx = self._claim(len(candidates))
            if idx is None:
                return done
            address = candidates[idx]
            on_result(idx, ProbeResult.placeholder(address))
            on_result(idx, self.prober.probe(address, self.timeout))
            done += 1

    def run(
        self,
        candidates: Sequence[IPv4Address],
        concurrency: int = DEFAULT_CONCURRENCY,
        on_result: Optional[OnResult] = None,
    ) -> int:
        """Probe every candidate once; returns how many were claimed."""
        if on_result is None:
            on_result = lambda idx, result: None  # noqa: E731
        workers = min(max(1, concurrency), len(candidates))
        if workers == 0:
            return 0
        processed = 0
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="probe") as ex:
            futs = [ex.submit(self._worker, candidates, on_result) for _ in range(workers)]
            try:
                for fut in as_completed(futs):
                    processed += fut.result()
            except BaseException:
                # let the remaining workers drain instead of claiming more
                self.stop()
                raise
        logger.debug(
            "pool drained",
            extra={"event": "pool_drained", "fields": {"processed": processed, "stopped": self.stopped}},
        )
        return processed


__all__ = ["WorkerPool", "DEFAULT_CONCURRENCY", "OnResult"]
