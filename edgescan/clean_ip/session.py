"""Scan coordination: one ScanSession per scan, owned by a Scanner.

Workers publish every result update onto the session's queue; presentation
code consumes ``ScanSession.updates()`` rather than being called back.
"""

from __future__ import annotations

import logging
import queue
import random
import threading
import time
from ipaddress import IPv4Address
from typing import Callable, Iterator, List, Optional, Sequence

from .aggregator import Aggregator, Bands, SortMode, THEMES, classify
from .errors import InvalidRange, RangeListUnavailable
from .models import ClassifiedResult, ProbeResult, Summary
from .pool import DEFAULT_CONCURRENCY, WorkerPool
from .prober import Prober
from .ranges import parse_range
from .sampler import sample

MIN_COUNT = 1
MAX_COUNT = 200
DEFAULT_COUNT = 30
DEFAULT_TIMEOUT_MS = 4000
DEFAULT_THRESHOLD_MS = 200

_DONE = object()

logger = logging.getLogger(__name__)


def clamp_count(count: int) -> int:
    return max(MIN_COUNT, min(MAX_COUNT, int(count)))


class ScanSession:
    """State of one scan: candidates, results, running flag and start time."""

    def __init__(
        self,
        candidates: Sequence[IPv4Address],
        pool: WorkerPool,
        threshold: Callable[[], int],
        bands: Callable[[], Bands],
    ):
        self.candidates: List[IPv4Address] = list(candidates)
        self.pool = pool
        self.aggregator = Aggregator()
        self.started_at = time.monotonic()
        self.finished_at: Optional[float] = None
        self.error: Optional[BaseException] = None
        self._threshold = threshold
        self._bands = bands
        self._updates: "queue.Queue[object]" = queue.Queue()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # -- lifecycle ---------------------------------------------------------
    def start(self, concurrency: int = DEFAULT_CONCURRENCY) -> "ScanSession":
        self._thread = threading.Thread(
            target=self._run, args=(concurrency,), name="scan-coordinator", daemon=True
        )
        self._thread.start()
        return self

    def _publish(self, index: int, result: ProbeResult) -> None:
        self.aggregator.record(index, result)
        self._updates.put(result)

    def _run(self, concurrency: int) -> None:
        try:
            self.pool.run(self.candidates, concurrency, self._publish)
        except Exception as exc:
            self.error = exc
            logger.error(
                "scan aborted",
                extra={"event": "scan_aborted", "fields": {"error": repr(exc)}},
            )
        finally:
            self.finished_at = time.monotonic()
            self._done.set()
            self._updates.put(_DONE)
            summary = self.summary()
            logger.info(
                "scan finished",
                extra={
                    "event": "scan_finished",
                    "fields": {
                        "claimed": self.pool.claimed,
                        "found": summary.found_count,
                        "avg_ms": summary.average_latency_ms,
                        "elapsed_s": round(self.elapsed(), 3),
                        "stopped": self.pool.stopped,
                    },
                },
            )

    def stop(self) -> None:
        if not self.pool.stopped:
            self.pool.stop()
            logger.info(
                "scan stop requested",
                extra={"event": "scan_stop_requested", "fields": {"claimed": self.pool.claimed}},
            )

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._done.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._done.wait(timeout)

    def elapsed(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    # -- views -------------------------------------------------------------
    def updates(self) -> Iterator[ClassifiedResult]:
        """Yield every result update until the scan drains.

        Classification uses the threshold current at yield time. Only one
        consumer should iterate a session.
        """
        while True:
            item = self._updates.get()
            if item is _DONE:
                return
            yield classify(item, self._threshold(), self._bands())  # type: ignore[arg-type]

    def summary(self) -> Summary:
        return self.aggregator.summarize(self._threshold())

    def sorted(self, mode: SortMode | str = SortMode.LATENCY_ASC) -> List[ClassifiedResult]:
        return self.aggregator.sorted(mode, self._threshold(), self._bands())

    def classified(self) -> List[ClassifiedResult]:
        return self.aggregator.classify(self._threshold(), self._bands())


class Scanner:
    """Owns at most one active ScanSession.

    ``fetch_ranges`` returns CIDR strings (comments already stripped);
    ``threshold`` and ``bands`` are queried on every use.
    """

    def __init__(
        self,
        fetch_ranges: Callable[[], List[str]],
        prober: Prober,
        threshold: Callable[[], int] = lambda: DEFAULT_THRESHOLD_MS,
        bands: Callable[[], Bands] = lambda: THEMES["low"],
        rng: Optional[random.Random] = None,
    ):
        self.fetch_ranges = fetch_ranges
        self.prober = prober
        self.threshold = threshold
        self.bands = bands
        self.rng = rng
        self._lock = threading.Lock()
        self._session: Optional[ScanSession] = None

    @property
    def session(self) -> Optional[ScanSession]:
        return self._session

    def _load_ranges(self):
        lines = self.fetch_ranges()
        if not lines:
            raise RangeListUnavailable("range list is empty")
        try:
            return [parse_range(line) for line in lines]
        except InvalidRange as exc:
            raise RangeListUnavailable(str(exc)) from exc

    def start_scan(
        self,
        desired_count: int = DEFAULT_COUNT,
        concurrency: int = DEFAULT_CONCURRENCY,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> ScanSession:
        """Stop any active scan, then sample and start probing.

        Raises RangeListUnavailable; the scanner stays ready for a retry.
        """
        with self._lock:
            if self._session is not None:
                self._session.stop()

        # no lock across the fetch; stop_scan must stay responsive
        ranges = self._load_ranges()
        count = clamp_count(desired_count)
        candidates = sample(ranges, count, self.rng)
        pool = WorkerPool(self.prober, timeout_ms / 1000.0)
        session = ScanSession(candidates, pool, self.threshold, self.bands)

        with self._lock:
            # a concurrent start may have installed a session meanwhile
            if self._session is not None:
                self._session.stop()
            self._session = session
            logger.info(
                "scan started",
                extra={
                    "event": "scan_started",
                    "fields": {
                        "ranges": len(ranges),
                        "requested": count,
                        "sampled": len(candidates),
                        "concurrency": concurrency,
                        "timeout_ms": timeout_ms,
                    },
                },
            )
            return session.start(concurrency)

    def stop_scan(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.stop()


__all__ = [
    "DEFAULT_COUNT",
    "DEFAULT_THRESHOLD_MS",
    "DEFAULT_TIMEOUT_MS",
    "MAX_COUNT",
    "ScanSession",
    "Scanner",
    "clamp_count",
]
