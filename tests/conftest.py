import threading
from ipaddress import IPv4Address

import pytest

from edgescan.clean_ip.models import ProbeResult, Strategy
from edgescan.clean_ip.prober import Prober


class FixedLatencyProber(Prober):
    """Records every probed address and answers with a fixed latency."""

    def __init__(self, latency_ms: int = 50):
        self.latency_ms = latency_ms
        self.seen: list[IPv4Address] = []
        self._lock = threading.Lock()

    def probe(self, address, timeout):
        with self._lock:
            self.seen.append(address)
        return ProbeResult.completed(address, self.latency_ms, Strategy.PRIMARY)


class GatedProber(Prober):
    """Blocks every probe until ``gate`` is set; ``started`` counts entries."""

    def __init__(self):
        self.gate = threading.Event()
        self.started = threading.Semaphore(0)
        self.seen: list[IPv4Address] = []
        self._lock = threading.Lock()

    def probe(self, address, timeout):
        with self._lock:
            self.seen.append(address)
        self.started.release()
        self.gate.wait(5)
        return ProbeResult.unreachable(address)


@pytest.fixture
def fixed_prober():
    return FixedLatencyProber()


@pytest.fixture
def gated_prober():
    p = GatedProber()
    yield p
    p.gate.set()
