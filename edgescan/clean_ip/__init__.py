"""Clean-IP scanner package.

Samples candidate addresses from CIDR ranges, probes them with a bounded
worker pool and ranks the results against a live latency threshold.

Public helpers (imported in tests):
    sample: size-weighted candidate sampling
    Scanner: start/stop scans and read their sessions
    export_csv / copy_clean_list: result formatting
"""

from .aggregator import Aggregator, Bands, SortMode, THEMES  # noqa: F401
from .errors import InvalidRange, RangeListUnavailable  # noqa: F401
from .export import copy_clean_list, export_csv  # noqa: F401
from .models import AddressRange, ClassifiedResult, ProbeResult, Strategy, Summary  # noqa: F401
from .pool import WorkerPool  # noqa: F401
from .prober import HttpProber, Prober  # noqa: F401
from .ranges import fetch_range_list, parse_range  # noqa: F401
from .sampler import sample  # noqa: F401
from .session import ScanSession, Scanner  # noqa: F401
