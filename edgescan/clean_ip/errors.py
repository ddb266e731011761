"""Scanner error taxonomy.

Only RangeListUnavailable aborts a scan. Probe failures are never raised;
they surface as ``ProbeResult(succeeded=False)`` rows.
"""

from __future__ import annotations


class EdgeScanError(Exception):
    """Base class for scanner errors."""


class RangeListUnavailable(EdgeScanError):
    """The range list could not be fetched or parsed. Fatal to the scan."""


class InvalidRange(EdgeScanError, ValueError):
    """A range string is not a valid IPv4 CIDR."""


__all__ = ["EdgeScanError", "RangeListUnavailable", "InvalidRange"]
