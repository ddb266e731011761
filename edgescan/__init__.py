"""Top-level package for the edgescan tooling.

The clean-IP scanner lives in ``edgescan.clean_ip``; tests import modules as
``from edgescan.clean_ip import sampler``.
"""

__version__ = "0.1.0"

__all__ = [
	"clean_ip",
]
