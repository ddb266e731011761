"""Export formatting: CSV rows and the plain clean-address list.

The CSV layout (``ip,ping_ms,clean``) is consumed by other tools and must not
change.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path
from typing import Iterable

from ..utils import atomic_write, ensure_dir
from .models import ClassifiedResult

CSV_HEADER = ["ip", "ping_ms", "clean"]


def export_csv(results: Iterable[ClassifiedResult]) -> str:
    """Header line, then rows joined by newlines with no trailing newline."""
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    for r in results:
        w.writerow([
            str(r.address),
            "" if r.latency_ms is None else r.latency_ms,
            int(r.is_clean),
        ])
    rows = buf.getvalue()
    if rows.endswith("\n"):
        rows = rows[:-1]
    return ",".join(CSV_HEADER) + "\n" + rows


def copy_clean_list(results: Iterable[ClassifiedResult]) -> str:
    return "\n".join(str(r.address) for r in results if r.is_clean)


def write_export(path: str | Path, text: str) -> Path:
    path = Path(path)
    ensure_dir(path.parent)
    atomic_write(path, text)
    return path


__all__ = ["CSV_HEADER", "copy_clean_list", "export_csv", "write_export"]
