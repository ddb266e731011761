"""Clean-IP scan CLI.

Usage:
  python -m edgescan.clean_ip.cli --count 50 --max-latency 150 --csv out/clean.csv
  python -m edgescan.clean_ip.cli --offline
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .aggregator import SortMode
from .config import ScanSettings, load_settings
from .errors import RangeListUnavailable
from .export import copy_clean_list, export_csv, write_export
from .logging_setup import configure_json_logging
from .mock_prober import SyntheticProber
from .models import ClassifiedResult, Summary
from .prober import HttpProber
from .ranges import OFFLINE_RANGES, fetch_range_list, load_range_file
from .session import ScanSession, Scanner

app = typer.Typer(add_completion=False, help="Sample address ranges and rank low-latency clean IPs")

console = Console()

BAND_STYLE = {"green": "green", "yellow": "yellow", "red": "red", "gray": "bright_black"}


def _fmt_elapsed(seconds: float) -> str:
    return time.strftime("%H:%M:%S", time.gmtime(int(seconds)))


def _fmt_latency(r: ClassifiedResult) -> str:
    return "—" if r.latency_ms is None else f"{r.latency_ms} ms"


def _row_line(r: ClassifiedResult) -> str:
    style = BAND_STYLE.get(r.band, "white")
    status = "OK" if r.result.succeeded else "Timed/Blocked"
    return f"[{style}]{str(r.address):<15}[/{style}] {_fmt_latency(r):>8}  {status} ({r.result.strategy_used.value})"


def _consume(session: ScanSession) -> None:
    for update in session.updates():
        if not update.result.pending:
            console.print(_row_line(update))


def render_table(rows: list[ClassifiedResult], summary: Summary, elapsed: float) -> Table:
    avg = "—" if summary.average_latency_ms is None else f"{round(summary.average_latency_ms)} ms"
    table = Table(title=f"Clean IPs: {summary.found_count} found, avg {avg}, elapsed {_fmt_elapsed(elapsed)}")
    table.add_column("IP")
    table.add_column("Ping", justify="right")
    table.add_column("Via")
    table.add_column("Clean")
    for r in rows:
        style = BAND_STYLE.get(r.band, "white")
        table.add_row(
            f"[{style}]{r.address}",
            _fmt_latency(r),
            r.result.strategy_used.value,
            "[green]yes" if r.is_clean else "[red]no",
        )
    return table


def build_scanner(settings: ScanSettings, offline: bool, ranges_file: Optional[Path]) -> Scanner:
    if offline:
        path = ranges_file or OFFLINE_RANGES
        fetch = lambda: load_range_file(path)  # noqa: E731
        prober = SyntheticProber(simulate_delay=True)
    else:
        if ranges_file:
            fetch = lambda: load_range_file(ranges_file)  # noqa: E731
        else:
            fetch = lambda: fetch_range_list(settings.range_url)  # noqa: E731
        prober = HttpProber(attempts=settings.attempts, fallback_path=settings.fallback_path)
    return Scanner(
        fetch,
        prober,
        threshold=lambda: settings.max_latency_ms,
        bands=lambda: settings.bands,
    )


@app.callback(invoke_without_command=True)
def cli(
    count: Optional[int] = typer.Option(None, "--count", "-n", help="IPs to sample (1-200)"),
    concurrency: Optional[int] = typer.Option(None, "--concurrency", "-w", help="Parallel probes"),
    timeout_ms: Optional[int] = typer.Option(None, "--timeout-ms", help="Per-strategy timeout"),
    max_latency: Optional[int] = typer.Option(None, "--max-latency", help="Clean threshold in ms"),
    theme: Optional[str] = typer.Option(None, "--theme", help="Colour bands: low, med or high"),
    sort: Optional[SortMode] = typer.Option(None, "--sort", help="Final table order"),
    csv_out: Optional[Path] = typer.Option(None, "--csv", help="Write ip,ping_ms,clean CSV here"),
    clean_out: Optional[Path] = typer.Option(None, "--clean-list", help="Write clean IPs, one per line"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML settings file"),
    ranges_file: Optional[Path] = typer.Option(None, "--ranges-file", help="Read CIDRs from a local file"),
    offline: bool = typer.Option(False, "--offline", help="Bundled ranges + synthetic probes, no network"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="JSON log level (stderr)"),
):
    """Run one scan and print ranked results."""
    try:
        settings = load_settings(
            config,
            count=count,
            concurrency=concurrency,
            timeout_ms=timeout_ms,
            max_latency_ms=max_latency,
            theme=theme,
            sort=sort,
            log_level=log_level,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    configure_json_logging(level=settings.log_level)

    scanner = build_scanner(settings, offline, ranges_file)
    try:
        session = scanner.start_scan(settings.count, settings.concurrency, settings.timeout_ms)
    except RangeListUnavailable as exc:
        console.print(f"[red]Could not load the range list:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print(f"Probing {len(session.candidates)} address(es) with {settings.concurrency} workers...")
    try:
        _consume(session)
    except KeyboardInterrupt:
        scanner.stop_scan()
        console.print("[yellow]Stopping: waiting for in-flight probes...[/yellow]")
        _consume(session)
    session.wait()

    rows = session.sorted(settings.sort)
    console.print(render_table(rows, session.summary(), session.elapsed()))

    if csv_out:
        write_export(csv_out, export_csv(session.classified()))
        console.print(f"CSV written to: [bold]{csv_out}[/bold]")
    if clean_out:
        write_export(clean_out, copy_clean_list(rows))
        console.print(f"Clean list written to: [bold]{clean_out}[/bold]")


def main():  # pragma: no cover - entrypoint
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
