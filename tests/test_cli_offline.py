from io import StringIO
from pathlib import Path

import pytest
from typer.testing import CliRunner

from edgescan.clean_ip.cli import app
from edgescan.clean_ip.logging_setup import configure_json_logging

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    # the CLI binds the handler to the runner's temporary stderr
    configure_json_logging(level="INFO", stream=StringIO(), force=True)


def test_offline_scan_writes_exports(tmp_path: Path):
    csv_out = tmp_path / "out" / "ips.csv"
    clean_out = tmp_path / "out" / "clean.txt"
    result = runner.invoke(
        app,
        [
            "--offline",
            "--count", "6",
            "--timeout-ms", "50",
            "--max-latency", "900",
            "--csv", str(csv_out),
            "--clean-list", str(clean_out),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Probing 6 address(es)" in result.output
    lines = csv_out.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "ip,ping_ms,clean"
    assert len(lines) == 7
    assert clean_out.exists()


def test_missing_ranges_file_exits_nonzero(tmp_path: Path):
    result = runner.invoke(app, ["--offline", "--ranges-file", str(tmp_path / "nope.txt")])
    assert result.exit_code == 1
    assert "Could not load the range list" in result.output


def test_bad_theme_is_rejected():
    result = runner.invoke(app, ["--offline", "--theme", "rgb"])
    assert result.exit_code != 0
