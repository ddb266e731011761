from ipaddress import IPv4Address

import pytest
from pydantic import ValidationError

from edgescan.clean_ip.aggregator import Aggregator, Bands, SortMode, THEMES, band_for
from edgescan.clean_ip.models import ProbeResult, Strategy


def _ok(ip, ms):
    return ProbeResult.completed(IPv4Address(ip), ms, Strategy.PRIMARY)


def _dead(ip):
    return ProbeResult.unreachable(IPv4Address(ip))


@pytest.fixture
def agg():
    a = Aggregator()
    rows = [
        _ok("1.1.1.3", 120),
        _dead("1.1.1.1"),
        _ok("1.1.1.2", 30),
        _ok("1.1.1.9", 300),
        _dead("1.1.1.5"),
        _ok("1.1.1.4", 30),
    ]
    for i, r in enumerate(rows):
        a.record(i, r)
    return a


def _ips(rows):
    return [str(r.address) for r in rows]


def test_summarize_counts_clean_and_averages_successes(agg):
    s = agg.summarize(threshold_ms=100)
    assert s.found_count == 2
    assert s.average_latency_ms == pytest.approx((120 + 30 + 300 + 30) / 4)
    assert (s.total, s.succeeded, s.pending) == (6, 4, 0)


def test_threshold_change_reclassifies_without_mutation(agg):
    before = agg.results()
    assert agg.summarize(100).found_count == 2
    assert agg.summarize(500).found_count == 4
    assert agg.summarize(10).found_count == 0
    assert agg.results() == before
    assert agg.sorted(SortMode.LATENCY_ASC, 100) == agg.sorted(SortMode.LATENCY_ASC, 100)
    assert [r.is_clean for r in agg.classify(150)] == [True, False, True, False, False, True]


def test_latency_ascending_missing_last_ties_in_insertion_order(agg):
    assert _ips(agg.sorted("lat_asc", 100)) == [
        "1.1.1.2", "1.1.1.4", "1.1.1.3", "1.1.1.9", "1.1.1.1", "1.1.1.5",
    ]


def test_latency_descending_missing_last(agg):
    assert _ips(agg.sorted("lat_desc", 100)) == [
        "1.1.1.9", "1.1.1.3", "1.1.1.2", "1.1.1.4", "1.1.1.1", "1.1.1.5",
    ]


def test_latency_orders_reverse_each_other_for_measured_entries():
    a = Aggregator()
    for i, ms in enumerate([40, 10, 90, 25]):
        a.record(i, _ok(f"10.0.0.{i}", ms))
    a.record(4, _dead("10.0.0.99"))
    asc = _ips(a.sorted(SortMode.LATENCY_ASC, 100))
    desc = _ips(a.sorted(SortMode.LATENCY_DESC, 100))
    assert asc[:-1] == list(reversed(desc[:-1]))
    assert asc[-1] == desc[-1] == "10.0.0.99"


def test_address_orders_are_numeric(agg):
    agg.record(10, _ok("1.1.1.10", 5))
    asc = _ips(agg.sorted(SortMode.ADDRESS_ASC, 100))
    assert asc == ["1.1.1.1", "1.1.1.2", "1.1.1.3", "1.1.1.4", "1.1.1.5", "1.1.1.9", "1.1.1.10"]
    assert _ips(agg.sorted(SortMode.ADDRESS_DESC, 100)) == list(reversed(asc))


def test_record_replaces_slot_in_place():
    a = Aggregator()
    a.record(0, ProbeResult.placeholder(IPv4Address("9.9.9.9")))
    a.record(1, ProbeResult.placeholder(IPv4Address("8.8.8.8")))
    assert a.summarize(100).pending == 2
    a.record(0, _ok("9.9.9.9", 12))
    assert len(a) == 2
    assert _ips(a.results()) == ["9.9.9.9", "8.8.8.8"]
    assert a.summarize(100).pending == 1
    assert a.summarize(100).found_count == 1


def test_empty_summary():
    s = Aggregator().summarize(100)
    assert s.found_count == 0
    assert s.average_latency_ms is None


@pytest.mark.parametrize(
    "latency,expected",
    [(None, "gray"), (100, "green"), (101, "yellow"), (200, "yellow"), (201, "red"), (5000, "red")],
)
def test_band_for_low_theme(latency, expected):
    assert band_for(latency, THEMES["low"]) == expected


def test_bands_must_be_ordered():
    with pytest.raises(ValidationError):
        Bands(green=300, yellow=200, red=400)


def test_classified_band_follows_theme(agg):
    rows = {str(r.address): r.band for r in agg.classify(100, THEMES["high"])}
    assert rows["1.1.1.3"] == "green"
    assert rows["1.1.1.1"] == "gray"
