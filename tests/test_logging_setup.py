import json
import logging
import threading
from typing import List
from io import StringIO

from edgescan.clean_ip.logging_setup import configure_json_logging


def _json_handlers(logger):
    return [h for h in logger.handlers if getattr(h, "_edgescan_json", False)]


def test_single_handler_and_level_update():
    logger = configure_json_logging(level="WARNING", stream=StringIO(), force=True)
    assert len(_json_handlers(logger)) == 1
    assert logger.level == logging.WARNING

    logger2 = configure_json_logging(level="DEBUG")
    assert logger is logger2
    assert len(_json_handlers(logger2)) == 1
    assert logger2.level == logging.DEBUG


def test_json_shape_and_timezone():
    buf = StringIO()
    logger = configure_json_logging(level="INFO", stream=buf, force=True)
    logger.info("scan started", extra={"event": "scan_started", "fields": {"sampled": 3}})
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])

    assert payload["msg"] == "scan started"
    assert payload["level"] == "info"
    assert payload["event"] == "scan_started"
    assert payload["fields"] == {"sampled": 3}
    assert payload["ts"].endswith("Z")
    ms_part = payload["ts"].split(".")[-1].rstrip("Z")
    assert len(ms_part) == 3


def test_child_module_loggers_propagate_into_handler():
    buf = StringIO()
    configure_json_logging(level="INFO", stream=buf, force=True)
    logging.getLogger("edgescan.clean_ip.sampler").warning(
        "sample exhausted", extra={"event": "sample_exhausted", "fields": {"requested": 10}}
    )
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert payload["logger"] == "edgescan.clean_ip.sampler"
    assert payload["event"] == "sample_exhausted"


def test_avoid_event_duplication():
    buf = StringIO()
    logger = configure_json_logging(level="INFO", stream=buf, force=True)
    logger.info("same", extra={"event": "same", "fields": {}})
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert "event" not in payload
    assert "fields" not in payload


def test_non_serializable_field_is_stringified():
    from ipaddress import IPv4Address

    buf = StringIO()
    logger = configure_json_logging(level="INFO", stream=buf, force=True)
    logger.info("addr", extra={"fields": {"address": IPv4Address("1.1.1.1")}})
    payload = json.loads(buf.getvalue().strip().splitlines()[-1])
    assert payload["fields"]["address"] == "1.1.1.1"


def test_propagation_disabled():
    logger = configure_json_logging(level="INFO")
    assert logger.propagate is False


def test_threadsafe_config_race():
    results: List[logging.Logger] = []

    def worker():
        results.append(configure_json_logging(level="INFO"))

    threads = [threading.Thread(target=worker) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(_json_handlers(results[0])) == 1
