import logging

from lpwatch.main import LOG_FORMAT
from lpwatch.utils.shortname import ShortNameFilter


def _record(name):
    return logging.LogRecord(name, logging.INFO, __file__, 1, "hello %s", ("pool",), None)


def test_shortname_keeps_last_two_parts():
    record = _record("lpwatch.cache.pool_cache")
    assert ShortNameFilter().filter(record)
    assert record.shortname == "cache-pool_cache"


def test_format_renders_with_filter():
    record = _record("lpwatch.cli")
    ShortNameFilter().filter(record)
    assert logging.Formatter(LOG_FORMAT).format(record) == "[INFO] lpwatch-cli: hello pool"
