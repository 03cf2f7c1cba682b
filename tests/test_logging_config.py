from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.engine",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    output = formatter.format(_record("Stored readings", reading_count=4, device_id="dev-1"))

    assert output == "INFO Stored readings | device_id=dev-1 reading_count=4"


def test_formatter_ignores_missing_and_unknown_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    output = formatter.format(_record("Plain", colour="red", stage=None))

    assert output == "Plain"


def test_formatter_honours_custom_key_list() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", context_keys=["stage"])

    output = formatter.format(_record("Cache miss", stage="chart", device_id="dev-1"))

    assert output == "Cache miss | stage=chart"
