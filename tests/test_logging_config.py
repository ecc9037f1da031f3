from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.simulator",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Bessie has left the farm boundaries!",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    message = formatter.format(_record(animal_id="A001", tick=4, unrelated="x"))

    assert message == "WARNING Bessie has left the farm boundaries! | animal_id=A001 tick=4"


def test_formatter_skips_missing_and_none_values() -> None:
    formatter = ContextualFormatter(fmt="%(message)s", extra_keys=["animal_id", "client"])

    message = formatter.format(_record(client=None))

    assert message == "Bessie has left the farm boundaries!"
