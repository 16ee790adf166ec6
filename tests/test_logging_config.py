import logging

from logging_config import ContextualFormatter, build_logging_config


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.ingestion",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Reading stored",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_keys() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    output = formatter.format(_record(reading_id=3, value=1, unknown="x"))

    assert output == "Reading stored | reading_id=3 value=1"


def test_formatter_skips_empty_context() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    assert formatter.format(_record(reading_id=None)) == "Reading stored"


def test_logging_config_routes_root_through_contextual_formatter() -> None:
    config = build_logging_config("DEBUG")

    assert config["formatters"]["contextual"]["()"] is ContextualFormatter
    assert config["handlers"]["console"]["formatter"] == "contextual"
    assert config["root"] == {"handlers": ["console"], "level": "DEBUG"}
    assert config["loggers"]["sqlalchemy.engine"]["level"] == "WARNING"
