from __future__ import annotations

import sys

from loguru import logger

from adapters.base.log_sink import LoguruLogger, NullLogger, SafeLogger, as_safe_logger, configure_logging


def test_safe_logger_swallows_sink_errors() -> None:
    class Broken:
        def info(self, message, **meta):
            raise ValueError("sink failure")

    log = SafeLogger(Broken())

    log.info("hello", thread_id="t1")
    log.debug("no debug method on this sink")


def test_safe_logger_routes_warnings_to_info_when_sink_has_no_warning() -> None:
    class LeveledSink:
        def __init__(self) -> None:
            self.records: list[tuple[str, str, dict]] = []

        def debug(self, message, **meta):
            self.records.append(("debug", message, meta))

        def info(self, message, **meta):
            self.records.append(("info", message, meta))

        def error(self, message, **meta):
            self.records.append(("error", message, meta))

    sink = LeveledSink()

    SafeLogger(sink).warning("Unknown message role, treating as human", role="narrator")

    assert sink.records == [("info", "Unknown message role, treating as human", {"role": "narrator"})]


def test_safe_logger_defaults_to_null_sink() -> None:
    log = as_safe_logger(None)

    log.error("ignored")
    assert isinstance(log, SafeLogger)
    assert as_safe_logger(log) is log


def test_null_logger_accepts_metadata() -> None:
    NullLogger().warning("ignored", anything=1)


def test_loguru_logger_binds_component_and_metadata() -> None:
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    try:
        LoguruLogger(thread_id="t1").info("Thread created", user_id="u1")
    finally:
        logger.remove(handler_id)

    assert len(records) == 1
    assert records[0]["message"] == "Thread created"
    assert records[0]["extra"] == {"component": "zep_memory", "thread_id": "t1", "user_id": "u1"}


def test_configure_logging_filters_below_level(capsys) -> None:
    try:
        configure_logging("warning")
        LoguruLogger().info("quiet")
        LoguruLogger().warning("loud", thread_id="t1")
        err = capsys.readouterr().err
    finally:
        logger.remove()
        logger.add(sys.__stderr__)

    assert "quiet" not in err
    assert "loud" in err
    assert "WARNING" in err
