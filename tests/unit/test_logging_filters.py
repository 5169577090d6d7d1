import logging

from rebootbot.logging_filters import (
    SuppressQuietPathAccessLog,
    install_uvicorn_access_log_filters,
    quiet_noisy_loggers,
)


def _access_record(msg: str, args: tuple) -> logging.LogRecord:
    return logging.LogRecord(
        name="uvicorn.access",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )


def test_suppress_health_access_log_by_args() -> None:
    record = _access_record(
        '%s - "%s %s HTTP/%s" %s', ("127.0.0.1:12345", "GET", "/health", "1.1", 200)
    )
    assert SuppressQuietPathAccessLog().filter(record) is False


def test_suppress_health_access_log_by_message_fallback() -> None:
    record = _access_record('127.0.0.1:12345 - "GET /health HTTP/1.1" 200 OK', ())
    assert SuppressQuietPathAccessLog().filter(record) is False


def test_automation_access_log_not_suppressed() -> None:
    record = _access_record(
        '%s - "%s %s HTTP/%s" %s', ("127.0.0.1:12345", "POST", "/automation", "1.1", 200)
    )
    assert SuppressQuietPathAccessLog().filter(record) is True


def test_custom_quiet_paths() -> None:
    record = _access_record(
        '%s - "%s %s HTTP/%s" %s', ("127.0.0.1:1", "GET", "/automation/activity?limit=5", "1.1", 200)
    )
    assert SuppressQuietPathAccessLog(paths=("/automation/activity",)).filter(record) is False


def test_install_does_not_duplicate_filter() -> None:
    logger = logging.getLogger("uvicorn.access")
    logger.filters.clear()

    install_uvicorn_access_log_filters()
    install_uvicorn_access_log_filters()

    matches = [f for f in logger.filters if isinstance(f, SuppressQuietPathAccessLog)]
    assert len(matches) == 1


def test_quiet_noisy_loggers() -> None:
    quiet_noisy_loggers()
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
