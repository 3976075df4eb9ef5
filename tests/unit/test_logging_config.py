import logging

from sfconnector.logging_config import PACKAGE_LOGGER, configure_logging


def test_configure_logging_levels(caplog):
    # None: keep default WARNING (>=20)
    configure_logging(None)
    logger = logging.getLogger("sfconnector.test")
    logger.warning("warn")
    assert any("warn" in rec.message for rec in caplog.records)

    # INFO lowers threshold
    caplog.clear()
    configure_logging(logging.INFO)
    logger.info("info-ok")
    assert any("info-ok" in rec.message for rec in caplog.records)

    # DEBUG includes debug
    caplog.clear()
    configure_logging(logging.DEBUG)
    logger.debug("dbg")
    assert any("dbg" in rec.message for rec in caplog.records)


def test_urllib3_connection_logger_is_quietened():
    logging.getLogger("urllib3.connection").setLevel(logging.NOTSET)

    configure_logging(logging.DEBUG)

    assert logging.getLogger("urllib3.connection").level == logging.ERROR


def test_connectionpool_logger_is_quietened_too():
    logging.getLogger("urllib3.connectionpool").setLevel(logging.NOTSET)

    configure_logging(logging.INFO)

    assert logging.getLogger("urllib3.connectionpool").level == logging.WARNING


def test_returns_package_logger_at_requested_level():
    pkg_logger = configure_logging(logging.INFO)

    assert pkg_logger is logging.getLogger(PACKAGE_LOGGER)
    assert pkg_logger.level == logging.INFO


def test_installs_handler_only_when_root_has_none(monkeypatch):
    calls = []
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))

    monkeypatch.setattr(logging.getLogger(), "hasHandlers", lambda: False)
    configure_logging(logging.INFO, fmt="%(message)s")
    assert calls == [{"format": "%(message)s", "datefmt": "%H:%M:%S"}]

    monkeypatch.setattr(logging.getLogger(), "hasHandlers", lambda: True)
    configure_logging(logging.INFO)
    assert len(calls) == 1
