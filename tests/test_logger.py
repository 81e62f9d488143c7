from __future__ import annotations

import logging

import pytest

from dockmon.logger import QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_levels():
    names = ('',) + QUIET_LOGGERS
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_level_comes_from_environment(monkeypatch) -> None:
    monkeypatch.setenv('LOG_LEVEL', 'debug')

    assert setup_logging() == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG


def test_unknown_level_falls_back_to_info() -> None:
    assert setup_logging('chatty') == logging.INFO


def test_transport_loggers_stay_quiet() -> None:
    setup_logging('DEBUG')

    for name in QUIET_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING

    setup_logging('ERROR')
    assert logging.getLogger('docker').level == logging.ERROR
