from __future__ import annotations

import logging

import pytest

from app.core.log import configure_logging


@pytest.fixture
def app_logger():
    log = logging.getLogger("app")
    saved = (log.level, list(log.handlers), log.propagate)
    log.handlers.clear()
    yield log
    log.setLevel(saved[0])
    log.handlers[:] = saved[1]
    log.propagate = saved[2]


def test_repeat_calls_install_one_handler(app_logger):
    configure_logging("debug")
    configure_logging("warning")

    assert len(app_logger.handlers) == 1
    assert app_logger.level == logging.WARNING
    assert app_logger.propagate is False


def test_unknown_level_falls_back_to_info(app_logger):
    configure_logging("chatty")

    assert app_logger.level == logging.INFO
