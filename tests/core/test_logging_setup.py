# tests/core/test_logging_setup.py
import io
import logging

import pytest

from site_auditor.utils.configure_logging import LogWithTqdm, configure_logger


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    touched = ["site_auditor.services", "aiohttp"]
    levels = {name: logging.getLogger(name).level for name in touched}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, lvl in levels.items():
        logging.getLogger(name).setLevel(lvl)


def test_configure_logger_installs_one_tqdm_handler(restore_logging):
    stream = io.StringIO()
    handler = configure_logger("DEBUG", stream=stream)

    root = logging.getLogger()
    assert root.handlers == [handler]
    assert isinstance(handler, LogWithTqdm)
    assert root.level == logging.DEBUG

    logging.getLogger("site_auditor.test").debug("step %s", "ok")
    assert "DEBUG - [site_auditor.test:" in stream.getvalue()
    assert "step ok" in stream.getvalue()


def test_module_and_silenced_levels(restore_logging):
    stream = io.StringIO()
    configure_logger(
        "INFO",
        module_specific_levels={"site_auditor.services": "debug"},
        silenced_loggers={"aiohttp": "WARNING"},
        stream=stream,
    )

    assert logging.getLogger("site_auditor.services").level == logging.DEBUG
    assert logging.getLogger("aiohttp").level == logging.WARNING

    logging.getLogger("aiohttp").info("hidden")
    assert "hidden" not in stream.getvalue()


def test_unknown_level_name_falls_back_to_info(restore_logging):
    configure_logger("LOUD", stream=io.StringIO())
    assert logging.getLogger().level == logging.INFO
