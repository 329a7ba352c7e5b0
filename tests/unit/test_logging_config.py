from __future__ import annotations

import importlib
import logging
import logging.handlers
from pathlib import Path

import pytest

from proxy_supervisor.config import reset_default_values


@pytest.fixture
def logging_module(monkeypatch, tmp_path):
    from proxy_supervisor import logging_config

    importlib.reload(logging_config)
    monkeypatch.setenv("PROXY_SUPERVISOR_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("PROXY_SUPERVISOR_LOG_APPEND", raising=False)
    reset_default_values()

    root = logging.getLogger()
    saved_level = root.level

    yield logging_config

    # Cleanup handlers added during the test
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.handlers.WatchedFileHandler):
            handler.close()
            root.removeHandler(handler)
    root.setLevel(saved_level)


def _configure(logging_module, *args, **kwargs):
    """Run setup_logging against a root logger without pytest's capture handlers."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    logging_module.setup_logging(*args, **kwargs)


def _handlers_of(kind):
    return [handler for handler in logging.getLogger().handlers if type(handler) is kind]


def test_console_only_without_service_name(logging_module):
    _configure(logging_module)

    root = logging.getLogger()
    consoles = _handlers_of(logging.StreamHandler)
    assert len(consoles) == 1
    assert consoles[0].level == logging.DEBUG
    assert _handlers_of(logging.handlers.WatchedFileHandler) == []
    assert root.level == logging.INFO


def test_service_name_adds_watched_file_handler(logging_module, tmp_path):
    _configure(logging_module, "proxy_supervisor")

    file_handlers = _handlers_of(logging.handlers.WatchedFileHandler)
    assert len(file_handlers) == 1
    assert Path(file_handlers[0].baseFilename) == tmp_path / "logs" / "proxy_supervisor.log"
    assert file_handlers[0].mode == "w"
    assert (tmp_path / "logs").is_dir()


def test_append_mode_from_environment(logging_module, monkeypatch):
    monkeypatch.setenv("PROXY_SUPERVISOR_LOG_APPEND", "true")

    _configure(logging_module, "proxy_supervisor")

    assert _handlers_of(logging.handlers.WatchedFileHandler)[0].mode == "a"


def test_user_friendly_console_only_shows_warnings(logging_module):
    _configure(logging_module, user_friendly=True)

    console = _handlers_of(logging.StreamHandler)[0]
    assert console.level == logging.WARNING
    assert console.formatter._fmt == "%(message)s"


def test_second_call_is_skipped_when_configured(logging_module):
    _configure(logging_module, "proxy_supervisor")
    handlers = list(logging.getLogger().handlers)

    logging_module.setup_logging("proxy_supervisor")

    assert logging.getLogger().handlers == handlers


def test_noisy_libraries_are_quietened(logging_module):
    _configure(logging_module)

    assert logging.getLogger("aiohttp").level == logging.WARNING
    assert logging.getLogger("asyncio").level == logging.WARNING
