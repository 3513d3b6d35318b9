"""Logger setup driven by the logging settings in Config."""

import logging
import uuid

import pytest

from wagerbot.config import Config
from wagerbot.utils import logger as logger_module
from wagerbot.utils.logger import resolve_log_level, setup_logger


@pytest.fixture
def fresh_logging(monkeypatch, tmp_path):
    monkeypatch.setattr(logger_module, "_file_handlers", {})
    monkeypatch.setattr(Config, "LOG_DIR", str(tmp_path / "botlogs"))
    monkeypatch.setattr(Config, "LOG_TO_FILE", True)
    monkeypatch.setattr(Config, "LOG_LEVEL", "")
    monkeypatch.setattr(Config, "DEBUG", False)
    created = []

    def make(suffix="mod"):
        log = setup_logger(f"wagerbot.test.{suffix}.{uuid.uuid4().hex}")
        created.append(log)
        return log

    yield make
    for log in created:
        for handler in list(log.handlers):
            log.removeHandler(handler)
    for handler in logger_module._file_handlers.values():
        handler.close()


def _file_handlers(log):
    return [h for h in log.handlers if isinstance(h, logging.FileHandler)]


class TestLogFile:

    def test_written_under_configured_dir(self, fresh_logging, tmp_path):
        log = fresh_logging()

        [handler] = _file_handlers(log)
        assert handler.baseFilename.startswith(str(tmp_path / "botlogs"))
        assert (tmp_path / "botlogs").is_dir()

    def test_module_loggers_share_one_file_handler(self, fresh_logging):
        first, second = fresh_logging("a"), fresh_logging("b")
        assert _file_handlers(first) == _file_handlers(second)

    def test_file_logging_disabled(self, fresh_logging, monkeypatch, tmp_path):
        monkeypatch.setattr(Config, "LOG_TO_FILE", False)
        log = fresh_logging()

        assert _file_handlers(log) == []
        assert not (tmp_path / "botlogs").exists()

    def test_does_not_propagate_to_root(self, fresh_logging):
        assert fresh_logging().propagate is False


class TestLogLevel:

    def test_debug_flag(self, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "")
        monkeypatch.setattr(Config, "DEBUG", True)
        assert resolve_log_level() == logging.DEBUG
        monkeypatch.setattr(Config, "DEBUG", False)
        assert resolve_log_level() == logging.INFO

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setattr(Config, "DEBUG", True)
        monkeypatch.setattr(Config, "LOG_LEVEL", "warning")
        assert resolve_log_level() == logging.WARNING

    def test_unknown_level_falls_back(self, monkeypatch):
        monkeypatch.setattr(Config, "DEBUG", False)
        monkeypatch.setattr(Config, "LOG_LEVEL", "LOUD")
        assert resolve_log_level() == logging.INFO

    def test_console_uses_configured_level(self, fresh_logging, monkeypatch):
        monkeypatch.setattr(Config, "LOG_LEVEL", "ERROR")
        log = fresh_logging()

        console = [h for h in log.handlers if not isinstance(h, logging.FileHandler)]
        assert [h.level for h in console] == [logging.ERROR]
        assert log.level == logging.DEBUG
