import logging
import os
from pathlib import Path

from simple_store import config
from simple_store.logger_config import setup_logger


def test_setup_logger_is_idempotent():
    logger = setup_logger()
    handlers = list(logger.handlers)

    assert setup_logger() is logger
    assert logger.handlers == handlers
    assert logger.name == config.LOGGER_NAME


def test_handlers_follow_config():
    logger = setup_logger()
    file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
    console_handlers = [h for h in logger.handlers if not isinstance(h, logging.FileHandler)]

    assert len(file_handlers) == 1
    log_file = Path(file_handlers[0].baseFilename)
    assert log_file.name == config.LOG_FILE
    assert log_file.parent == Path(os.path.abspath(config.LOGS_DIR))
    assert file_handlers[0].level == logging.DEBUG
    assert [h.level for h in console_handlers] == [logging.INFO]


def test_named_logger(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "LOGS_DIR", str(tmp_path / "logs"))
    logger = setup_logger("simple_store.test-named")
    try:
        assert (tmp_path / "logs").is_dir()
        logger.debug("written")
        logger.handlers[0].flush()
        assert "written" in (tmp_path / "logs" / config.LOG_FILE).read_text()
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
