import logging
import sys
from pathlib import Path

from simple_store import config

FILE_FORMAT = '%(asctime)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'
CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


def setup_logger(name: str = config.LOGGER_NAME) -> logging.Logger:
    """Return the store logger, attaching file and console handlers once."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    logs_dir = Path(config.LOGS_DIR)
    logs_dir.mkdir(parents=True, exist_ok=True)

    # Detailed log file
    file_handler = logging.FileHandler(logs_dir / config.LOG_FILE)
    file_handler.setLevel(config.FILE_LOG_LEVEL)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT))

    # Request-level summary on stdout
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(config.CONSOLE_LOG_LEVEL)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)
    return logger
