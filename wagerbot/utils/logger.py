import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from wagerbot.config import Config

FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# One file handler per log file, shared by every module logger
_file_handlers: Dict[Path, logging.FileHandler] = {}


def resolve_log_level() -> int:
    """LOG_LEVEL wins when it names a level, otherwise DEBUG toggles DEBUG/INFO."""
    if Config.LOG_LEVEL:
        level = logging.getLevelName(Config.LOG_LEVEL.upper())
        if isinstance(level, int):
            return level
    return logging.DEBUG if Config.DEBUG else logging.INFO


def _shared_file_handler(formatter: logging.Formatter) -> Optional[logging.FileHandler]:
    if not Config.LOG_TO_FILE:
        return None

    log_dir = Path(Config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / f'wagerbot_{datetime.now().strftime("%Y%m%d")}.log'

    handler = _file_handlers.get(log_file)
    if handler is None:
        handler = logging.FileHandler(log_file, encoding='utf-8')
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(formatter)
        _file_handlers[log_file] = handler
    return handler


def setup_logger(name: str) -> logging.Logger:
    """Setup a logger with consistent formatting"""

    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    log_level = resolve_log_level()
    logger.setLevel(min(log_level, logging.DEBUG) if Config.LOG_TO_FILE else log_level)
    logger.propagate = False

    formatter = logging.Formatter(FORMAT, datefmt=DATE_FORMAT)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler, always at DEBUG
    file_handler = _shared_file_handler(formatter)
    if file_handler is not None:
        logger.addHandler(file_handler)

    return logger
