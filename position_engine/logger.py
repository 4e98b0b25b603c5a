import logging
import sys
from logging.handlers import RotatingFileHandler
from . import settings

# Third-party loggers that are noisy at INFO.
_QUIET_LOGGERS = ("urllib3", "requests")


def setup_logger(name: str = None, log_level: int = logging.INFO) -> logging.Logger:
    """
    Console output at log_level, plus a rotating file under settings.LOG_DIR
    that always records DEBUG so calculation traces survive a normal run.
    Calling it again only adjusts the console level.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    # Already configured: only the console level changes.
    if any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        for handler in logger.handlers:
            if not isinstance(handler, RotatingFileHandler):
                handler.setLevel(log_level)
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter("%(message)s"))

    settings.LOG_DIR.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        settings.LOG_DIR / settings.LOG_FILENAME,
        maxBytes=settings.LOG_MAX_BYTES,
        backupCount=settings.LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)

    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(logging.WARNING)

    return logger
