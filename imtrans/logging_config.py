import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'

def setup_logger(name="imtrans", level=logging.INFO):
    """Set up and return the package logger with a standard configuration"""
    logger = logging.getLogger(name)

    # Avoid duplicate handlers if setup_logger is called multiple times
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    set_level(level, name)
    return logger

def set_level(level, name="imtrans"):
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)

def set_debug(enabled: bool, name="imtrans"):
    set_level(logging.DEBUG if enabled else logging.INFO, name)
