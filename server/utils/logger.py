# server/utils/logger.py

import  sys
import  logging
from    config      import credentials

COLORS = {
    'DEBUG':    '\033[94m',  # Blue
    'INFO':     '\033[92m',  # Green
    'WARNING':  '\033[93m',  # Yellow
    'ERROR':    '\033[91m',  # Red
    'CRITICAL': '\033[95m',  # Magenta
    'RESET':    '\033[0m',   # Reset color
}

LOG_FORMAT  = "%(asctime)s | %(name)-15s | %(levelcolor)s | %(threadName)-18s  | %(message)s"
DATE_FORMAT = "%H:%M:%S"


class ColorFormatter(logging.Formatter):
    def format(self, record):
        color = COLORS.get(record.levelname, COLORS['RESET'])
        record.levelcolor = f"{color}{record.levelname:<7}{COLORS['RESET']}"
        return super().format(record)


def getLogger(name: str) -> logging.Logger:
    """Named logger writing coloured, pipe separated lines to stdout."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(credentials.LOG_LEVEL)
        logger.propagate = False
    return logger
