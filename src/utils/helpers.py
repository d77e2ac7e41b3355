import logging
import re
import sys
from datetime import datetime
from pathlib import Path


def setup_logging(logger_name, level="INFO", log_file=None):
    """Configure logging to console, and optionally to a file with DEBUG detail"""

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Create logger
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)

    # Console handler (requested level and above)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (DEBUG and above)
    if log_file is not None:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def timestamp(now=None):
    """Run timestamp used in output folder names, e.g. 20250131_142501"""
    now = now or datetime.now()
    return now.strftime("%Y%m%d_%H%M%S")


def collapse_whitespace(text):
    return re.sub(r"\s+", " ", str(text)).strip()


def ensure_dir(path):
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path
