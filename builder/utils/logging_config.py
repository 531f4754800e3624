import logging
import sys
import os
from datetime import datetime
from typing import Optional, TextIO

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s - %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

RESET = "\x1b[0m"
LEVEL_COLORS = {
    logging.DEBUG: "\x1b[36m",
    logging.INFO: "\x1b[32m",
    logging.WARNING: "\x1b[33m",
    logging.ERROR: "\x1b[31m",
    logging.CRITICAL: "\x1b[31;1m",
}


def _is_terminal(stream) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class LevelColorFormatter(logging.Formatter):
    """
    Console formatter that colors the padded level name only.

    The message itself is never wrapped in escape codes, so container output
    echoed through the logger stays readable when the console is a pipe or a
    CI log. With ``use_color=False`` the output is identical to a plain
    ``logging.Formatter``.
    """

    def __init__(self, use_color: bool = True):
        super().__init__(CONSOLE_FORMAT, datefmt=DATE_FORMAT)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        padded = f"{levelname:<8}"
        color = LEVEL_COLORS.get(record.levelno) if self.use_color else None
        record.levelname = f"{color}{padded}{RESET}" if color else padded
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def setup_logging(level=logging.INFO, log_dir: Optional[str] = None, stream: Optional[TextIO] = None):
    """
    Setup centralized logging configuration.

    Console output goes to stderr so it never interleaves with the job's
    own stdout; colors are used only when that stream is a terminal. When
    ``log_dir`` is given, a daily file is written there too; an unwritable
    log directory only disables the file handler.
    """
    root_logger = logging.getLogger()
    
    # Clear existing handlers to prevent duplicate logs
    if root_logger.handlers:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            
    root_logger.setLevel(level)
    
    # 1. Console handler
    stream = stream if stream is not None else sys.stderr
    console_handler = logging.StreamHandler(stream)
    console_handler.setFormatter(LevelColorFormatter(use_color=_is_terminal(stream)))
    root_logger.addHandler(console_handler)
    
    # 2. File handler for persistence
    if log_dir:
        try:
            os.makedirs(log_dir, exist_ok=True)
            file_handler = logging.FileHandler(
                os.path.join(log_dir, f"builder_{datetime.now().strftime('%Y%m%d')}.log")
            )
        except OSError as e:
            root_logger.warning("File logging disabled (%s): %s", log_dir, e)
        else:
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)
    
    # Quiet the docker SDK's HTTP chatter unless debugging
    for logger_name in ["docker", "urllib3"]:
        logging.getLogger(logger_name).setLevel(max(level, logging.WARNING))

    logging.getLogger("builder").setLevel(level)
    root_logger.debug("Logging initialized (level=%s).", logging.getLevelName(level))
