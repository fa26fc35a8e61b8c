import logging
import sys

from arm_submissions.utils.config import LOG_LEVEL


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def get_logger(name: str = "arm-submissions", level: str | None = None) -> logging.Logger:
    """Named stdout logger; repeated calls reuse the existing handler."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    level = (level or LOG_LEVEL).upper()
    logger.setLevel(level)
    # Flask and werkzeug attach to the root logger; keep our lines single
    logger.propagate = False
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    logger.addHandler(handler)
    return logger
