from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "reprofile"


def setup_logging(log_dir: str = "logs", *, verbose: bool = False) -> logging.Logger:
    """
    File log (reprofile.log, rotated) gets everything at the logger level.
    Console shows bare messages; debug lines only with verbose.
    """
    os.makedirs(log_dir, exist_ok=True)
    level = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    if not file_handlers:
        fh = RotatingFileHandler(os.path.join(log_dir, "reprofile.log"), maxBytes=1_000_000, backupCount=5, encoding="utf-8")
        fh.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(fh)

    consoles = [h for h in logger.handlers if isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)]
    if not consoles:
        sh = logging.StreamHandler()
        sh.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(sh)
        consoles = [sh]
    for sh in consoles:
        sh.setLevel(level)

    return logger
