import logging
import os

import coloredlogs

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Modules log through children of this logger (backend.store, backend.auth, backend.api).
logger = logging.getLogger("backend")


def setup_logging(level: str = "INFO", log_file: str = "") -> logging.Logger:
    # Configure coloredlogs for console output
    coloredlogs.install(level=level, logger=logger, fmt=LOG_FORMAT)

    if log_file:
        path = os.path.abspath(log_file)
        known = {getattr(h, "baseFilename", None) for h in logger.handlers}
        if path not in known:
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(file_handler)

    return logger
