import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

_configured = False

def configure_logging(level: Optional[str] = None):
    """Install one stream handler on the package logger.

    Safe to call more than once; later calls only adjust the level.
    """
    global _configured

    from academy_backend.settings import settings

    logger = logging.getLogger("academy_backend")
    logger.setLevel(level or settings.LOG_LEVEL)

    if _configured:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    _configured = True
    return logger
