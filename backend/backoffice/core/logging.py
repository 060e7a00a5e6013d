import logging
import sys
from typing import Optional

from backoffice.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Ensure the root logger has handlers and the desired level so INFO logs surface everywhere.
    Uvicorn configures handlers before importing our code, Celery/scripts usually do not.
    """
    resolved_level = (level or settings.LOG_LEVEL or "INFO").upper()
    root_logger = logging.getLogger()

    if not root_logger.handlers:
        logging.basicConfig(
            level=resolved_level,
            format=LOG_FORMAT,
            handlers=[logging.StreamHandler(sys.stdout)],
        )
    else:
        root_logger.setLevel(resolved_level)

    logging.captureWarnings(True)
    return logging.getLogger("backoffice")
