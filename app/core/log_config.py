"""Logging setup for the API process."""
import logging
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level_name = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()

    if not any(getattr(h, "_receipt_ledger", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._receipt_ledger = True
        root.addHandler(handler)

    root.setLevel(getattr(logging, level_name, logging.INFO))
    # Motor/pymongo are chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)
