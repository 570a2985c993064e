"""Logging configuration"""
import logging
import sys
from spa_booking.config import settings


def setup_logging(verbose=True):
    """Configure application logging"""
    if verbose:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if not verbose:
        # Silence noisy loggers
        for name in ["sqlalchemy", "sqlalchemy.engine", "uvicorn", "uvicorn.access", "twilio.http_client"]:
            logging.getLogger(name).setLevel(logging.ERROR)
