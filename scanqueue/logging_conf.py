"""Logging configuration for the scanner, with Betterstack support."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from logtail import LogtailHandler

from scanqueue import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(identifier)s] %(message)s"


class ScanContextFilter(logging.Filter):
    """Give every record an ``identifier`` so the formatter never fails."""

    def filter(self, record):
        if not hasattr(record, "identifier"):
            record.identifier = "-"
        return True


def setup_logging(level=None):
    level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT)
    context_filter = ScanContextFilter()

    # Console
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(context_filter)
    root_logger.addHandler(console_handler)

    # Rotating scan log
    file_handler = RotatingFileHandler(settings.LOGS_DIR / "app.log", maxBytes=10 * 1024 * 1024, backupCount=5)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(context_filter)
    root_logger.addHandler(file_handler)

    # BetterStack
    if settings.BETTERSTACK_SOURCE_TOKEN:
        try:
            handler_kwargs = {"source_token": settings.BETTERSTACK_SOURCE_TOKEN}
            if settings.BETTERSTACK_INGEST_HOST:
                handler_kwargs["host"] = settings.BETTERSTACK_INGEST_HOST
            betterstack_handler = LogtailHandler(**handler_kwargs)
            betterstack_handler.setLevel(logging.DEBUG)
            betterstack_handler.addFilter(context_filter)
            root_logger.addHandler(betterstack_handler)
            root_logger.info(f"BetterStack logging enabled (host: {settings.BETTERSTACK_INGEST_HOST or 'default'})")
        except Exception as e:
            root_logger.warning(f"Failed to initialize BetterStack logging: {e}")

    # requests and psycopg2 chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logging.getLogger("scanqueue")


logger = setup_logging()
