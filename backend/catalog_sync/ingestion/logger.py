import logging
import sys

logger = logging.getLogger("catalog_ingest")
logger.setLevel(logging.DEBUG)

if not logger.handlers:  # Prevent adding handlers multiple times
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.INFO)

    formatter = logging.Formatter(
        "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

logger.propagate = False


def set_console_level(level: int) -> None:
    """Adjust the stdout handler, e.g. to DEBUG when running the CLI verbosely."""
    for handler in logger.handlers:
        handler.setLevel(level)
