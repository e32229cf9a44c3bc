import os
import sys
from datetime import datetime
from typing import Any

import pytz
import requests
from loguru import logger
from loguru._logger import Logger

from catalog_sync.core.config import settings


def dynamic_formatter(record: Any) -> str:
    base = "[{time:HH:mm:ss}] [{level}] {module}:{function}:{line} - {message}"

    extras = record.get("extra", {})
    if extras:
        base += " ("
        base += ", ".join(f"{key}={value}" for key, value in extras.items())
        base += ")\n"
    else:
        base += "\n"

    if record["exception"]:
        base += "{exception}"

    return base


def console_formatter(record: Any) -> str:
    base = "[<green>{time:HH:mm:ss}</green>] <level>[{level}]</level> {module}:{function}:<blue>{line}</blue> - {message}\n"

    if record["exception"]:
        base += "{exception}"

    return base


def notify_on_error(message: Any) -> None:
    record = message.record
    text = f"catalog_sync error in {record['module']}:{record['function']} at line {record['line']}\n\n{record['message']}"

    try:
        requests.post(
            f"https://api.telegram.org/bot{settings.TELEGRAM_BOT_TOKEN}/sendMessage",
            data={
                "chat_id": settings.TELEGRAM_USER_ID,
                "text": text,
            },
            timeout=10,
        )
    except requests.RequestException as e:
        sys.stderr.write(f"Failed to deliver error notification: {e}\n")


# (file name, level, retention, only when DEBUG)
FILE_SINKS: tuple[tuple[str, str, str | None, bool], ...] = (
    ("debug.log", "DEBUG", "7 days", True),
    ("error.log", "ERROR", "30 days", False),
    ("info.log", "INFO", None, False),
)


def setup_logger(name: str, log_dir: str | None = None) -> Logger:
    """Configure loguru sinks for a long-running catalog job.

    Files go to ``<log_dir>/<YYYY-MM-DD>/<name>/`` and rotate at midnight.
    """
    today = datetime.now(pytz.timezone(settings.LOG_TIMEZONE)).strftime("%Y-%m-%d")
    log_path = os.path.join(log_dir or settings.LOG_DIR, today, name)
    os.makedirs(log_path, exist_ok=True)

    logger.remove()

    for file_name, level, retention, debug_only in FILE_SINKS:
        if debug_only and not settings.DEBUG:
            continue
        verbose = level in ("DEBUG", "ERROR")
        logger.add(
            os.path.join(log_path, file_name),
            format=dynamic_formatter,
            level=level,
            rotation="00:00",
            compression="zip",
            enqueue=True,
            backtrace=verbose,
            diagnose=verbose,
            retention=retention,
        )

    logger.add(
        sys.stderr,
        format=console_formatter,
        level="DEBUG" if settings.DEBUG else "INFO",
        enqueue=True,
        colorize=True,
    )

    if settings.ENABLE_TELEGRAM:
        logger.add(notify_on_error, level="ERROR")

    return logger  # type: ignore
