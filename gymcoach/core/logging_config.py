"""
Logging for the GymCoach API.

Everything goes to the console and to ``logs/gymcoach.log`` (errors also to
``gymcoach_error.log``). Broadcast delivery has its own file,
``gymcoach_scheduler.log``, so a pass that failed at 3am can be read without
wading through request lines.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

DEFAULT_LOG_DIR = Path(__file__).resolve().parents[2] / "logs"

MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers whose records also land in the scheduler log
SCHEDULER_LOGGERS = (
    "gymcoach.services.scheduler",
    "gymcoach.jobs",
    "gymcoach.services.broadcast_processor",
)

# Third-party loggers that are too chatty at DEBUG
_QUIET_LOGGERS = {
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "apscheduler": logging.WARNING,
    "httpx": logging.WARNING,
}

_formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)


def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(_formatter)
    return handler


def _reset_scheduler_channel() -> None:
    for name in SCHEDULER_LOGGERS:
        channel = logging.getLogger(name)
        for handler in list(channel.handlers):
            channel.removeHandler(handler)
            handler.close()


def setup_logging(
    app_name: str = "gymcoach",
    log_level: str = "",
    environment: str = "development",
    enable_console: bool = True,
    enable_file: bool = True,
    log_dir: Path | None = None,
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        app_name: Prefix for log file names
        log_level: Console level; empty means DEBUG in development, WARNING in production
        environment: Application environment (development, production)
        enable_console: Whether to log to stdout
        enable_file: Whether to write the rotating log files
        log_dir: Where log files go (defaults to ``logs/`` at the project root)

    Returns:
        Configured root logger
    """
    if not log_level:
        log_level = "WARNING" if environment == "production" else "DEBUG"
    console_level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # handlers filter
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _reset_scheduler_channel()

    if enable_console:
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(console_level)
        console.setFormatter(_formatter)
        root_logger.addHandler(console)

    if enable_file:
        directory = log_dir or DEFAULT_LOG_DIR
        root_logger.addHandler(_rotating_handler(directory / f"{app_name}.log", logging.DEBUG))
        root_logger.addHandler(_rotating_handler(directory / f"{app_name}_error.log", logging.ERROR))

        # Delivery records keep propagating to the main log as well
        scheduler_file = _rotating_handler(directory / f"{app_name}_scheduler.log", logging.INFO)
        for name in SCHEDULER_LOGGERS:
            logging.getLogger(name).addHandler(scheduler_file)

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class RequestLogger:
    """Writes one line per HTTP request; 4xx as warnings, 5xx as errors."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def log_request(
        self,
        method: str,
        path: str,
        status_code: int,
        duration_ms: float,
        client_ip: str | None = None,
        user_id: str | None = None,
    ) -> None:
        parts = [f"{method} {path} -> {status_code} ({duration_ms:.2f}ms)"]
        if client_ip:
            parts.append(f"ip={client_ip}")
        if user_id:
            parts.append(f"user={user_id}")
        line = " | ".join(parts)

        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        self.logger.log(level, line)
