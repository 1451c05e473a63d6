import json
import logging
import sys
import traceback
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any


class CustomJSONEncoder(json.JSONEncoder):
    def default(self, o):
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        if isinstance(o, Decimal):
            return str(o)
        if isinstance(o, Enum):
            return o.value
        return super().default(o)


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs structured JSON logs.
    """
    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            'timestamp': datetime.now(UTC).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        if hasattr(record, 'extra_data'):
            log_entry['data'] = record.extra_data

        return json.dumps(log_entry, ensure_ascii=False, cls=CustomJSONEncoder)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def number(self) -> int:
        return getattr(logging, self.value)


class EventKind(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    INFO = "info"


class AppLogger:
    """
    Centralized logging configuration for the rates service.
    """
    def __init__(self,
                 log_directory: str | Path = "logs",
                 console_level: str = "INFO",
                 file_level: str = "DEBUG",
                 max_file_size: int = 10 * 1024 * 1024,
                 backup_count: int = 5):
        self.log_directory = Path(log_directory)
        self.console_level = getattr(logging, console_level.upper())
        self.file_level = getattr(logging, file_level.upper())
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self.log_directory.mkdir(parents=True, exist_ok=True)
        self._setup_logging()

    def _setup_logging(self) -> None:
        root_logger = logging.getLogger()
        root_logger.handlers.clear()
        root_logger.setLevel(logging.DEBUG)

        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

        self._setup_console_handler(root_logger)
        self._setup_file_handler(root_logger, "system", "app.log", self.file_level)
        self._setup_file_handler(root_logger, "errors", "errors.log", logging.WARNING)

    def _setup_console_handler(self, logger: logging.Logger) -> None:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.console_level)
        console_format = '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s'
        console_formatter = logging.Formatter(console_format, datefmt='%H:%M:%S')
        console_handler.setFormatter(console_formatter)
        logger.addHandler(console_handler)

    def _setup_file_handler(self, logger: logging.Logger, folder: str, filename: str, level: int) -> None:
        log_dir = self.log_directory / folder
        log_dir.mkdir(exist_ok=True)

        file_handler = RotatingFileHandler(
            log_dir / filename,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(JSONFormatter())
        logger.addHandler(file_handler)


class RatesEventLogger:
    """
    Routes rates service events to the level configured for their kind.

    A kind whose level is None is switched off and never reaches the logger.
    """
    def __init__(self, logger: logging.Logger, levels: dict[EventKind, LogLevel | None]):
        self.logger = logger
        self.levels = levels

    def log_event(self, kind: EventKind, message: str, **context: Any) -> None:
        level = self.levels.get(kind)
        if level is None:
            return
        extra = {"extra_data": {"event_kind": kind.value, **context}}
        self.logger.log(level.number, message, extra=extra)

    def success(self, message: str, **context: Any) -> None:
        self.log_event(EventKind.SUCCESS, message, **context)

    def failure(self, message: str, **context: Any) -> None:
        self.log_event(EventKind.FAILURE, message, **context)

    def info(self, message: str, **context: Any) -> None:
        self.log_event(EventKind.INFO, message, **context)


app_logger: AppLogger | None = None


def configure_logging(log_directory: str | Path = "logs", console_level: str = "INFO") -> AppLogger:
    global app_logger
    if app_logger is None:
        app_logger = AppLogger(log_directory=log_directory, console_level=console_level)
    return app_logger
