"""Console and file logging for conversions."""

import logging
import logging.handlers
import json
import sys
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from pathlib import Path

from .logging_config import LoggingConfig

CONSOLE_FORMATS = {
    "simple": "%(levelname)-8s | %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s:%(lineno)d | %(message)s",
}
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class StructuredFormatter(logging.Formatter):
    """One JSON object per record.

    Worker threads copy media and write posts concurrently, so the thread
    name is part of every record.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        log_data.update(getattr(record, "extra_fields", {}))
        return json.dumps(log_data, default=str)


def _console_formatter(format: str) -> logging.Formatter:
    if format == "json":
        return StructuredFormatter()
    return logging.Formatter(fmt=CONSOLE_FORMATS.get(format, CONSOLE_FORMATS["simple"]), datefmt=DATE_FORMAT)


def setup_logging(config: Optional[LoggingConfig] = None, level: Optional[str] = None) -> None:
    """Configure the root logger from the ``[logging]`` config section.

    Args:
        config: Logging settings; defaults when omitted
        level: Overrides ``config.level`` (e.g. from ``--log-level``)
    """
    config = config or LoggingConfig()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, (level or config.level).upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(_console_formatter(config.format))
    root_logger.addHandler(console_handler)

    if config.file:
        log_file = Path(config.file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)

        # Files are always JSON lines, whatever the console shows
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=config.file_max_size_mb * 1024 * 1024,
            backupCount=config.file_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)


class LogContext:
    """Attach fields to every record created while the context is active.

    The converter wraps a run in ``LogContext(logger, archive=..., blog_prefix=...)``
    so JSON logs can be filtered per blog. Contexts nest; inner fields win.
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self._previous_factory = None

    def __enter__(self) -> "LogContext":
        previous_factory = self._previous_factory = logging.getLogRecordFactory()
        fields = dict(self.fields)

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous_factory(*args, **kwargs)
            record.extra_fields = {**getattr(record, "extra_fields", {}), **fields}
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        logging.setLogRecordFactory(self._previous_factory)
