"""Logging configuration for the revision checker."""

import json
import logging
import logging.handlers
import sys
from datetime import datetime

from config import _config_dir


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_data'):
            log_entry['extra'] = record.extra_data

        return json.dumps(log_entry, ensure_ascii=False)


class MaxLevelFilter(logging.Filter):
    """Pass only records below a given level."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.max_level


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    json_format: bool = False,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> logging.Logger:
    """
    Setup logging for a checker run.

    Console output is split: records below WARNING go to standard output as
    bare messages (the run report), WARNING and above go to standard error.
    `level` filters debug output and diagnostics; INFO records always reach
    standard output so the report survives a quiet level.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to also log to a rotating file in the config dir
        log_to_console: Whether to log to stdout/stderr
        json_format: Whether to use JSON formatting for the file log
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    console_level = _level(level)
    root_logger.setLevel(logging.DEBUG if log_to_file else min(console_level, logging.INFO))

    # Clear existing handlers
    root_logger.handlers.clear()

    if log_to_console:
        plain = logging.Formatter('%(message)s')

        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.setLevel(min(console_level, logging.INFO))
        stdout_handler.addFilter(MaxLevelFilter(logging.WARNING))
        stdout_handler.setFormatter(plain)
        root_logger.addHandler(stdout_handler)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(max(logging.WARNING, console_level))
        stderr_handler.setFormatter(plain)
        root_logger.addHandler(stderr_handler)

    if log_to_file:
        log_dir = _config_dir() / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        if json_format:
            formatter = JSONFormatter()
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(module)s:%(funcName)s:%(lineno)d - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )

        file_handler = logging.handlers.RotatingFileHandler(
            log_dir / "checker.log",
            maxBytes=max_file_size,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def _level(name: str) -> int:
    value = getattr(logging, str(name).upper(), logging.INFO)
    return value if isinstance(value, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(name)


def log_performance(logger: logging.Logger, operation: str, duration: float, **kwargs):
    """Log performance metrics at debug level."""
    extra_data = {
        'operation': operation,
        'duration_ms': round(duration * 1000, 2),
        **kwargs
    }
    logger.debug(f"Performance: {operation} took {duration:.3f}s", extra={'extra_data': extra_data})
