"""CLI logging setup: timestamped status lines, errors on stderr."""

import logging
import sys
from pathlib import Path

from launchpad.redact import SecretRedactingFilter

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class _StatusFormatter(logging.Formatter):
    """``[2024-01-01 12:00:00] message``, with a level tag for warnings and errors."""

    def format(self, record):
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return message.replace("] ", "] ERROR: ", 1)
        if record.levelno >= logging.WARNING:
            return message.replace("] ", "] WARNING: ", 1)
        return message


class _MaxLevelFilter(logging.Filter):
    """Only pass records strictly below ``level``."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record):
        return record.levelno < self.level


def setup_cli_logging(verbose: bool = False):
    """Configure the root logger for the deploy pipeline.

    INFO (and DEBUG with ``verbose``) goes to stdout, WARNING and above to
    stderr, so a fatal abort always reaches the error stream.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.handlers.clear()

    formatter = _StatusFormatter("[%(asctime)s] %(message)s", datefmt=DATE_FORMAT)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stdout_handler.addFilter(SecretRedactingFilter())

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)
    stderr_handler.setFormatter(formatter)
    stderr_handler.addFilter(SecretRedactingFilter())

    root.addHandler(stdout_handler)
    root.addHandler(stderr_handler)


def add_file_handler(log_file: Path) -> str:
    """Add a file handler that mirrors the pipeline output into ``log_file``.

    Returns:
        Path to the log file.
    """
    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
            datefmt=DATE_FORMAT,
        )
    )
    file_handler.addFilter(SecretRedactingFilter())
    logging.getLogger().addHandler(file_handler)

    return str(log_file)
