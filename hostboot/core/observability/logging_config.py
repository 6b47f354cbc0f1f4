"""
Logging configuration for the hostboot CLI.

``setup_logging`` runs once, from main.py, before any stage executes.
Modules only ever do ``logger = logging.getLogger(__name__)``.

Level precedence:
    --debug  >  --verbose  >  --quiet  >  HOSTBOOT_LOG_LEVEL  >  INFO

A second, file-only level is available through HOSTBOOT_LOG_FILE and
HOSTBOOT_LOG_FILE_LEVEL, so a quiet console can sit next to a full
DEBUG trail on disk.

Every handler carries a ``SecretFilter``. Once the pipeline holds the
admin credential it calls ``register_secret``, and from then on the
value is masked in every record, including subprocess stderr that the
host adapter logs at DEBUG.

Records go to stderr. stdout belongs to the wrapped tool's live output.
"""

from __future__ import annotations

import logging
import sys

MASK = "********"

# (format, datefmt) per console verbosity
_CONSOLE_FORMATS: dict[int, tuple[str, str | None]] = {
    logging.DEBUG: ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%H:%M:%S"),
    logging.INFO: ("%(asctime)s %(message)s", "%H:%M:%S"),
    logging.WARNING: ("%(levelname)s: %(message)s", None),
}
_FILE_FORMAT = ("%(asctime)s %(levelname)-5s %(name)s:%(lineno)d  %(message)s", "%Y-%m-%d %H:%M:%S")


class SecretFilter(logging.Filter):
    """Replace registered secret values in log records with ``MASK``."""

    def __init__(self) -> None:
        super().__init__()
        self._secrets: set[str] = set()

    def add(self, value: str) -> None:
        if value:
            self._secrets.add(value)

    def clear(self) -> None:
        self._secrets.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        if not self._secrets:
            return True
        message = record.getMessage()
        masked = message
        for secret in self._secrets:
            masked = masked.replace(secret, MASK)
        if masked != message:
            record.msg, record.args = masked, None
        return True


_secret_filter = SecretFilter()


def register_secret(value: str | None) -> None:
    """Mask ``value`` in every log record emitted from now on."""
    if value:
        _secret_filter.add(value)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    log_file_level: str | None = None,
) -> None:
    """Install the console (and optional file) handler on the root logger.

    Args:
        level: Console level name. Unknown names mean INFO.
        log_file: Append full-detail records to this path as well.
        log_file_level: Level for ``log_file``; defaults to ``level``.
    """
    console_level = _parse_level(level)
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_console_handler(console_level))

    lowest = console_level
    if log_file:
        file_level = _parse_level(log_file_level or level)
        root.addHandler(_file_handler(log_file, file_level))
        lowest = min(lowest, file_level)

    root.setLevel(lowest)
    logging.raiseExceptions = False


def _console_handler(level: int) -> logging.Handler:
    key = logging.DEBUG if level <= logging.DEBUG else logging.INFO if level <= logging.INFO else logging.WARNING
    fmt, datefmt = _CONSOLE_FORMATS[key]
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    handler.addFilter(_secret_filter)
    return handler


def _file_handler(path: str, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(*_FILE_FORMAT))
    handler.addFilter(_secret_filter)
    return handler


def _parse_level(level: str | None) -> int:
    """``"debug"`` → ``logging.DEBUG``; anything unrecognised → INFO."""
    numeric = getattr(logging, (level or "").upper(), None)
    return numeric if isinstance(numeric, int) else logging.INFO
