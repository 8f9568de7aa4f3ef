import logging
import os
import sys
from typing import List, Optional

ROOT_LOGGER = "statement_scan"

FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def _coerce_level(value: Optional[str]) -> int:
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    if isinstance(value, int):
        return value
    return logging.INFO


def _handlers(formatter: logging.Formatter) -> List[logging.Handler]:
    # stdout carries CLI JSON, so log lines go to stderr.
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    log_file = os.environ.get("LOG_FILE")
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
        except OSError as exc:
            print(f"LOG_FILE {log_file!r} could not be opened: {exc}", file=sys.stderr)
    for handler in handlers:
        handler.setFormatter(formatter)
    return handlers


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if getattr(root, "_statement_scan_configured", False):
        return root
    root.setLevel(_coerce_level(os.environ.get("LOG_LEVEL", "INFO")))
    for handler in _handlers(logging.Formatter(fmt=FORMAT, datefmt=DATE_FORMAT)):
        root.addHandler(handler)
    # uvicorn configures the process root logger; keep our lines out of it
    root.propagate = False
    setattr(root, "_statement_scan_configured", True)
    return root


def get_logger(name: str) -> logging.Logger:
    """Return ``statement_scan.<name>``.

    Handlers live on the package logger and are set up on first use from
    LOG_LEVEL (default INFO) and LOG_FILE (optional, appended to).
    """
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
