# prism_shared/logging_setup.py
from __future__ import annotations

import logging
import os
import sys
import time
from pathlib import Path
from typing import Final, Tuple


if os.name == "nt":
    try:
        import colorama
        colorama.just_fix_windows_console()
    except ImportError:
        pass

_COLOURS: Final = {
    logging.DEBUG:    "\033[36m",
    logging.INFO:     "\033[32m",
    logging.WARNING:  "\033[33m",
    logging.ERROR:    "\033[31m",
    logging.CRITICAL: "\033[41m",
}
_RESET: Final = "\033[0m"
_FORMAT: Final = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
_DATEFMT: Final = "%Y-%m-%d %H:%M:%S"


class _ColourFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        colour = _COLOURS.get(record.levelno, "")
        if not colour:
            return super().format(record)
        original = record.levelname
        record.levelname = f"{colour}{original}{_RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class RecentDedupFilter(logging.Filter):
    """
    Drops duplicate (name, level, message) seen within a sliding window.
    Configure window via PRISM_LOG_DEDUP_MS (default: 250).
    """
    def __init__(self, window_ms: int = 250):
        super().__init__()
        self.window_ms = window_ms
        self._last: dict[Tuple[str, int, str], float] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            key = (record.name, record.levelno, record.getMessage())
        except (TypeError, ValueError):
            return True
        now = time.monotonic() * 1000.0
        last = self._last.get(key)
        self._last[key] = now
        if last is None:
            return True
        return (now - last) > self.window_ms


def _with_dedup(handler: logging.Handler, level: int, dedup_ms: int) -> logging.Handler:
    handler.setLevel(level)
    if dedup_ms > 0:
        handler.addFilter(RecentDedupFilter(dedup_ms))
    return handler


def _env_flag(name: str, default: str = "1") -> bool:
    return str(os.getenv(name, default)).lower() not in ("0", "false", "no", "off")


def setup_logging(
    env: str | None = None,
    *,
    enable_console: bool | None = None,
    log_file: str | Path | None = None,
) -> None:
    """
    Env overrides:
      PRISM_LOG_CONSOLE=0/1
      PRISM_LOG_FILE=<path>        (unset: no file; always DEBUG)
      PRISM_LOG_DEDUP_MS=<int>     (default 250; 0 disables)

    The console goes to stderr so projected documents on stdout stay
    machine-readable.
    """
    env = (env or os.getenv("LOGGING_LEVEL") or "beta").lower()
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove existing handlers to prevent duplication on reinit
    for h in list(root.handlers):
        root.removeHandler(h)

    use_console = _env_flag("PRISM_LOG_CONSOLE") if enable_console is None else bool(enable_console)
    log_file    = log_file or os.getenv("PRISM_LOG_FILE") or None
    dedup_ms    = int(os.getenv("PRISM_LOG_DEDUP_MS", "250"))

    if use_console:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(_ColourFormatter(_FORMAT, datefmt=_DATEFMT))
        console_level = logging.DEBUG if env == "beta" else logging.WARNING
        root.addHandler(_with_dedup(console, console_level, dedup_ms))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        sink = logging.FileHandler(path, encoding="utf-8", delay=True)
        sink.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
        root.addHandler(_with_dedup(sink, logging.DEBUG, dedup_ms))

    root.info(
        "Logging initialised in %s mode (console=%s, file=%s, dedup=%sms)",
        env.upper(),
        use_console,
        log_file,
        dedup_ms,
    )


def get_logger(name: str | None = None) -> logging.Logger:
    root = logging.getLogger()
    if not root.handlers:
        setup_logging()
    return logging.getLogger(name)
