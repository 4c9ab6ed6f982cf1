"""
Provides structured logging with thread-safety and log levels.

Every line carries a UTC timestamp, a level, a dotted event name and
key=value fields, e.g.::

    2024-05-01 10:00:00 | [INFO] | remux.complete | file="a.mkv" | worker="main"

Lines are written through tqdm so they never tear an active progress bar.
"""
import threading
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any

from tqdm import tqdm

_print_lock = threading.Lock()
_worker_id_map = {}
_worker_counter = 0
_worker_lock = threading.Lock()
_separator = " | "


class LogLevel(Enum):
    """Log level enumeration."""
    TRACE = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4

    @classmethod
    def from_name(cls, name: str, default: "LogLevel" = None) -> "LogLevel":
        """Resolve a level from its (case-insensitive) name, e.g. from an env var."""
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            return default if default is not None else cls.INFO


_current_level = LogLevel.INFO


def set_log_level(level: LogLevel) -> None:
    """Set the current log level."""
    global _current_level
    _current_level = level


def get_log_level() -> LogLevel:
    """Get the current log level."""
    return _current_level


def _format_kv(data: Dict[str, Any]) -> str:
    """Format key-value pairs for logging."""
    parts = []
    for key, value in data.items():
        if isinstance(value, str):
            # Keep log entries single-line
            escaped = value.replace("\r", "\\r").replace("\n", "\\n")
            escaped = escaped.replace('"', '\\"')
            parts.append(f'{key}="{escaped}"')
        elif value is None:
            parts.append(f'{key}=null')
        elif isinstance(value, bool):
            parts.append(f'{key}={str(value).lower()}')
        elif isinstance(value, float):
            parts.append(f'{key}={value:.3f}')
        else:
            parts.append(f'{key}={value}')
    return _separator.join(parts)


def _should_log(level: LogLevel) -> bool:
    return level.value >= _current_level.value


def log(event: str, level: LogLevel = LogLevel.INFO, **kwargs) -> None:
    """
    Structured logging function.

    Args:
        event: Event name (e.g., 'remux.start', 'rename.collision')
        level: Log level (TRACE, DEBUG, INFO, WARN, ERROR)
        **kwargs: Key-value pairs to log
    """
    if not _should_log(level):
        return

    if "worker" not in kwargs:
        kwargs["worker"] = get_worker_id()

    with _print_lock:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        header = f"{timestamp}{_separator}[{level.name}]{_separator}{event}"
        kv_str = _format_kv(kwargs) if kwargs else ""
        tqdm.write(f"{header}{_separator}{kv_str}" if kv_str else header)


def safe_print(*args, **kwargs) -> None:
    """
    Thread-safe print for plain CLI output (previews, summaries).
    Use log() for anything that should be machine-parseable.
    """
    with _print_lock:
        tqdm.write(" ".join(str(a) for a in args), file=kwargs.get("file"))


def get_worker_id() -> str:
    """Get current worker/thread identifier (numeric ID for non-main threads)."""
    global _worker_counter
    thread = threading.current_thread()

    if thread is threading.main_thread():
        return "main"

    if thread.ident in _worker_id_map:
        return _worker_id_map[thread.ident]

    with _worker_lock:
        _worker_counter += 1
        worker_id = f"w{_worker_counter}"
        _worker_id_map[thread.ident] = worker_id
        return worker_id
