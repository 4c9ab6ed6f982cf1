"""
Directory-changed notifications.

Batch operations finish by announcing that something changed under a
directory so listing or caching layers can re-scan it. The notification
has no payload beyond the directory and is fire-and-forget: a failing
listener is logged and never reaches the operation that fired it.
"""
from pathlib import Path
from typing import Callable, List

from reelkit.utils.logger import LogLevel, log

Listener = Callable[[Path], None]


class DirectoryEvents:
    """Fan-out hub for "refresh this directory" notifications."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify_changed(self, directory: Path) -> None:
        log("events.refresh", LogLevel.DEBUG, directory=str(directory), listeners=len(self._listeners))
        for listener in list(self._listeners):
            try:
                listener(Path(directory))
            except Exception as e:
                log("events.listener_failed", LogLevel.WARN, directory=str(directory), error=str(e))
