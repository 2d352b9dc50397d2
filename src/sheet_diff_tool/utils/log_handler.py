"""
Logging setup and an in-memory log buffer.

The buffer keeps the most recent records so a front end can show what
the engine and the edit session did without reading the console.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
PACKAGE_PREFIX = "sheet_diff_tool."


@dataclass(frozen=True)
class LogEntry:
    """One buffered record."""

    created: datetime
    levelno: int
    logger_name: str
    text: str

    @property
    def level(self) -> str:
        return logging.getLevelName(self.levelno)

    @property
    def source(self) -> str:
        """Logger name relative to the package, e.g. ``core.merger``."""
        if self.logger_name.startswith(PACKAGE_PREFIX):
            return self.logger_name[len(PACKAGE_PREFIX):]
        return self.logger_name

    def render(self, with_time: bool = True, with_source: bool = True) -> str:
        head = f"[{self.level}]"
        if with_time:
            head = f"{self.created:%H:%M:%S} {head}"
        if with_source:
            head = f"{head} {self.source}"
        return f"{head} {self.text}"


EntryCallback = Callable[[LogEntry], None]


class MemoryLogHandler(logging.Handler):
    """
    Logging handler holding the last ``capacity`` records.

    Subscribers are called with every new entry, on the thread that logged it.
    """

    _shared: Optional["MemoryLogHandler"] = None
    _shared_lock = threading.Lock()

    def __init__(self, capacity: int = 1000):
        super().__init__(level=logging.DEBUG)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._subscribers: list[EntryCallback] = []

    @classmethod
    def shared(cls) -> "MemoryLogHandler":
        """Process-wide buffer installed by ``setup_logging``."""
        with cls._shared_lock:
            if cls._shared is None:
                cls._shared = cls()
            return cls._shared

    @property
    def capacity(self) -> Optional[int]:
        return self._entries.maxlen

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = LogEntry(
                created=datetime.fromtimestamp(record.created),
                levelno=record.levelno,
                logger_name=record.name,
                text=record.getMessage(),
            )
            with self.lock:
                self._entries.append(entry)
                subscribers = list(self._subscribers)
            for callback in subscribers:
                callback(entry)
        except Exception:
            self.handleError(record)

    def entries(self, min_level: int = logging.NOTSET, source: Optional[str] = None) -> list[LogEntry]:
        """Buffered entries at or above ``min_level``, optionally from one source prefix."""
        with self.lock:
            snapshot = list(self._entries)
        return [
            e for e in snapshot
            if e.levelno >= min_level
            and (source is None or e.source.startswith(source))
        ]

    def subscribe(self, callback: EntryCallback) -> None:
        with self.lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: EntryCallback) -> None:
        with self.lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)


def setup_logging(level: int = logging.INFO) -> MemoryLogHandler:
    """
    Route package logging to the shared buffer and to stderr.

    Calling it again only changes the level.
    """
    buffer = MemoryLogHandler.shared()
    root = logging.getLogger()
    root.setLevel(level)

    if buffer not in root.handlers:
        root.addHandler(buffer)

    console = next(
        (h for h in root.handlers if getattr(h, "name", None) == "sheet-diff-console"),
        None,
    )
    if console is None:
        console = logging.StreamHandler()
        console.set_name("sheet-diff-console")
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        root.addHandler(console)
    console.setLevel(level)

    return buffer
