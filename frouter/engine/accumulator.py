"""Quiet-period batching of pending paths."""

import time
from pathlib import Path
from typing import Callable, Optional


class EventAccumulator:
    """Distinct paths observed since the last flush.

    A batch becomes ready once no path has been added for longer than the
    delay, so a burst of arrivals is flushed together as soon as activity
    subsides. The batch is cleared only by drain_all().
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._paths: dict[Path, None] = {}
        self._last_event_time: Optional[float] = None

    def add(self, path: Path) -> bool:
        """Append the path if new and mark now as the last event time.

        Returns:
            True if the path was not already pending
        """
        path = Path(path)
        is_new = path not in self._paths
        if is_new:
            self._paths[path] = None
        self._last_event_time = self._clock()
        return is_new

    def ready(self, delay: float, now: Optional[float] = None) -> bool:
        """True iff the batch is non-empty and quiet for more than delay."""
        if not self._paths or self._last_event_time is None:
            return False
        if now is None:
            now = self._clock()
        return now - self._last_event_time > delay

    def drain_all(self) -> list[Path]:
        """Return pending paths in first-added order and reset the batch."""
        paths = list(self._paths)
        self._paths.clear()
        self._last_event_time = None
        return paths

    @property
    def last_event_time(self) -> Optional[float]:
        return self._last_event_time

    def __contains__(self, path: Path) -> bool:
        return Path(path) in self._paths

    def __len__(self) -> int:
        return len(self._paths)

    def __bool__(self) -> bool:
        return bool(self._paths)
