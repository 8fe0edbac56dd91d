"""In-memory log history for the live capture log pane."""

from __future__ import annotations

import logging
import threading
import time
from collections import deque
from typing import List

LOGGER = logging.getLogger("echosense.events")


class LogBuffer:
    """Keeps the most recent ``capacity`` timestamped event lines."""

    def __init__(self, capacity: int = 200) -> None:
        if capacity <= 0:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._lines: deque[str] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def add(self, message: str) -> None:
        stamp = time.strftime("%H:%M:%S")
        with self._lock:
            self._lines.append(f"[{stamp}] {message}")
        LOGGER.info(message)

    def get(self) -> List[str]:
        with self._lock:
            return list(self._lines)

    def clear(self) -> None:
        with self._lock:
            self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)


__all__ = ["LogBuffer"]
