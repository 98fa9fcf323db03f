"""
Counters for a tile download session.
"""

import threading
import time
from dataclasses import dataclass, field


@dataclass
class TileStats:
    """Tracks attempted, successful and failed tiles. Safe to update from any thread."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    bytes_downloaded: int = 0
    start_time: float = field(default_factory=time.monotonic)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    def record(self, success: bool, size: int = 0) -> int:
        """Counts one finished attempt and returns the number completed so far."""
        with self._lock:
            if success:
                self.succeeded += 1
                self.bytes_downloaded += size
            else:
                self.failed += 1
            return self.succeeded + self.failed
