"""
Response Sequencing

Rapid refreshes can overlap, and the slower response may arrive last.
Every view this service produces is stamped with a process-wide,
strictly increasing sequence number. A consumer keeps one sequencer per
display and only applies a response whose sequence is newer than the
last one it applied for that view.
"""

from itertools import count
from threading import Lock


class RefreshSequencer:
    """
    Issues sequence numbers and tracks the newest one accepted per view.

    Usage:
        seq = sequencer.next()
        ...
        if sequencer.accept("heatmap", response.sequence):
            render(response)
    """

    def __init__(self):
        self._counter = count(1)
        self._accepted: dict[str, int] = {}
        self._lock = Lock()

    def next(self) -> int:
        with self._lock:
            return next(self._counter)

    def accept(self, view: str, sequence: int) -> bool:
        """True (and remembered) if `sequence` is newer than anything accepted for `view`."""
        with self._lock:
            if sequence <= self._accepted.get(view, 0):
                return False
            self._accepted[view] = sequence
            return True

    def latest(self, view: str) -> int:
        with self._lock:
            return self._accepted.get(view, 0)
