import threading
from collections import deque
from datetime import datetime
from typing import Deque, Optional, Tuple
from abwalk.domain.models import MediaFile

class UIState:
    """Thread-safe state read by the live display and written by UIManager."""

    def __init__(self, activity_feed_max_items: int = 8):
        self._lock = threading.RLock()

        # Discovery counters
        self.discovery_finished = False
        self.files_found = 0
        self.files_to_process = 0
        self.excluded_encoded = 0
        self.excluded_sample = 0
        self.excluded_small = 0

        # Progress
        self.position = 0  # files that reached a terminal state
        self.total = 0
        self.current_file: Optional[MediaFile] = None
        self.current_quality: Optional[int] = None
        self.current_attempt = 0

        # Outcome counters
        self.succeeded_count = 0
        self.exhausted_count = 0
        self.transient_limit_count = 0
        self.attempt_count = 0

        # (style, message) pairs, newest first
        self.activity: Deque[Tuple[str, str]] = deque(maxlen=activity_feed_max_items)

        self.start_time: Optional[datetime] = None
        self.finished = False
        self.aborted = False
        self.abort_reason = ""

    def add_activity(self, style: str, message: str):
        with self._lock:
            self.activity.appendleft((style, message))

    @property
    def percent(self) -> float:
        with self._lock:
            if self.total == 0:
                return 100.0 if self.finished else 0.0
            return 100.0 * self.position / self.total

    def elapsed_seconds(self, now: Optional[datetime] = None) -> float:
        with self._lock:
            if self.start_time is None:
                return 0.0
            return ((now or datetime.now()) - self.start_time).total_seconds()

    def eta_seconds(self, now: Optional[datetime] = None) -> Optional[float]:
        """Average time per finished file times the files left."""
        with self._lock:
            if self.position == 0 or self.total == 0:
                return None
            remaining = self.total - self.position
            return self.elapsed_seconds(now) / self.position * remaining
