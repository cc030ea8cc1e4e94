import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from wallet.core.errors import RateLimited

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    attempts: int
    reset_at: float


class RateLimiter:
    """Fixed-window attempt counter keyed by caller address.

    The first attempt opens a window; once `max_attempts` have been made
    inside it, further attempts are rejected until the window ends.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        name: str = "login",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.name = name
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        now = self._clock()
        with self._lock:
            w = self._windows.get(key)
            if w is None or now > w.reset_at:
                self._windows[key] = _Window(attempts=1, reset_at=now + self.window_seconds)
                return

            if w.attempts >= self.max_attempts:
                logger.warning("%s rate limit exceeded for %s", self.name, key)
                raise RateLimited()

            w.attempts += 1
