"""
Per-attempt handshake deadline
"""
import time
from typing import Callable, Optional

from ...core.constants import DEFAULT_TUNNEL_TIMEOUT


class Deadline:
    """
    Upper bound on how long one tunnel attempt may take.

    Started when the TCP connect begins and cancelled at the attempt's first
    terminal event. Blocking calls are bounded with ``remaining()``; once it
    reaches zero the deadline counts as fired.
    """

    def __init__(
        self,
        seconds: float = DEFAULT_TUNNEL_TIMEOUT,
        clock: Callable[[], float] = time.monotonic,
    ):
        if seconds <= 0:
            raise ValueError(f"Deadline must be positive, got {seconds}")
        self.seconds = seconds
        self._clock = clock
        self._expires_at: Optional[float] = None
        self._cancelled = False

    def start(self) -> "Deadline":
        if self._expires_at is not None:
            raise RuntimeError("Deadline already started")
        self._expires_at = self._clock() + self.seconds
        return self

    @property
    def active(self) -> bool:
        return self._expires_at is not None and not self._cancelled

    @property
    def expired(self) -> bool:
        return self.active and self._clock() >= self._expires_at

    def remaining(self) -> float:
        """Seconds left before the deadline fires"""
        if not self.active:
            raise RuntimeError("Deadline is not running")
        return max(0.0, self._expires_at - self._clock())

    def cancel(self) -> None:
        self._cancelled = True
