"""Rate limiting for forced JWK set refreshes.

When a token names a kid that the cached JWK set does not contain, the key
provider may refetch the set once, in case Google has rotated its keys. The
RefreshGate caps those forced refreshes so that a stream of tokens with
random kids cannot turn into a stream of outbound requests.

The gate allows at most one refresh per configured interval, rejects further
attempts and logs a warning once the denial count reaches the alert
threshold.
"""

from __future__ import annotations

import threading
import time
from typing import Final

import structlog

logger = structlog.get_logger(__name__)

_DEFAULT_INTERVAL: Final[float] = 60.0
"""Default minimum interval between forced refreshes in seconds."""

_DEFAULT_ALERT_THRESHOLD: Final[int] = 40
"""Default number of denials before alerting (per interval)."""


class RefreshGate:
    """Thread-safe rate limiter for forced JWK set refreshes.

    Thread Safety:
        All operations are protected by an internal lock.

    Attributes:
        _min_interval: Minimum seconds between allowed refreshes.
        _alert_threshold: Number of denials before alerting.
        _lock: Thread synchronization lock.
        _next_allowed_at: Unix timestamp when next refresh is allowed.
        _retry_attempts: Count of denied attempts since last allow.
    """

    def __init__(
        self,
        min_interval: float = _DEFAULT_INTERVAL,
        alert_threshold: int = _DEFAULT_ALERT_THRESHOLD,
    ) -> None:
        """Initialize the refresh gate.

        Args:
            min_interval: Minimum seconds between allowed refreshes.
            alert_threshold: Number of denied attempts before a warning is logged.

        Raises:
            ValueError: If min_interval or alert_threshold are invalid.
        """
        if min_interval <= 0:
            raise ValueError(f"min_interval must be positive, got {min_interval}")
        if alert_threshold < 1:
            raise ValueError(f"alert_threshold must be at least 1, got {alert_threshold}")

        self._min_interval = min_interval
        self._alert_threshold = alert_threshold

        self._lock = threading.Lock()
        self._next_allowed_at: float = 0.0
        self._retry_attempts: int = 0

    @property
    def denied_attempts(self) -> int:
        with self._lock:
            return self._retry_attempts

    def allow(self) -> bool:
        """Check if a forced refresh is allowed now.

        Returns:
            True if the refresh is allowed (and the interval restarts).
            False if it is denied (too soon since the last one).
        """
        now = time.time()

        with self._lock:
            if now < self._next_allowed_at:
                self._retry_attempts += 1

                if self._retry_attempts == self._alert_threshold:
                    logger.warning(
                        "jwks_refresh_throttled",
                        denied_attempts=self._retry_attempts,
                        retry_after_seconds=round(self._next_allowed_at - now, 3),
                    )

                return False

            self._next_allowed_at = now + self._min_interval
            self._retry_attempts = 0
            return True
