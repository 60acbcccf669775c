"""Rate-limit state reported by the CareHQ API."""

import logging
import threading
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    HEADER_RATE_LIMIT,
    HEADER_RATE_LIMIT_REMAINING,
    HEADER_RATE_LIMIT_RESET,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    """
    The last rate limit reported by the API.

    Attributes:
        limit: Maximum number of requests per second for the API key
        reset: Time (seconds since epoch) when the current limit resets
        remaining: Requests remaining before the next reset
    """

    limit: int
    reset: float
    remaining: int


class RateLimitTracker:
    """
    Keeps the latest rate-limit snapshot seen in response headers.

    The snapshot is advisory: it is never used to throttle requests. It is
    None until a response carries rate-limit headers.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._snapshot: Optional[RateLimit] = None

    @property
    def snapshot(self) -> Optional[RateLimit]:
        return self._snapshot

    def update(self, headers: Mapping[str, str]) -> Optional[RateLimit]:
        """Store the rate limit from response headers, if they carry one."""
        if HEADER_RATE_LIMIT not in headers:
            return self._snapshot

        try:
            snapshot = RateLimit(
                limit=int(headers[HEADER_RATE_LIMIT]),
                reset=float(headers[HEADER_RATE_LIMIT_RESET]),
                remaining=int(headers[HEADER_RATE_LIMIT_REMAINING])
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed rate-limit headers: %s", e)
            return self._snapshot

        with self._lock:
            self._snapshot = snapshot
        return snapshot
