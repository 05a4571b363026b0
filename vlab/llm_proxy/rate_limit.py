"""Fixed-window per-user rate limiting on top of ``limits``."""

from __future__ import annotations

import math
import time
from typing import Optional

import structlog
from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter

from ..errors import RateLimitExceeded

__all__ = ["RateLimiter", "create_storage"]

logger = structlog.get_logger(__name__)

NAMESPACE = "vlab-generate"


def create_storage(uri: Optional[str] = None) -> Storage:
    """``memory://`` (the default) is process-local; ``redis://...`` is shared."""

    if not uri or uri == "memory://":
        return MemoryStorage()
    return storage_from_string(uri)


class RateLimiter:
    def __init__(
        self,
        storage: Optional[Storage] = None,
        *,
        max_requests: int = 20,
        window_seconds: int = 60,
    ) -> None:
        if max_requests < 1 or window_seconds < 1:
            raise ValueError("max_requests and window_seconds must be positive")
        self.storage = storage if storage is not None else MemoryStorage()
        self.item = RateLimitItemPerSecond(max_requests, int(window_seconds), namespace=NAMESPACE)
        self.strategy = FixedWindowRateLimiter(self.storage)

    @property
    def max_requests(self) -> int:
        return self.item.amount

    def check(self, key: str) -> None:
        """Record a request for ``key``; raise ``RateLimitExceeded`` over quota.

        Rejected requests still count toward the current window.
        """

        if self.strategy.hit(self.item, key):
            return
        reset_at, _remaining = self.strategy.get_window_stats(self.item, key)
        retry_after = max(1, math.ceil(reset_at - time.time()))
        logger.info("rate_limit_exceeded", key=key, limit=self.max_requests, retry_after=retry_after)
        raise RateLimitExceeded(retry_after=retry_after)
