"""
In-memory sliding-window rate limiter.

Each (operation, user) pair keeps the timestamps of its recent requests.
Entries older than the window are pruned on every check. State lives in
process memory and is lost on restart; it is not shared between instances.
"""

import time
import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

from fastapi import Depends, HTTPException

from app.core.config import RATE_LIMITS, RATE_LIMIT_WINDOW_SECONDS
from app.dependencies.auth import get_current_user

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float  # epoch seconds when the oldest entry in the window expires


class SlidingWindowRateLimiter:
    def __init__(
        self,
        quotas: Dict[str, int],
        window_seconds: float,
        clock: Callable[[], float] = time.time,
    ):
        self.quotas = dict(quotas)
        self.window_seconds = window_seconds
        self._clock = clock
        self._store: Dict[Tuple[str, str], List[float]] = {}

    def check(self, operation: str, user_id: str) -> RateLimitResult:
        quota = self.quotas[operation]
        now = self._clock()
        window_start = now - self.window_seconds

        key = (operation, str(user_id))
        timestamps = [t for t in self._store.get(key, []) if t > window_start]
        self._store[key] = timestamps

        if len(timestamps) >= quota:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_at=(timestamps[0] if timestamps else now) + self.window_seconds,
            )

        timestamps.append(now)
        return RateLimitResult(
            allowed=True,
            remaining=quota - len(timestamps),
            reset_at=now + self.window_seconds,
        )

    def reset(self):
        self._store.clear()


rate_limiter = SlidingWindowRateLimiter(RATE_LIMITS, RATE_LIMIT_WINDOW_SECONDS)


def enforce_rate_limit(operation: str, user_id: str) -> RateLimitResult:
    result = rate_limiter.check(operation, user_id)
    if not result.allowed:
        retry_after = max(0, int(result.reset_at - time.time()) + 1)
        logger.warning(f"⚠️ Rate limit hit: {operation} for user {user_id}")
        raise HTTPException(
            status_code=429,
            detail={
                "message": f"Rate limit reached for {operation}. Please wait before trying again.",
                "remaining": 0,
                "reset_at": result.reset_at,
            },
            headers={"Retry-After": str(retry_after)},
        )
    return result


def rate_limited(operation: str):
    """FastAPI dependency that charges one request against `operation` for the caller."""

    async def dependency(user=Depends(get_current_user)):
        enforce_rate_limit(operation, user["id"])
        return user

    return dependency
