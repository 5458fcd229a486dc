"""Fixed-window login rate limiting backed by the Redis cache."""

import logging
from typing import Optional

from fastapi import HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from app.core.cache import CacheManager
from app.utils.constants import LOGIN_ATTEMPTS_KEY_PREFIX
from app.utils.helpers import client_ip

logger = logging.getLogger(__name__)


class LoginRateLimiter:
    """
    Counts login attempts per client IP in a fixed window.

    Fails open: without a reachable cache every attempt is allowed.
    """

    def __init__(self, cache: Optional[CacheManager], max_attempts: int, window_seconds: int):
        self.cache = cache
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds

    def _key(self, client_id: str) -> str:
        return f"{LOGIN_ATTEMPTS_KEY_PREFIX}:{client_id}"

    def hit(self, client_id: str) -> bool:
        """Record an attempt. Returns False once the window's budget is spent."""
        if self.cache is None:
            return True

        count = self.cache.incr_with_ttl(self._key(client_id), self.window_seconds)
        if count is None:
            return True
        return count <= self.max_attempts

    async def __call__(self, request: Request) -> None:
        client_id = client_ip(request)
        if not await run_in_threadpool(self.hit, client_id):
            logger.warning(f"Login rate limit exceeded for {client_id}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many login attempts. Try again later.",
                headers={"Retry-After": str(self.window_seconds)},
            )
