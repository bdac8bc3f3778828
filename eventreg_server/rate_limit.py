# Copyright (C) 2025 EventReg Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""In-memory per-IP rate limiting (sliding window) for public and bulk endpoints."""

import asyncio
import logging
import threading
import time
from collections import deque

from fastapi import Depends, Request

from eventreg_server.errors import RateLimitError

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Sliding-window request log keyed by (client, scope). One instance per
    process, created in the app lifespan; start() launches the periodic sweep
    that evicts idle keys.
    """

    def __init__(self, sweep_interval: float = 60.0, clock=time.monotonic):
        self._buckets: dict[tuple[str, str], deque[float]] = {}
        self._windows: dict[str, float] = {}
        self._lock = threading.Lock()
        self._clock = clock
        self.sweep_interval = sweep_interval
        self._sweep_task: asyncio.Task | None = None

    def hit(self, client: str, scope: str, limit: int, window: float) -> bool:
        """Record a request. Returns False (and records nothing) when over the limit."""
        now = self._clock()
        key = (client, scope)
        with self._lock:
            self._windows[scope] = window
            bucket = self._buckets.setdefault(key, deque())
            cutoff = now - window
            while bucket and bucket[0] <= cutoff:
                bucket.popleft()
            if len(bucket) >= limit:
                return False
            bucket.append(now)
            return True

    def sweep(self) -> int:
        """Drop buckets whose newest request is outside their window. Returns count removed."""
        now = self._clock()
        with self._lock:
            stale = [
                key for key, bucket in self._buckets.items()
                if not bucket or bucket[-1] <= now - self._windows.get(key[1], 0)
            ]
            for key in stale:
                del self._buckets[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._buckets)

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            removed = self.sweep()
            if removed:
                logger.debug("Rate limiter evicted %d idle clients", removed)

    def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="rate-limit-sweep")

    async def stop(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None


def client_ip(request: Request) -> str:
    """Prefer X-Forwarded-For / X-Real-IP when behind a proxy."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host or "unknown"
    return "unknown"


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def rate_limited(scope: str, limit: int, window: float):
    """FastAPI dependency factory: 429 when the client exceeds `limit` requests per `window` seconds."""

    async def dependency(
        request: Request,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> None:
        client = client_ip(request)
        if not limiter.hit(client, scope, limit, window):
            logger.info("Rate limit hit: %s on %s", client, scope)
            raise RateLimitError()

    return dependency
