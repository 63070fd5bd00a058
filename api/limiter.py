"""
api/limiter.py -- Per-client token-bucket rate limiter for the gateway.

Each client identifier (normally the peer IP) owns a bucket holding up to
`capacity` tokens that refills continuously at `refill_per_second`. A request
spends one token; an empty bucket means HTTP 429.

    capacity=4, refill=2/s:  4 back-to-back requests pass, the 5th fails,
                             0.5 s later exactly one more passes.

Buckets are created lazily and live only in this process. sweep_loop() runs
in the gateway lifespan and evicts buckets idle longer than `idle_seconds`,
so a stream of one-off clients cannot grow the map without bound. The task
is cancelled on shutdown.

Concurrency: one threading.Lock guards the whole bucket map. allow() is a
handful of float operations, so contention stays low at this scale; sharding
the lock per bucket is the next step if it ever shows up in profiles.
"""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fastapi import Request

from core.log import get_logger


@dataclass
class _Bucket:
    tokens: float
    updated: float
    last_seen: float


class RateLimiter:
    """Token bucket per client identifier.

    Usage:
        limiter = RateLimiter(capacity=4, refill_per_second=2.0)
        if not limiter.allow("203.0.113.7"):
            ...  # reject with 429
        limiter.sweep()   # normally done by sweep_loop()
    """

    def __init__(
        self,
        capacity: int = 4,
        refill_per_second: float = 2.0,
        idle_seconds: float = 180.0,
        clock: Callable[[], float] = time.monotonic,
        logger: logging.Logger | None = None,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_per_second <= 0:
            raise ValueError("refill_per_second must be positive")
        self.capacity = capacity
        self.refill_per_second = refill_per_second
        self.idle_seconds = idle_seconds
        self._clock = clock
        self._logger = logger or get_logger("ratelimit")
        self._buckets: dict[str, _Bucket] = {}
        self._lock = threading.Lock()

    def allow(self, client_id: str) -> bool:
        """Spend one token for client_id. False when its bucket is empty."""
        now = self._clock()
        with self._lock:
            bucket = self._buckets.get(client_id)
            if bucket is None:
                bucket = _Bucket(tokens=float(self.capacity), updated=now, last_seen=now)
                self._buckets[client_id] = bucket
            else:
                elapsed = max(0.0, now - bucket.updated)
                bucket.tokens = min(float(self.capacity), bucket.tokens + elapsed * self.refill_per_second)
                bucket.updated = now
                bucket.last_seen = now
            if bucket.tokens < 1.0:
                return False
            bucket.tokens -= 1.0
            return True

    def sweep(self) -> int:
        """Evict buckets not seen for idle_seconds. Returns how many were removed."""
        cutoff = self._clock() - self.idle_seconds
        with self._lock:
            stale = [key for key, bucket in self._buckets.items() if bucket.last_seen < cutoff]
            for key in stale:
                del self._buckets[key]
            remaining = len(self._buckets)
        if stale:
            self._logger.debug("swept %d idle rate-limit buckets (%d remain)", len(stale), remaining)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


async def sweep_loop(limiter: RateLimiter, interval: float = 60.0) -> None:
    """Sweep idle buckets every `interval` seconds until cancelled.

    Started with asyncio.create_task() in the gateway lifespan; task.cancel()
    on shutdown raises CancelledError out of asyncio.sleep and ends the loop.
    """
    while True:
        await asyncio.sleep(interval)
        limiter.sweep()


# ---------------------------------------------------------------------------
# Client identification
# ---------------------------------------------------------------------------


def _is_trusted(ip: str, trusted_proxies: list[str]) -> bool:
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return False
    for entry in trusted_proxies:
        try:
            if address in ipaddress.ip_network(entry, strict=False):
                return True
        except ValueError:
            continue
    return False


def client_id(request: Request, trusted_proxies: list[str] | None = None) -> str:
    """Return the identifier a request is rate limited under.

    The direct peer address, unless the peer is a trusted proxy: then the
    first X-Forwarded-For entry (or X-Real-IP) names the client. Forwarding
    headers from untrusted peers are ignored, since any client can send them.
    """
    peer = request.client.host if request.client else "unknown"
    if not trusted_proxies or not _is_trusted(peer, trusted_proxies):
        return peer
    forwarded = request.headers.get("X-Forwarded-For", "")
    first = forwarded.split(",")[0].strip()
    if first:
        return first
    real_ip = request.headers.get("X-Real-IP", "").strip()
    return real_ip or peer
