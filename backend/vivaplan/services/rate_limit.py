from __future__ import annotations

from collections import deque
from threading import Lock
import time

from fastapi import HTTPException, Request, status


class SlidingWindowLimiter:
    """Per-key sliding window of request timestamps, kept in process memory."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = Lock()

    def hit(self, key: str, *, limit: int, window_seconds: int) -> int | None:
        """Record one hit. Returns None when allowed, else the seconds to wait."""
        now = self._clock()
        cutoff = now - window_seconds
        with self._lock:
            # Drop keys with no hit left inside the window.
            for stale in [name for name, stamps in self._hits.items() if not stamps or stamps[-1] <= cutoff]:
                del self._hits[stale]
            hits = self._hits.setdefault(key, deque())
            while hits and hits[0] <= cutoff:
                hits.popleft()
            if len(hits) >= limit:
                return max(1, int(hits[0] + window_seconds - now))
            hits.append(now)
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


signin_limiter = SlidingWindowLimiter()


def client_address(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def enforce_signin_limit(request: Request, email: str, *, limit: int, window_seconds: int) -> None:
    key = f"{client_address(request)}|{email.strip().lower()}"
    wait = signin_limiter.hit(key, limit=limit, window_seconds=window_seconds)
    if wait is None:
        return
    raise HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail=f"Too many sign-in attempts. Try again in {wait} second(s).",
        headers={"Retry-After": str(wait)},
    )
