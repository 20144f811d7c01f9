"""
Limiteur de débit en mémoire.

Une instance par processus, injectée via ``get_rate_limiter`` : les tests ou
un déploiement multi-instances peuvent la remplacer (Redis, base...) avec
``app.dependency_overrides``.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests: int
    window_seconds: float


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: float


@dataclass
class _Entry:
    count: int
    reset_at: float


class RateLimiter:
    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: float = 300.0):
        self._entries: Dict[str, _Entry] = {}
        self._clock = clock
        self._sweep_every = sweep_every
        self._last_sweep = clock()

    def check_limit(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        now = self._clock()
        self._sweep(now)

        entry = self._entries.get(key)
        if entry is None or entry.reset_at < now:
            entry = _Entry(count=0, reset_at=now + config.window_seconds)

        entry.count += 1
        self._entries[key] = entry

        allowed = entry.count <= config.max_requests
        if not allowed:
            logger.warning(f"Rate limit atteint pour {key} ({entry.count}/{config.max_requests})")
        return RateLimitResult(
            allowed=allowed,
            remaining=max(0, config.max_requests - entry.count),
            reset_at=entry.reset_at,
        )

    def reset(self, key: str):
        self._entries.pop(key, None)

    def _sweep(self, now: float):
        if now - self._last_sweep < self._sweep_every:
            return
        expired = [key for key, entry in self._entries.items() if entry.reset_at < now]
        for key in expired:
            self._entries.pop(key, None)
        self._last_sweep = now


_limiter = RateLimiter()


def get_rate_limiter() -> RateLimiter:
    return _limiter


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip
    return request.client.host if request.client else None
