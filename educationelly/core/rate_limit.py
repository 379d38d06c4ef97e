import logging
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from educationelly.core import config
from educationelly.core.errors import RateLimitError

logger = logging.getLogger(__name__)

EXEMPT_PATHS = frozenset({"/health", "/metrics"})


def normalize_path(path: str) -> str:
    return path.rstrip("/") or "/"


class SlidingWindowRateLimiter:
    """Counts hits per key and refuses once `limit` fall inside the trailing window."""

    def __init__(self, limit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        return len(self._hits)

    def _prune(self, hits: deque[float], now: float) -> None:
        while hits and (now - hits[0]) >= self._window:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        for key in list(self._hits):
            self._prune(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]
        self._last_sweep = now

    def allow(self, key: str) -> bool:
        now = self._clock()
        # Keys idle for a whole window are dropped once per window.
        if now - self._last_sweep >= self._window:
            self._sweep(now)
        hits = self._hits.setdefault(key, deque())
        self._prune(hits, now)
        if len(hits) >= self._limit:
            return False
        hits.append(now)
        return True

    def reset(self) -> None:
        self._hits.clear()


@dataclass
class RouteLimit:
    limiter: SlidingWindowRateLimiter
    message: str
    paths: frozenset[str] = field(default_factory=frozenset)

    def applies_to(self, path: str) -> bool:
        return not self.paths or normalize_path(path) in self.paths


def default_route_limits(window_seconds: float = config.RATE_LIMIT_WINDOW_SECONDS) -> list[RouteLimit]:
    """Group limits first, general limit last; a request is charged to every group it matches."""
    return [
        RouteLimit(
            SlidingWindowRateLimiter(config.SIGNIN_RATE_LIMIT, window_seconds),
            "Too many login attempts, please try again later.",
            frozenset({"/api/signin"}),
        ),
        RouteLimit(
            SlidingWindowRateLimiter(config.SIGNUP_RATE_LIMIT, window_seconds),
            "Too many registration attempts, please try again later.",
            frozenset({"/api/signup"}),
        ),
        RouteLimit(
            SlidingWindowRateLimiter(config.GENERAL_RATE_LIMIT, window_seconds),
            "Too many requests from this IP, please try again later.",
        ),
    ]


def client_ip(request: Request, trusted_proxies: int = 0) -> str:
    """Client address as seen by the outermost of `trusted_proxies` proxies.

    Each trusted proxy appends the peer it saw to X-Forwarded-For, so the
    client is found counting from the right; entries to the left of that are
    whatever the client chose to send.
    """
    peer = request.client.host if request.client else "unknown"
    if trusted_proxies <= 0:
        return peer
    forwarded = [entry.strip() for entry in request.headers.get("X-Forwarded-For", "").split(",") if entry.strip()]
    if not forwarded:
        return peer
    return forwarded[-min(trusted_proxies, len(forwarded))]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, route_limits: list[RouteLimit], trusted_proxies: int = 0) -> None:
        super().__init__(app)
        self.route_limits = route_limits
        self.trusted_proxies = trusted_proxies

    async def dispatch(self, request: Request, call_next) -> Response:
        path = normalize_path(request.url.path)
        if path in EXEMPT_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        key = client_ip(request, self.trusted_proxies)
        for route_limit in self.route_limits:
            if route_limit.applies_to(path) and not route_limit.limiter.allow(key):
                logger.warning("Rate limit exceeded for %s on %s", key, path)
                return RateLimitError(route_limit.message).to_response()

        return await call_next(request)
