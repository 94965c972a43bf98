"""Per-IP fixed-window rate limiting.

Route classes (defaults, see config.settings):
  - general:    200 req / 15 min  every request
  - api:         60 req / 1 min   GET /api/price-*
  - downloads:   20 req / 15 min  /downloads/*
  - rpc:         30 req / 1 min   POST /rpc

The general class is checked first; a request it denies does not count
against the route class. Counters are kept by the `limits` library in the
storage named by RATE_LIMIT_STORAGE_URI ("memory://" by default). A hit on
memory storage is synchronous, so no await separates the read from the
increment.

Client IP comes from the socket peer unless TRUSTED_PROXY_HOPS > 0, in
which case the X-Forwarded-For entry appended by the outermost trusted
proxy is used. Entries further left are client controlled and ignored.

Every limited response carries RateLimit-Limit / -Remaining / -Reset for
the most specific class applied; a 429 also carries Retry-After.
"""

import logging
import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from limits import RateLimitItem, RateLimitItemPerSecond
from limits.storage import Storage, storage_from_string
from limits.strategies import FixedWindowRateLimiter
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from config.settings import Settings
from src.s256_common.errors import RateLimitError
from src.s256_common.response import app_error_response
from src.s256_gateway.middleware.request_log import request_id

logger = logging.getLogger("s256.ratelimit")

RouteMatcher = Callable[[Request], bool]


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int
    retry_after: int = 0

    def headers(self) -> dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_after),
        }
        if not self.allowed:
            headers["Retry-After"] = str(self.retry_after)
        return headers


@dataclass(frozen=True)
class RateLimitRule:
    name: str
    item: RateLimitItem
    message: str
    matches: RouteMatcher

    @property
    def max_requests(self) -> int:
        return self.item.amount

    @property
    def window_seconds(self) -> int:
        return self.item.get_expiry()


def _every_request(request: Request) -> bool:
    return True


def _is_price_api(request: Request) -> bool:
    return request.method == "GET" and request.url.path.startswith("/api/price-")


def _is_download(request: Request) -> bool:
    path = request.url.path
    return path == "/downloads" or path.startswith("/downloads/")


def _is_rpc_call(request: Request) -> bool:
    return request.method == "POST" and request.url.path == "/rpc"


def _rule(
    name: str, max_requests: int, window_seconds: int, message: str, matches: RouteMatcher
) -> RateLimitRule:
    item = RateLimitItemPerSecond(max_requests, window_seconds)
    return RateLimitRule(name, item, message, matches)


class RateLimitRegistry:
    """One rule per route class over a shared fixed-window strategy."""

    def __init__(
        self,
        storage: Storage,
        general: RateLimitRule,
        rules: list[RateLimitRule],
    ) -> None:
        self.storage = storage
        self.general = general
        self.rules = rules
        self._strategy = FixedWindowRateLimiter(storage)

    @classmethod
    def from_settings(cls, settings: Settings) -> "RateLimitRegistry":
        general = _rule(
            "general",
            settings.RATE_LIMIT_GENERAL_MAX,
            settings.RATE_LIMIT_GENERAL_WINDOW_SECONDS,
            "Too many requests from this IP, please try again later.",
            _every_request,
        )
        rules = [
            _rule(
                "api",
                settings.RATE_LIMIT_API_MAX,
                settings.RATE_LIMIT_API_WINDOW_SECONDS,
                "Too many price requests, please slow down.",
                _is_price_api,
            ),
            _rule(
                "downloads",
                settings.RATE_LIMIT_DOWNLOADS_MAX,
                settings.RATE_LIMIT_DOWNLOADS_WINDOW_SECONDS,
                "Too many download requests, please try again later.",
                _is_download,
            ),
            _rule(
                "rpc",
                settings.RATE_LIMIT_RPC_MAX,
                settings.RATE_LIMIT_RPC_WINDOW_SECONDS,
                "Too many RPC requests, please slow down.",
                _is_rpc_call,
            ),
        ]
        return cls(storage_from_string(settings.RATE_LIMIT_STORAGE_URI), general, rules)

    def get(self, name: str) -> RateLimitRule:
        for rule in [self.general, *self.rules]:
            if rule.name == name:
                return rule
        raise KeyError(name)

    def rules_for(self, request: Request) -> list[RateLimitRule]:
        return [self.general] + [rule for rule in self.rules if rule.matches(request)]

    def hit(self, rule: RateLimitRule, key: str) -> RateLimitDecision:
        allowed = self._strategy.hit(rule.item, rule.name, key)
        stats = self._strategy.get_window_stats(rule.item, rule.name, key)
        reset_after = max(0, math.ceil(stats.reset_time - time.time()))
        if not allowed:
            return RateLimitDecision(
                allowed=False,
                limit=rule.max_requests,
                remaining=0,
                reset_after=reset_after,
                retry_after=max(1, reset_after),
            )
        return RateLimitDecision(
            allowed=True,
            limit=rule.max_requests,
            remaining=stats.remaining,
            reset_after=reset_after,
        )

    def remaining(self, name: str, key: str) -> int:
        rule = self.get(name)
        return self._strategy.get_window_stats(rule.item, rule.name, key).remaining


def client_ip(request: Request, trusted_hops: int) -> str:
    """Resolve the caller's IP, trusting at most trusted_hops proxies."""
    peer = request.client.host if request.client else "unknown"
    if trusted_hops <= 0:
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [part.strip() for part in forwarded.split(",") if part.strip()]
    if not hops:
        return peer
    # nginx appends the address it saw, so the last entry is the one we trust
    return hops[-trusted_hops] if len(hops) >= trusted_hops else hops[0]


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, registry: RateLimitRegistry, trusted_hops: int = 1) -> None:
        super().__init__(app)
        self._registry = registry
        self._trusted_hops = trusted_hops

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        ip = client_ip(request, self._trusted_hops)

        decision: RateLimitDecision | None = None
        for rule in self._registry.rules_for(request):
            decision = self._registry.hit(rule, ip)
            if not decision.allowed:
                logger.warning(
                    "Rate limit '%s' exceeded by %s on [%s] %s %s",
                    rule.name,
                    ip,
                    request.method,
                    request.url.path,
                    request_id(request),
                )
                exc = RateLimitError(rule.message, decision.retry_after)
                return app_error_response(exc, headers=decision.headers())

        response = await call_next(request)
        if decision is not None:
            response.headers.update(decision.headers())
        return response
