"""Site-wide security policy.

SecurityHeadersMiddleware: fixed response headers (CSP, framing, sniffing,
referrer). Handlers may override a header by setting it themselves.

BlockedPathMiddleware: refuses any path that mentions a deployment or
source artifact, whatever the static root happens to contain.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.s256_common.errors import AccessDeniedError
from src.s256_common.response import app_error_response

CONTENT_SECURITY_POLICY = "; ".join(
    [
        "default-src 'self'",
        "script-src 'self' 'unsafe-inline'",
        "script-src-attr 'unsafe-inline'",
        "style-src 'self' 'unsafe-inline'",
        "img-src 'self' data: https:",
        "connect-src 'self'",
        "font-src 'self'",
        "object-src 'none'",
        "media-src 'self'",
        "frame-src 'none'",
        "base-uri 'self'",
        "form-action 'self'",
    ]
)

SECURITY_HEADERS: dict[str, str] = {
    "Content-Security-Policy": CONTENT_SECURITY_POLICY,
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
    "Origin-Agent-Cluster": "?1",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
    "X-Content-Type-Options": "nosniff",
    "X-DNS-Prefetch-Control": "off",
    "X-Frame-Options": "SAMEORIGIN",
    "X-Permitted-Cross-Domain-Policies": "none",
    "X-XSS-Protection": "0",
}

# Matched case-insensitively anywhere in the path
BLOCKED_PATH_FRAGMENTS: tuple[str, ...] = (
    ".env",
    "package.json",
    "package-lock.json",
    ".git",
    "node_modules",
    "server.js",
    "deploy.sh",
    "deployment.md",
    ".md",
    "pyproject.toml",
    ".py",
)


def is_blocked_path(path: str) -> bool:
    lowered = path.lower()
    return any(fragment in lowered for fragment in BLOCKED_PATH_FRAGMENTS)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            if name not in response.headers:
                response.headers[name] = value
        return response


class BlockedPathMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if is_blocked_path(request.url.path):
            return app_error_response(AccessDeniedError())
        return await call_next(request)
