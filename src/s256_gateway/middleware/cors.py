"""CORS policy for the RPC proxy.

Only origins on the allow-list get Access-Control-Allow-Origin back; any
other origin gets no CORS headers at all and the browser blocks the
response. This is defense in depth: the method whitelist in RpcGateway
is what actually protects the node.
"""

from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp


class CorsPolicyMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: Iterable[str],
        paths: Iterable[str] = ("/rpc",),
    ) -> None:
        super().__init__(app)
        self._allowed_origins = frozenset(allowed_origins)
        self._paths = frozenset(paths)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if request.url.path not in self._paths:
            return response

        response.headers["Vary"] = "Origin"
        origin = request.headers.get("origin")
        if origin in self._allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Access-Control-Allow-Methods"] = "POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response
