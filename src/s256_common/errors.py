"""Unified error types.

Every error is rendered as {"error": message} with its http_status.
Messages are meant for the browser: keep them generic and never put
upstream error text, hostnames or credentials in them.

  4xx: client input (never retried)
  429: rate limit
  5xx: upstream / configuration
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 4xx: client input ---

class InvalidRpcRequestError(AppError):
    def __init__(self) -> None:
        super().__init__("Invalid RPC request: method is required", 400)


class InvalidRpcParamsError(AppError):
    def __init__(self) -> None:
        super().__init__("Invalid RPC parameters", 400)


class RpcMethodNotAllowedError(AppError):
    def __init__(self, method: str) -> None:
        # method is kept for logging only, it is not echoed to the caller
        self.method = method
        super().__init__("RPC method not allowed", 403)


class AccessDeniedError(AppError):
    def __init__(self) -> None:
        super().__init__("Access denied", 403)


class RateLimitError(AppError):
    def __init__(self, message: str, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(message, 429)


# --- 5xx: upstream / configuration ---

class UpstreamError(AppError):
    def __init__(self, message: str = "Upstream request failed") -> None:
        super().__init__(message, 500)


class ResponseTooLargeError(AppError):
    def __init__(self) -> None:
        super().__init__("Response too large", 500)


class InvalidUpstreamResponseError(AppError):
    def __init__(self, message: str = "Invalid response format") -> None:
        super().__init__(message, 500)


class RpcNotConfiguredError(AppError):
    def __init__(self) -> None:
        super().__init__("RPC service not configured", 503)


class UpstreamTimeoutError(AppError):
    def __init__(self, message: str = "Upstream request timeout") -> None:
        super().__init__(message, 504)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(detail, 500)
