"""RpcGateway - the only path from the browser to the S256 node.

The node exposes methods that broadcast and sign transactions, so a call
is forwarded only after it has passed, in order:
  1. credentials configured        (else 503, nothing is sent)
  2. body is a JSON object with a non-empty string "method"   (else 400)
  3. method in ALLOWED_RPC_METHODS                             (else 403)
  4. params pass validate_rpc_params                           (else 400)

The forwarded call uses the server's own Basic auth, never anything the
caller sent, and is sent exactly once (no retries: sendrawtransaction is
not idempotent on the node).
"""

import json
import logging
import math
from typing import Any

import httpx
from pydantic import ValidationError

from src.s256_common.errors import (
    InvalidRpcParamsError,
    InvalidRpcRequestError,
    InvalidUpstreamResponseError,
    ResponseTooLargeError,
    RpcMethodNotAllowedError,
    RpcNotConfiguredError,
)
from src.s256_common.sanitizer import ALLOWED_RPC_METHODS, validate_rpc_params
from src.s256_common.upstream import fetch_bounded
from src.s256_rpc.application.schemas import RpcCredentials, RpcRequest

logger = logging.getLogger("s256.rpc")

DEFAULT_RPC_ID = "web-wallet"
MAX_REQUEST_BYTES = 1024 * 1024


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number: {name}")


def _finite_float(text: str) -> float:
    number = float(text)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number: {text}")
    return number


def loads_strict(data: bytes) -> Any:
    """json.loads that rejects NaN, Infinity and out-of-range floats."""
    return json.loads(data, parse_constant=_reject_constant, parse_float=_finite_float)


class RpcGateway:
    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: RpcCredentials | None,
        timeout: float = 30.0,
        max_response_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self._client = client
        self._credentials = credentials
        self._timeout = timeout
        self._max_response_bytes = max_response_bytes

    @property
    def configured(self) -> bool:
        return self._credentials is not None

    def parse_request(self, raw: bytes) -> RpcRequest:
        if len(raw) > MAX_REQUEST_BYTES:
            raise InvalidRpcRequestError()
        try:
            body = loads_strict(raw)
        except ValueError:
            raise InvalidRpcRequestError() from None
        if not isinstance(body, dict):
            raise InvalidRpcRequestError()
        try:
            return RpcRequest.model_validate(body)
        except ValidationError:
            raise InvalidRpcRequestError() from None

    def build_envelope(self, request: RpcRequest) -> dict[str, Any]:
        params = [] if request.params is None else request.params
        if request.method not in ALLOWED_RPC_METHODS:
            raise RpcMethodNotAllowedError(request.method)
        if not validate_rpc_params(request.method, params):
            raise InvalidRpcParamsError()
        return {
            "jsonrpc": "1.0",
            "id": request.id if request.id is not None else DEFAULT_RPC_ID,
            "method": request.method,
            "params": params,
        }

    async def call(self, raw: bytes) -> Any:
        """Validate a raw POST /rpc body, forward it, return the node's JSON."""
        if self._credentials is None:
            raise RpcNotConfiguredError()

        try:
            envelope = self.build_envelope(self.parse_request(raw))
        except RpcMethodNotAllowedError as exc:
            logger.warning("Rejected RPC method %r", exc.method[:64])
            raise

        body = await fetch_bounded(
            self._client,
            "POST",
            self._credentials.url,
            max_bytes=self._max_response_bytes,
            timeout=self._timeout,
            error_message="RPC connection failed",
            timeout_message="RPC request timeout",
            json=envelope,
            auth=httpx.BasicAuth(self._credentials.user, self._credentials.password),
        )
        if body.overflowed:
            logger.error(
                "RPC %s response exceeded %d bytes", envelope["method"], self._max_response_bytes
            )
            raise ResponseTooLargeError()

        try:
            result = loads_strict(body.data)
        except ValueError:
            logger.error(
                "RPC %s returned unparseable body (status=%d)", envelope["method"], body.status_code
            )
            raise InvalidUpstreamResponseError("Invalid RPC response") from None

        logger.debug("RPC %s → node status %d", envelope["method"], body.status_code)
        return result
