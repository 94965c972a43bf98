"""Bounded reads from upstream HTTP services.

The whole exchange (connect, send, read body) runs under one deadline, and
the body is read chunk by chunk until it either ends or passes max_bytes.
On overflow the reader stops and closes the response, so the socket is
released and nothing read so far is handed back.

Network failures are converted to AppErrors carrying the caller's generic
messages; the httpx error text only goes to the log.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from src.s256_common.errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger("s256.upstream")


@dataclass(frozen=True)
class BoundedBody:
    status_code: int
    data: bytes
    overflowed: bool = False


async def read_bounded(response: httpx.Response, max_bytes: int) -> BoundedBody:
    """Accumulate response body up to max_bytes; stop and close past it."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in response.aiter_bytes():
        size += len(chunk)
        if size > max_bytes:
            await response.aclose()
            return BoundedBody(status_code=response.status_code, data=b"", overflowed=True)
        chunks.append(chunk)
    return BoundedBody(status_code=response.status_code, data=b"".join(chunks))


async def fetch_bounded(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    *,
    max_bytes: int,
    timeout: float,
    error_message: str,
    timeout_message: str,
    **kwargs: Any,
) -> BoundedBody:
    """Send one request and read its body under a size and time bound.

    Raises UpstreamTimeoutError (504) when the deadline passes and
    UpstreamError (500) on any other transport failure.
    """
    try:
        async with asyncio.timeout(timeout):
            async with client.stream(
                method, url, timeout=httpx.Timeout(timeout), **kwargs
            ) as response:
                return await read_bounded(response, max_bytes)
    except (TimeoutError, httpx.TimeoutException) as exc:
        logger.warning("%s %s timed out after %.1fs: %r", method, url, timeout, exc)
        raise UpstreamTimeoutError(timeout_message) from None
    except httpx.HTTPError as exc:
        logger.error("%s %s failed: %r", method, url, exc)
        raise UpstreamError(error_message) from None
