"""ExchangeProxy - fetch, bound, parse, extract and sanitize one ticker.

A single pipeline serves every exchange; what differs per exchange is
captured in a TickerSource:
  - url:          fixed upstream endpoint (never caller controlled)
  - shape_check:  top-level JSON shape the exchange is expected to return
  - extract:      pick the record for our trading pair out of that shape

A missing pair is answered with HTTP 200 {"error": "<pair> not found"}
rather than an error status: the price widget treats it as "no data",
not as a failed request.
"""

import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from src.s256_common.errors import InvalidUpstreamResponseError, ResponseTooLargeError
from src.s256_common.sanitizer import sanitize_ticker
from src.s256_common.upstream import fetch_bounded
from src.s256_exchange.application.schemas import TickerRecord

logger = logging.getLogger("s256.exchange")

TRADING_PAIR = "S256_USDT"


@dataclass(frozen=True)
class TickerSource:
    name: str
    url: str
    pair: str
    shape_check: Callable[[Any], bool]
    extract: Callable[[Any, str], Any]


def _find_in_list(tickers: list[Any], pair: str) -> Any:
    return next(
        (t for t in tickers if isinstance(t, Mapping) and t.get("ticker_id") == pair),
        None,
    )


def _find_in_mapping(tickers: Mapping[str, Any], pair: str) -> Any:
    return tickers.get(pair)


KLINGEX = TickerSource(
    name="KlingEx",
    url="https://api.klingex.io/api/tickers",
    pair=TRADING_PAIR,
    shape_check=lambda data: isinstance(data, list),
    extract=_find_in_list,
)

RABID_RABBIT = TickerSource(
    name="Rabid Rabbit",
    url="https://rabid-rabbit.org/api/public/v1/ticker?format=json",
    pair=TRADING_PAIR,
    shape_check=lambda data: isinstance(data, dict),
    extract=_find_in_mapping,
)


class ExchangeProxy:
    def __init__(
        self,
        client: httpx.AsyncClient,
        timeout: float = 10.0,
        max_bytes: int = 1024 * 1024,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._max_bytes = max_bytes

    async def fetch_ticker(self, source: TickerSource) -> dict[str, Any]:
        body = await fetch_bounded(
            self._client,
            "GET",
            source.url,
            max_bytes=self._max_bytes,
            timeout=self._timeout,
            error_message=f"Failed to fetch from {source.name}",
            timeout_message=f"{source.name} request timeout",
            headers={"Accept": "application/json"},
        )
        if body.overflowed:
            logger.warning("%s response exceeded %d bytes", source.name, self._max_bytes)
            raise ResponseTooLargeError()

        try:
            data = json.loads(body.data)
        except ValueError:
            logger.warning(
                "%s returned unparseable body (status=%d, %d bytes)",
                source.name,
                body.status_code,
                len(body.data),
            )
            raise InvalidUpstreamResponseError(f"Failed to parse {source.name} response") from None

        if not source.shape_check(data):
            logger.warning("%s returned unexpected shape: %s", source.name, type(data).__name__)
            raise InvalidUpstreamResponseError()

        fields = sanitize_ticker(source.extract(data, source.pair))
        if fields is None:
            return {"error": f"{source.pair} not found"}
        return TickerRecord(**fields).to_json()
