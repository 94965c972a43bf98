"""Exchange price proxy endpoints.

GET /api/price-klingex       - S256_USDT ticker from KlingEx
GET /api/price-rabidrabbit   - S256_USDT ticker from Rabid Rabbit

Both carry the "api" rate class (applied by RateLimitMiddleware).
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from src.s256_exchange.application.service import KLINGEX, RABID_RABBIT, ExchangeProxy

router = APIRouter(prefix="/api", tags=["exchange"])


def get_exchange_proxy(request: Request) -> ExchangeProxy:
    return request.app.state.exchange_proxy


@router.get("/price-klingex", summary="KlingEx S256_USDT ticker")
async def price_klingex(
    proxy: Annotated[ExchangeProxy, Depends(get_exchange_proxy)],
) -> dict[str, Any]:
    return await proxy.fetch_ticker(KLINGEX)


@router.get("/price-rabidrabbit", summary="Rabid Rabbit S256_USDT ticker")
async def price_rabidrabbit(
    proxy: Annotated[ExchangeProxy, Depends(get_exchange_proxy)],
) -> dict[str, Any]:
    return await proxy.fetch_ticker(RABID_RABBIT)
