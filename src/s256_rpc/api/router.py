"""Node RPC proxy endpoints.

POST    /rpc  - validated JSON-RPC call relayed to the node ("rpc" rate class)
OPTIONS /rpc  - CORS preflight

CORS headers for both are set by CorsPolicyMiddleware.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from src.s256_rpc.application.service import RpcGateway

router = APIRouter(tags=["rpc"])


def get_rpc_gateway(request: Request) -> RpcGateway:
    return request.app.state.rpc_gateway


@router.post("/rpc", summary="Relay a whitelisted JSON-RPC call to the node")
async def rpc_proxy(
    request: Request,
    gateway: Annotated[RpcGateway, Depends(get_rpc_gateway)],
) -> JSONResponse:
    result = await gateway.call(await request.body())
    return JSONResponse(content=result)


@router.options("/rpc", status_code=status.HTTP_204_NO_CONTENT)
async def rpc_preflight() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT)
