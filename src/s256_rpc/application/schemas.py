"""RPC gateway request model and server-side credentials."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, StrictStr

from config.settings import Settings


class RpcRequest(BaseModel):
    """Body of POST /rpc as sent by the web wallet."""

    method: StrictStr = Field(..., min_length=1)
    params: Any = None
    id: Any = None


@dataclass(frozen=True)
class RpcCredentials:
    user: str
    password: str = field(repr=False)
    host: str = "127.0.0.1"
    port: int = 25332

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}/"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RpcCredentials | None":
        """None when user or password is unset; the gateway then answers 503."""
        if not settings.rpc_configured:
            return None
        return cls(
            user=settings.RPC_USER,
            password=settings.RPC_PASSWORD,
            host=settings.RPC_HOST,
            port=settings.RPC_PORT,
        )
