"""Pydantic schema for the normalized exchange ticker.

Both exchanges are projected onto the same model; fields an exchange does
not publish (Rabid Rabbit has no high/low) stay None and are left out of
the JSON body.
"""

from pydantic import BaseModel, ConfigDict


class TickerRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # strings - stripped of < > & " '
    ticker_id: str | None = None
    base_currency: str | None = None
    target_currency: str | None = None

    # numbers - always finite, 0 when unparseable
    last_price: float | None = None
    high: float | None = None
    low: float | None = None
    base_volume: float | None = None
    target_volume: float | None = None
    quote_volume: float | None = None
    bid: float | None = None
    ask: float | None = None

    def to_json(self) -> dict[str, str | float]:
        return self.model_dump(exclude_none=True)
