"""Pydantic schema for imported trades."""

import datetime
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

TradeDirection = Literal["buy", "sell"]


class NormalizedTrade(BaseModel):
    """Broker-agnostic trade record produced by the import pipeline.

    Open and close timestamps are taken from the broker as-is; an open time
    later than the close time is accepted and not corrected.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    ticket: str = Field("", description="Broker ticket/position id, may be empty")
    symbol: str
    direction: TradeDirection
    open_time: datetime.datetime
    close_time: datetime.datetime
    volume: float = Field(0.0, ge=0, description="Traded volume in lots/units")
    open_price: float = 0.0
    close_price: float = 0.0
    pnl: float = Field(0.0, description="Realized profit/loss, signed")
    commission: float = 0.0
    swap: float = 0.0
    comment: str = ""
    tags: list[str] = Field(default_factory=list)
    account_id: str = Field("", description="Filled by the caller once the owning account is known")

    def without_id(self) -> dict:
        """Return the trade fields minus the generated identifier."""
        return self.model_dump(exclude={"id"})
