"""Lot, position and PnL data models."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class Lot(BaseModel):
    """An open slice of a position, consumed in FIFO order."""

    qty: Decimal = Field(..., ge=0, description="Remaining base quantity")
    cost_per_unit: Decimal = Field(..., description="Cost per base unit incl. fees")


class PositionSummary(BaseModel):
    """Represents the open remainder of a symbol after FIFO matching."""

    symbol: str = Field(..., min_length=1, description="Trading pair")
    qty: Decimal = Field(..., gt=0, description="Sum of remaining lot quantities")
    avg_cost: Decimal = Field(..., description="Cost-weighted average of open lots")
    market_price: Optional[Decimal] = Field(default=None, description="Current price")
    unrealized_pnl: Decimal = Field(default=Decimal("0"), description="Paper PnL")

    model_config = {"frozen": True}


class PnLSummary(BaseModel):
    """Represents realized/unrealized PnL over a set of trades."""

    realized_pnl: Decimal = Field(default=Decimal("0"))
    unrealized_pnl: Decimal = Field(default=Decimal("0"))
    fee_totals: dict[str, Decimal] = Field(default_factory=dict)
    positions: list[PositionSummary] = Field(default_factory=list)

    model_config = {"frozen": True}


class PnLPoint(BaseModel):
    """Running realized PnL after one trade."""

    time: str
    realized_pnl: Decimal

    model_config = {"frozen": True}
