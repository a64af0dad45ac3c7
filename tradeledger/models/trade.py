"""Trade record data model."""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Side(str, Enum):
    """Direction of an executed trade."""

    BUY = "Buy"
    SELL = "Sell"

    @classmethod
    def from_text(cls, value: Optional[str]) -> Optional["Side"]:
        """Map a case-insensitive BUY/SELL token to a Side, or None."""
        token = (value or "").strip().upper()
        if token == "BUY":
            return cls.BUY
        if token == "SELL":
            return cls.SELL
        return None


class TradeRecord(BaseModel):
    """Represents one executed trade in canonical form."""

    symbol: str = Field(..., description="Pair displayed as BASE/QUOTE")
    market_type: str = Field(default="Spot", description="Market, e.g. Spot")
    order_type: str = Field(default="", description="Order type, e.g. Limit")
    side: Side = Field(..., description="Trade side (Buy/Sell)")
    price: Decimal = Field(..., ge=0, description="Price in quote per base")
    price_asset: str = Field(..., description="Asset the price is quoted in")
    base_amount: Decimal = Field(..., ge=0, description="Base quantity transacted")
    base_asset: str = Field(..., description="Base asset")
    quote_amount: Decimal = Field(..., ge=0, description="Quote quantity transacted")
    quote_asset: str = Field(..., description="Quote asset")
    fee_amount: Optional[Decimal] = Field(default=None, ge=0, description="Fee paid")
    fee_asset: Optional[str] = Field(default=None, description="Asset the fee was paid in")
    time: Optional[str] = Field(
        default=None, description="Execution time as YYYY-MM-DD HH:MM:SS"
    )
    order_id: Optional[str] = Field(default=None, description="Venue order ID")
    trade_id: Optional[str] = Field(default=None, description="Venue trade ID")
    session_id: Optional[str] = Field(default=None, description="Owning session ID")
    raw_lines: list[str] = Field(default_factory=list, description="Source lines")

    model_config = {"frozen": True}


class ParseResult(BaseModel):
    """Trades extracted from an export plus one message per rejected line."""

    trades: list[TradeRecord] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
