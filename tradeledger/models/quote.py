"""Price quote data model."""

from decimal import Decimal

from pydantic import BaseModel, Field


class PriceQuote(BaseModel):
    """Represents a spot price for a symbol at a point in time."""

    symbol: str = Field(..., description="Symbol as reported by the price source")
    price: Decimal = Field(..., ge=0, description="Last traded price")
    updated_at: float = Field(..., description="Unix time the quote was fetched")

    model_config = {"frozen": True}
