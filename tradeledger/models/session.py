"""Trade session data model."""

from datetime import datetime

from pydantic import BaseModel, Field


class TradeSession(BaseModel):
    """A named group of imported trades."""

    id: str = Field(..., min_length=1, description="Session ID")
    name: str = Field(..., description="Display name")
    created_at: datetime = Field(..., description="Creation timestamp")

    model_config = {"frozen": True}
