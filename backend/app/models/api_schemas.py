"""
Pydantic API schemas for the reading endpoints.

WHAT: Request and response models for FastAPI
WHY: Type-safe validation and serialization matching the frontend
HOW: Pydantic v2 models with constraints
"""

from typing import Optional, List, Any
from pydantic import BaseModel, Field, field_validator

from ..services.card_catalog import MAX_SPREAD_CARDS


# ========== Request Schemas ==========

class CardSelection(BaseModel):
    """A card picked by the querent."""
    number: int = Field(..., description="Card number (0-21 for the Major Arcana)")
    inverted: bool = Field(default=False, description="Card drawn upside down")


class SpreadRequest(BaseModel):
    """Request for a three-card reading."""
    cards: List[CardSelection] = Field(default_factory=list, description="Selected cards, first three are used")
    tone: str = Field(default="warm", max_length=50, description="Voice of the reading")

    @field_validator("cards", mode="before")
    @classmethod
    def keep_spread_cards(cls, v):
        """Drop cards past the spread size before they are validated."""
        if isinstance(v, list):
            return v[:MAX_SPREAD_CARDS]
        return v


# ========== Response Schemas ==========

class ReadingMeta(BaseModel):
    """Upstream metadata for a generated reading."""
    model: str
    mode: str
    done: bool
    base_url: str
    done_reason: Optional[str] = None
    eval_count: Optional[int] = None
    total_duration: Optional[int] = None


class IntroResponse(BaseModel):
    """Response for the intro endpoint."""
    response: str
    meta: ReadingMeta


class UsedCards(BaseModel):
    """Cards actually used in the reading."""
    cards: List[CardSelection]


class SpreadResponse(BaseModel):
    """Response for the spread endpoint."""
    response: str
    used: UsedCards
    meta: ReadingMeta


class ErrorResponse(BaseModel):
    """Error envelope shared by every failure response."""
    error: str
    status: int
    message: str
    detail: Any = None
