"""
Tarot reading endpoints.

WHAT: Intro and three-card spread readings
WHY: Entry points the frontend calls to get generated text
HOW: Validate input, render prompt templates, call the LLM provider
"""

from typing import Optional

from fastapi import APIRouter, Depends

from ...core.config import settings
from ...llm.provider import LLMProvider
from ...llm.provider_factory import get_provider
from ...llm.types import GenerationRequest, GenerationResult
from ...models.api_schemas import (
    ErrorResponse,
    IntroResponse,
    ReadingMeta,
    SpreadRequest,
    SpreadResponse,
    UsedCards,
)
from ...prompts.templates import intro_prompt, psychic_spread
from ...services.card_catalog import MAX_SPREAD_CARDS, resolve_cards
from ...utils.exceptions import ValidationException
from ...utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

GATEWAY_ERROR_RESPONSES = {
    502: {"model": ErrorResponse, "description": "Every LLM endpoint failed"},
    503: {"model": ErrorResponse, "description": "No LLM endpoint configured"},
}


def _build_meta(result: GenerationResult, *, extended: bool = False) -> ReadingMeta:
    """Collect response metadata, preferring what the upstream reported."""
    raw = result.raw_payload or {}
    meta = {
        "model": result.model or settings.OPENAI_MODEL,
        "mode": result.mode,
        "done": result.done,
        "base_url": result.base_url,
    }
    if extended:
        if isinstance(raw.get("done_reason"), str):
            meta["done_reason"] = raw["done_reason"]
        for key in ("eval_count", "total_duration"):
            if isinstance(raw.get(key), int):
                meta[key] = raw[key]
    return ReadingMeta(**meta)


@router.post(
    "/psychic/intro",
    response_model=IntroResponse,
    response_model_exclude_none=True,
    responses=GATEWAY_ERROR_RESPONSES,
)
async def psychic_intro(provider: LLMProvider = Depends(get_provider)):
    """
    Generate the intro invitation.

    Returns:
        Generated text with upstream metadata
    """
    result = await provider.generate(GenerationRequest(
        model=settings.OPENAI_MODEL,
        messages=intro_prompt(),
        options=settings.get_default_options(),
    ))
    return IntroResponse(response=result.text, meta=_build_meta(result))


@router.post(
    "/psychic/spread",
    response_model=SpreadResponse,
    response_model_exclude_none=True,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid card selection"},
        **GATEWAY_ERROR_RESPONSES,
    },
)
async def psychic_spread_reading(
    request: Optional[SpreadRequest] = None,
    provider: LLMProvider = Depends(get_provider)
):
    """
    Generate a Past/Present/Future reading.

    WHAT: Reading for up to three selected cards
    WHY: Main feature of the app
    HOW: Reject empty selections before any upstream call, render the
         spread prompt, call the provider

    Raises:
        ValidationException: No cards were selected
    """
    if request is None or not request.cards:
        raise ValidationException("`cards` must be a non-empty array.")

    used = request.cards[:MAX_SPREAD_CARDS]
    messages = psychic_spread(resolve_cards(used), tone=request.tone)

    logger.info(f"Spread reading requested ({len(used)} card(s), tone={request.tone})")
    result = await provider.generate(GenerationRequest(
        model=settings.OPENAI_MODEL,
        messages=messages,
        options=settings.get_default_options(),
    ))

    return SpreadResponse(
        response=result.text,
        used=UsedCards(cards=used),
        meta=_build_meta(result, extended=True),
    )
