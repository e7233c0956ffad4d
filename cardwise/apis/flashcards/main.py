from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from cardwise.apis.deps import Cards, CurrentUser, Gateway, Reconciler
from cardwise.core.config import settings
from cardwise.core.db.schemas.flashcards import Card, Persona
from cardwise.core.db_services import Namespace
from cardwise.core.logging import bind, get_logger
from cardwise.modules.flashcards.generator import GenerationError
from .schemas import (
    CardRead,
    GenerateRequest,
    GenerateResponse,
    Trivia,
    TriviaRequest,
    TriviaResponse,
)


router = APIRouter()

logger = get_logger(__name__)


def card_to_read(card: Card) -> CardRead:
    return CardRead(
        id=card.id, question=card.question, answer=card.answer, image=card.picture or ""
    )


@router.post(
    f"/{settings.app.version}/flashcards/generate",
    response_model=GenerateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["flashcards"],
)
async def generate_flashcards(
    req: GenerateRequest,
    user: CurrentUser,
    gateway: Gateway,
    cards: Cards,
    reconciler: Reconciler,
) -> GenerateResponse:
    persona = req.persona or user.persona
    if persona is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Select a persona before generating flashcards",
        )
    if persona is Persona.TRAVELER:
        subject = (req.location or req.topic or "").strip()
    else:
        subject = (req.topic or req.location or "").strip()

    ns = Namespace(user_id=user.id, persona=persona)
    log = bind(logger, user_id=user.id, persona=persona.value)

    try:
        drafts = await gateway.generate(persona, subject, req.count)
    except GenerationError:
        log.exception(f"Error generating flashcards for {subject!r}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate flashcards",
        )

    rows = await cards.create_many(ns, drafts)
    card_ids = [r.id for r in rows]
    target = await reconciler.attach_new_cards(ns, card_ids, req.collection_name)

    return GenerateResponse(
        flashcards=[card_to_read(r) for r in rows],
        card_ids=card_ids,
        collection_id=target.id,
    )


@router.post(
    f"/{settings.app.version}/trivia",
    response_model=TriviaResponse,
    tags=["flashcards"],
)
async def trivia(req: TriviaRequest, user: CurrentUser, gateway: Gateway) -> TriviaResponse:
    try:
        card = await gateway.trivia(req.location.strip())
    except GenerationError:
        bind(logger, user_id=user.id).exception(
            f"Error fetching trivia for {req.location!r}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch trivia or image",
        )
    return TriviaResponse(
        trivia=Trivia(question=card.question, answer=card.answer),
        background_image=card.image,
    )
