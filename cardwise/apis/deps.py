from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from cardwise.core.db.base import get_session
from cardwise.core.db.schemas.auth import User
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.core.db_services import CardStore, CollectionStore, Namespace
from cardwise.modules.auth import current_active_user
from cardwise.modules.billing.checkout import CheckoutService
from cardwise.modules.flashcards.generator import FlashcardGateway
from cardwise.modules.flashcards.reconciler import CollectionReconciler


CurrentUser = Annotated[User, Depends(current_active_user)]
Session = Annotated[AsyncSession, Depends(get_session)]


def get_gateway(request: Request) -> FlashcardGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Flashcard generation is not configured",
        )
    return gateway


def get_checkout(request: Request) -> CheckoutService:
    return request.app.state.checkout


def get_namespace(persona: Persona, user: CurrentUser) -> Namespace:
    """Namespace from the ``{persona}`` path segment and the signed-in user."""
    return Namespace(user_id=user.id, persona=persona)


def get_card_store(session: Session) -> CardStore:
    return CardStore(session)


def get_collection_store(session: Session) -> CollectionStore:
    return CollectionStore(session)


def get_reconciler(
    cards: CardStore = Depends(get_card_store),
    collections: CollectionStore = Depends(get_collection_store),
) -> CollectionReconciler:
    return CollectionReconciler(cards, collections)


Gateway = Annotated[FlashcardGateway, Depends(get_gateway)]
Checkout = Annotated[CheckoutService, Depends(get_checkout)]
CurrentNamespace = Annotated[Namespace, Depends(get_namespace)]
Cards = Annotated[CardStore, Depends(get_card_store)]
Collections = Annotated[CollectionStore, Depends(get_collection_store)]
Reconciler = Annotated[CollectionReconciler, Depends(get_reconciler)]
