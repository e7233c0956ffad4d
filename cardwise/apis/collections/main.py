"""Collection and card management for one persona namespace."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status

from cardwise.apis.deps import Cards, Collections, CurrentNamespace, Reconciler
from cardwise.apis.flashcards.main import card_to_read
from cardwise.apis.flashcards.schemas import CardRead
from cardwise.core.config import settings
from cardwise.core.db.schemas.flashcards import Collection
from cardwise.core.db_services import CardNotFoundError, CardStore, Namespace
from .schemas import (
    CardCreate,
    CardUpdate,
    CollectionCreate,
    CollectionRead,
    CollectionRename,
    CollectionSummary,
    DeleteCardsRequest,
    DeleteCardsResponse,
    MergeRequest,
    MoveCardsRequest,
)


router = APIRouter()

PREFIX = f"/{settings.app.version}/{{persona}}"


def _summary(c: Collection) -> CollectionSummary:
    return CollectionSummary(id=c.id, name=c.name, card_ids=list(c.card_ids or []))


async def _read(ns: Namespace, c: Collection, cards: CardStore) -> CollectionRead:
    """Resolve card ids; ids without a card row render as empty placeholders."""
    ids = list(c.card_ids or [])
    found = await cards.get_many(ns, ids)
    resolved = [
        card_to_read(found[i]) if i in found
        else CardRead(id=i, question="", answer="", image="", missing=True)
        for i in ids
    ]
    return CollectionRead(id=c.id, name=c.name, card_ids=ids, cards=resolved)


@router.get(
    f"{PREFIX}/collections",
    response_model=list[CollectionSummary],
    tags=["collections"],
)
async def list_collections(ns: CurrentNamespace, collections: Collections):
    return [_summary(c) for c in await collections.list(ns)]


@router.post(
    f"{PREFIX}/collections",
    response_model=CollectionSummary,
    status_code=status.HTTP_201_CREATED,
    tags=["collections"],
)
async def create_collection(
    req: CollectionCreate, ns: CurrentNamespace, reconciler: Reconciler
):
    # Names are labels, not keys: two collections may share one
    return _summary(await reconciler.create_collection(ns, req.name, req.card_ids))


@router.post(
    f"{PREFIX}/collections/merge",
    response_model=CollectionSummary,
    tags=["collections"],
)
async def merge_collections(
    req: MergeRequest, ns: CurrentNamespace, reconciler: Reconciler
):
    try:
        target = await reconciler.merge_collections(
            ns,
            req.source_collection_ids,
            target_id=req.target_collection_id,
            new_collection_name=req.new_collection_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _summary(target)


@router.get(
    f"{PREFIX}/collections/{{collection_id}}",
    response_model=CollectionRead,
    tags=["collections"],
)
async def get_collection(
    collection_id: str, ns: CurrentNamespace, collections: Collections, cards: Cards
):
    return await _read(ns, await collections.require(ns, collection_id), cards)


@router.patch(
    f"{PREFIX}/collections/{{collection_id}}",
    response_model=CollectionSummary,
    tags=["collections"],
)
async def rename_collection(
    collection_id: str,
    req: CollectionRename,
    ns: CurrentNamespace,
    collections: Collections,
):
    return _summary(await collections.rename(ns, collection_id, req.name))


@router.delete(
    f"{PREFIX}/collections/{{collection_id}}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["collections"],
)
async def delete_collection(
    collection_id: str, ns: CurrentNamespace, collections: Collections
):
    await collections.delete(ns, collection_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    f"{PREFIX}/collections/{{collection_id}}/cards",
    response_model=CardRead,
    status_code=status.HTTP_201_CREATED,
    tags=["collections"],
)
async def add_card(
    collection_id: str,
    req: CardCreate,
    ns: CurrentNamespace,
    collections: Collections,
    cards: Cards,
):
    await collections.require(ns, collection_id)
    card = await cards.create(ns, req.question, req.answer, req.image)
    await collections.add_cards(ns, collection_id, [card.id])
    return card_to_read(card)


@router.post(
    f"{PREFIX}/collections/{{collection_id}}/move",
    response_model=CollectionSummary,
    tags=["collections"],
)
async def move_cards(
    collection_id: str,
    req: MoveCardsRequest,
    ns: CurrentNamespace,
    reconciler: Reconciler,
):
    try:
        target = await reconciler.move_cards(
            ns,
            req.card_ids,
            collection_id,
            target_id=req.target_collection_id,
            new_collection_name=req.new_collection_name,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return _summary(target)


@router.post(
    f"{PREFIX}/collections/{{collection_id}}/delete-cards",
    response_model=DeleteCardsResponse,
    tags=["collections"],
)
async def delete_cards(
    collection_id: str,
    req: DeleteCardsRequest,
    ns: CurrentNamespace,
    reconciler: Reconciler,
):
    deleted = await reconciler.delete_cards(ns, req.card_ids, collection_id)
    return DeleteCardsResponse(deleted=deleted)


@router.get(f"{PREFIX}/cards", response_model=list[CardRead], tags=["cards"])
async def list_cards(ns: CurrentNamespace, cards: Cards):
    return [card_to_read(c) for c in await cards.list(ns)]


@router.get(f"{PREFIX}/cards/{{card_id}}", response_model=CardRead, tags=["cards"])
async def get_card(card_id: str, ns: CurrentNamespace, cards: Cards):
    card = await cards.get(ns, card_id)
    if card is None:
        raise CardNotFoundError(card_id)
    return card_to_read(card)


@router.patch(f"{PREFIX}/cards/{{card_id}}", response_model=CardRead, tags=["cards"])
async def update_card(card_id: str, req: CardUpdate, ns: CurrentNamespace, cards: Cards):
    card = await cards.update(
        ns, card_id, question=req.question, answer=req.answer, picture=req.image
    )
    return card_to_read(card)
