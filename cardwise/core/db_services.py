"""Database service classes for card and collection records.

Both stores are thin CRUD over an ``AsyncSession`` scoped to a namespace
(user + persona). Every write commits on its own: a single row update is
atomic, nothing spanning several rows is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from cardwise.core.db.schemas.flashcards import (
    Card,
    Collection,
    Persona,
    new_id,
)
from cardwise.modules.flashcards.models.flashcards import Flashcard


class CardNotFoundError(LookupError):
    """Raised when a card id does not exist in the namespace."""


class CollectionNotFoundError(LookupError):
    """Raised when a collection id does not exist in the namespace."""


@dataclass(frozen=True)
class Namespace:
    """The (user, persona) partition every card and collection lives in."""

    user_id: int
    persona: Persona


def unique_ids(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return out


class CardStore:
    """Service for card records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        ns: Namespace,
        question: str,
        answer: str,
        picture: str = "",
    ) -> Card:
        card = Card(
            id=new_id(),
            user_id=ns.user_id,
            persona=ns.persona,
            question=question,
            answer=answer,
            picture=picture or "",
        )
        self.session.add(card)
        await self.session.commit()
        await self.session.refresh(card)
        return card

    async def create_many(self, ns: Namespace, cards: Iterable[Flashcard]) -> list[Card]:
        """Persist draft cards; returned rows keep the input order."""
        rows = [
            Card(
                id=new_id(),
                user_id=ns.user_id,
                persona=ns.persona,
                question=c.question,
                answer=c.answer,
                picture=c.image or "",
            )
            for c in cards
        ]
        self.session.add_all(rows)
        await self.session.commit()
        return rows

    async def get(self, ns: Namespace, card_id: str) -> Optional[Card]:
        result = await self.session.execute(
            select(Card).where(
                Card.id == card_id,
                Card.user_id == ns.user_id,
                Card.persona == ns.persona,
            )
        )
        return result.scalar_one_or_none()

    async def get_many(self, ns: Namespace, card_ids: Iterable[str]) -> dict[str, Card]:
        ids = list(card_ids)
        if not ids:
            return {}
        result = await self.session.execute(
            select(Card).where(
                Card.id.in_(ids),
                Card.user_id == ns.user_id,
                Card.persona == ns.persona,
            )
        )
        return {c.id: c for c in result.scalars().all()}

    async def list(self, ns: Namespace) -> list[Card]:
        result = await self.session.execute(
            select(Card)
            .where(Card.user_id == ns.user_id, Card.persona == ns.persona)
            .order_by(Card.created_at)
        )
        return list(result.scalars().all())

    async def update(
        self,
        ns: Namespace,
        card_id: str,
        *,
        question: Optional[str] = None,
        answer: Optional[str] = None,
        picture: Optional[str] = None,
    ) -> Card:
        card = await self.get(ns, card_id)
        if card is None:
            raise CardNotFoundError(card_id)
        if question is not None:
            card.question = question
        if answer is not None:
            card.answer = answer
        if picture is not None:
            card.picture = picture
        await self.session.commit()
        return card

    async def delete(self, ns: Namespace, card_id: str) -> bool:
        """Delete one card; returns False when it was already gone."""
        card = await self.get(ns, card_id)
        if card is None:
            return False
        await self.session.delete(card)
        await self.session.commit()
        return True

    async def delete_many(self, ns: Namespace, card_ids: Iterable[str]) -> int:
        deleted = 0
        for card_id in unique_ids(card_ids):
            if await self.delete(ns, card_id):
                deleted += 1
        return deleted


class CollectionStore:
    """Service for collections and their card-id sets."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        ns: Namespace,
        name: str,
        card_ids: Iterable[str] = (),
        *,
        collection_id: Optional[str] = None,
    ) -> Collection:
        collection = Collection(
            user_id=ns.user_id,
            persona=ns.persona,
            id=collection_id or new_id(),
            name=name,
            card_ids=unique_ids(card_ids),
        )
        self.session.add(collection)
        await self.session.commit()
        await self.session.refresh(collection)
        return collection

    async def get(self, ns: Namespace, collection_id: str) -> Optional[Collection]:
        result = await self.session.execute(
            select(Collection).where(
                Collection.user_id == ns.user_id,
                Collection.persona == ns.persona,
                Collection.id == collection_id,
            )
        )
        return result.scalar_one_or_none()

    async def require(self, ns: Namespace, collection_id: str) -> Collection:
        collection = await self.get(ns, collection_id)
        if collection is None:
            raise CollectionNotFoundError(collection_id)
        return collection

    async def get_or_create(
        self, ns: Namespace, collection_id: str, name: str
    ) -> tuple[Collection, bool]:
        collection = await self.get(ns, collection_id)
        if collection is not None:
            return collection, False
        return await self.create(ns, name, collection_id=collection_id), True

    async def list(self, ns: Namespace) -> list[Collection]:
        result = await self.session.execute(
            select(Collection)
            .where(Collection.user_id == ns.user_id, Collection.persona == ns.persona)
            .order_by(Collection.created_at)
        )
        return list(result.scalars().all())

    async def rename(self, ns: Namespace, collection_id: str, name: str) -> Collection:
        collection = await self.require(ns, collection_id)
        collection.name = name
        await self.session.commit()
        return collection

    async def delete(self, ns: Namespace, collection_id: str) -> None:
        collection = await self.require(ns, collection_id)
        await self.session.delete(collection)
        await self.session.commit()

    async def add_cards(
        self, ns: Namespace, collection_id: str, card_ids: Iterable[str]
    ) -> Collection:
        """Set-union ``card_ids`` into the collection."""
        collection = await self.require(ns, collection_id)
        # JSON columns only track reassignment, never in-place mutation
        collection.card_ids = unique_ids([*(collection.card_ids or []), *card_ids])
        await self.session.commit()
        return collection

    async def remove_cards(
        self, ns: Namespace, collection_id: str, card_ids: Iterable[str]
    ) -> Collection:
        """Set-removal of ``card_ids`` from the collection."""
        collection = await self.require(ns, collection_id)
        drop = set(card_ids)
        collection.card_ids = [c for c in (collection.card_ids or []) if c not in drop]
        await self.session.commit()
        return collection

    async def remove_cards_everywhere(
        self,
        ns: Namespace,
        card_ids: Iterable[str],
        *,
        exclude: Optional[str] = None,
    ) -> list[str]:
        """Strip ``card_ids`` from every collection listing them but ``exclude``.

        Returns the ids of the collections that changed.
        """
        drop = set(card_ids)
        touched: list[str] = []
        for collection in await self.list(ns):
            if collection.id == exclude:
                continue
            current = collection.card_ids or []
            if drop.intersection(current):
                collection.card_ids = [c for c in current if c not in drop]
                touched.append(collection.id)
                await self.session.commit()
        return touched


__all__ = [
    "CardNotFoundError",
    "CollectionNotFoundError",
    "Namespace",
    "CardStore",
    "CollectionStore",
]
