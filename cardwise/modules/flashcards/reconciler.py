"""Collection-membership reconciliation.

A card belongs to at most one collection at a time. Freshly generated cards
land in a target collection (the default bucket when none is named), and the
operations here move, delete and merge cards while keeping that invariant.

The stores commit each row on its own, so none of these operations is atomic:
every precondition is checked before the first write, and the writes are
ordered so that an interruption leaves a card duplicated (add before remove)
rather than lost, and never leaves a collection pointing at a card that was
deleted first. Repeating an operation with the same arguments is safe.
"""

from __future__ import annotations

from typing import Iterable, Optional

from cardwise.core.db.schemas.flashcards import (
    DEFAULT_COLLECTION_ID,
    DEFAULT_COLLECTION_NAME,
    Collection,
)
from cardwise.core.db_services import (
    CardStore,
    CollectionStore,
    Namespace,
    unique_ids,
)
from cardwise.core.logging import bind, get_logger

logger = get_logger(__name__)


class CollectionReconciler:
    def __init__(self, cards: CardStore, collections: CollectionStore) -> None:
        self.cards = cards
        self.collections = collections

    def _log(self, ns: Namespace):
        return bind(logger, user_id=ns.user_id, persona=ns.persona.value)

    async def move_cards(
        self,
        ns: Namespace,
        card_ids: Iterable[str],
        source_id: str,
        *,
        target_id: Optional[str] = None,
        new_collection_name: Optional[str] = None,
    ) -> Collection:
        """Move ``card_ids`` from ``source_id`` into an existing or new collection.

        The ids end up in the target only: they are also dropped from any other
        collection still listing them. Exactly one of ``target_id`` and
        ``new_collection_name`` must be given. Returns the target collection.
        """
        if (target_id is None) == (new_collection_name is None):
            raise ValueError("Provide exactly one of target_id or new_collection_name")
        ids = unique_ids(card_ids)
        log = self._log(ns)

        source = await self.collections.require(ns, source_id)
        if target_id is not None:
            target = await self.collections.require(ns, target_id)
            if target.id == source.id:
                return source
            target = await self.collections.add_cards(ns, target.id, ids)
        else:
            target = await self.collections.create(ns, new_collection_name, ids)

        # The ids may also sit somewhere other than the source
        await self.collections.remove_cards_everywhere(ns, ids, exclude=target.id)
        log.info(f"Moved {len(ids)} card(s) from {source.id!r} to {target.id!r}")
        return target

    async def delete_cards(
        self, ns: Namespace, card_ids: Iterable[str], source_id: str
    ) -> int:
        """Remove ``card_ids`` from every collection, then delete the card rows.

        Returns the number of card rows actually deleted.
        """
        ids = unique_ids(card_ids)
        await self.collections.require(ns, source_id)

        await self.collections.remove_cards(ns, source_id, ids)
        # Rows written before single membership was enforced may list the ids elsewhere
        stale = await self.collections.remove_cards_everywhere(ns, ids)
        if stale:
            self._log(ns).warning(f"Removed deleted cards from extra collections {stale}")

        deleted = await self.cards.delete_many(ns, ids)
        self._log(ns).info(
            f"Deleted {deleted} of {len(ids)} card(s) from {source_id!r}"
        )
        return deleted

    async def attach_new_cards(
        self,
        ns: Namespace,
        card_ids: Iterable[str],
        target_name: Optional[str] = None,
    ) -> Collection:
        """File freshly generated cards into ``target_name`` (or the default bucket).

        The target's name doubles as its id, so a repeated name reuses the same
        collection. Once filed elsewhere the cards are removed from the default
        bucket.
        """
        ids = unique_ids(card_ids)
        target_id = target_name or DEFAULT_COLLECTION_ID
        display_name = (
            DEFAULT_COLLECTION_NAME if target_id == DEFAULT_COLLECTION_ID else target_id
        )

        target, created = await self.collections.get_or_create(
            ns, target_id, display_name
        )
        target = await self.collections.add_cards(ns, target.id, ids)

        # Covers the default bucket when filing elsewhere
        await self.collections.remove_cards_everywhere(ns, ids, exclude=target.id)

        self._log(ns).info(
            f"Attached {len(ids)} card(s) to {target.id!r}"
            + (" (created)" if created else "")
        )
        return target

    async def create_collection(
        self, ns: Namespace, name: str, card_ids: Iterable[str] = ()
    ) -> Collection:
        """Create a collection, taking ``card_ids`` away from wherever they were filed."""
        ids = unique_ids(card_ids)
        collection = await self.collections.create(ns, name, ids)
        if ids:
            await self.collections.remove_cards_everywhere(
                ns, ids, exclude=collection.id
            )
        self._log(ns).info(f"Created collection {collection.id!r} with {len(ids)} card(s)")
        return collection

    async def merge_collections(
        self,
        ns: Namespace,
        source_ids: Iterable[str],
        *,
        target_id: Optional[str] = None,
        new_collection_name: Optional[str] = None,
    ) -> Collection:
        """Move every card of ``source_ids`` into one collection and drop the sources.

        The target may be one of the sources; it is kept. At least two distinct
        collections must take part.
        """
        if (target_id is None) == (new_collection_name is None):
            raise ValueError("Provide exactly one of target_id or new_collection_name")
        sources = unique_ids(source_ids)
        involved = set(sources) | ({target_id} if target_id else set())
        if len(involved) < 2 and new_collection_name is None:
            raise ValueError("Merging needs at least two collections")
        if not sources:
            raise ValueError("Merging needs at least one source collection")

        for source_id in sources:
            await self.collections.require(ns, source_id)
        if target_id is not None:
            target = await self.collections.require(ns, target_id)
        else:
            target = await self.collections.create(ns, new_collection_name)

        for source_id in sources:
            if source_id == target.id:
                continue
            source = await self.collections.require(ns, source_id)
            target = await self.move_cards(
                ns, list(source.card_ids or []), source_id, target_id=target.id
            )
            await self.collections.delete(ns, source_id)

        self._log(ns).info(f"Merged {sources} into {target.id!r}")
        return target
