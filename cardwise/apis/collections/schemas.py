from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from cardwise.apis.flashcards.schemas import CardRead


class _TargetMixin(BaseModel):
    target_collection_id: Optional[str] = None
    new_collection_name: Optional[str] = Field(None, min_length=1)

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if (self.target_collection_id is None) == (self.new_collection_name is None):
            raise ValueError(
                "Provide exactly one of target_collection_id or new_collection_name"
            )
        return self


class CollectionSummary(BaseModel):
    id: str
    name: str
    card_ids: list[str] = Field(default_factory=list)


class CollectionRead(CollectionSummary):
    cards: list[CardRead] = Field(default_factory=list)


class CollectionCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    card_ids: list[str] = Field(default_factory=list)


class CollectionRename(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class CardCreate(BaseModel):
    question: str = Field(..., min_length=1)
    answer: str = Field(..., min_length=1)
    image: str = ""


class CardUpdate(BaseModel):
    question: Optional[str] = Field(None, min_length=1)
    answer: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None


class MoveCardsRequest(_TargetMixin):
    card_ids: list[str] = Field(..., min_length=1)


class DeleteCardsRequest(BaseModel):
    card_ids: list[str] = Field(..., min_length=1)


class DeleteCardsResponse(BaseModel):
    deleted: int


class MergeRequest(_TargetMixin):
    source_collection_ids: list[str] = Field(..., min_length=1)
