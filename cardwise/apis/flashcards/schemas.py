from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, model_validator

from cardwise.core.db.schemas.flashcards import COLLECTION_ID_MAX_LENGTH, Persona
from cardwise.modules.flashcards.generator import DEFAULT_CARD_COUNT, MAX_CARDS


class GenerateRequest(BaseModel):
    persona: Optional[Persona] = Field(
        None, description="Defaults to the persona stored on the user"
    )
    topic: Optional[str] = Field(None, description="Study subject (student)")
    location: Optional[str] = Field(None, description="Place to learn about (traveler)")
    # Used as the collection id as well as its name
    collection_name: Optional[str] = Field(
        None,
        max_length=COLLECTION_ID_MAX_LENGTH,
        description="Collection to file the cards into; the default bucket when omitted",
    )
    count: int = Field(DEFAULT_CARD_COUNT, ge=1, le=MAX_CARDS)

    @model_validator(mode="after")
    def _require_subject(self) -> "GenerateRequest":
        if not (self.topic or "").strip() and not (self.location or "").strip():
            raise ValueError("Either topic or location is required")
        return self


class CardRead(BaseModel):
    id: str
    question: str
    answer: str
    image: str = ""
    missing: bool = False


class GenerateResponse(BaseModel):
    flashcards: list[CardRead]
    card_ids: list[str]
    collection_id: str


class TriviaRequest(BaseModel):
    location: str = Field(..., min_length=1)


class Trivia(BaseModel):
    question: str
    answer: str


class TriviaResponse(BaseModel):
    trivia: Trivia
    background_image: str = ""
