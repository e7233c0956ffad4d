"""Pydantic models for generated flashcards.

A ``Flashcard`` is the draft shape the generation gateway returns before the
card is persisted and given an id.
"""

from pydantic import BaseModel


class Flashcard(BaseModel):
    """Simple question/answer flashcard with an optional background image."""

    question: str
    answer: str
    image: str = ""

    def with_image(self, image: str) -> "Flashcard":
        return self.model_copy(update={"image": image or ""})
