from .flashcards import Flashcard

__all__ = [
    "Flashcard",
]
