"""Flashcards module exports."""

from .models.flashcards import Flashcard
from .generator import FlashcardGateway, GenerationError, build_gateway
from .parser import parse_cards, parse_or_fallback

__all__ = [
    "Flashcard",
    "FlashcardGateway",
    "GenerationError",
    "build_gateway",
    "parse_cards",
    "parse_or_fallback",
]
