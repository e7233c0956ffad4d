"""Parser for free-text "Question: ... Answer: ..." model output.

Grammar::

    output := block ( BLANK_LINE+ block )*
    block  := pair+
    pair   := [numbering] "Question:" text "Answer:" text

Blocks are separated by blank lines. A block normally holds one pair, but
models that ignore the blank-line instruction put several pairs on
consecutive lines, so a block may hold more than one. A further pair only
starts at the beginning of a line, so "question:" inside an answer is kept as
text. Labels are matched case-insensitively and may be wrapped in markdown
emphasis. Pairs with an empty question or answer are dropped.

``parse_cards`` never raises; it returns an empty list when nothing in the
text matches. ``parse_or_fallback`` turns that empty result into a single
caller-provided fallback card.
"""

from __future__ import annotations

import re

from cardwise.modules.flashcards.models.flashcards import Flashcard

_BLOCK_SEPARATOR = re.compile(r"\n[ \t]*\n+")


def _label(name: str) -> str:
    return r"[*_]{0,2}\s*" + name + r"\s*[*_]{0,2}\s*:\s*[*_]{0,2}"


_QUESTION = _label("question")
_ANSWER = _label("answer")
_PAIR = re.compile(
    _QUESTION
    + r"(?P<question>.*?)"
    + _ANSWER
    + r"(?P<answer>.*?)"
    + r"(?=^[ \t]*(?:\d+[.)][ \t]*)?"
    + _QUESTION
    + r"|\Z)",
    re.IGNORECASE | re.DOTALL | re.MULTILINE,
)
_NUMBERING = re.compile(r"^\s*(?:\d+[.)]|[-*])\s+")


def _clean(text: str) -> str:
    text = _NUMBERING.sub("", text.strip())
    return re.sub(r"[ \t]*\n[ \t]*", " ", text).strip().strip("*_").strip()


def split_blocks(text: str) -> list[str]:
    return [b for b in _BLOCK_SEPARATOR.split(text.strip()) if b.strip()]


def parse_block(block: str) -> list[Flashcard]:
    cards: list[Flashcard] = []
    for match in _PAIR.finditer(block):
        question = _clean(match.group("question"))
        answer = _clean(match.group("answer"))
        if question and answer:
            cards.append(Flashcard(question=question, answer=answer))
    return cards


def parse_cards(text: str | None) -> list[Flashcard]:
    """Parse every well-formed pair in ``text``, in order."""
    if not text or not text.strip():
        return []
    cards: list[Flashcard] = []
    for block in split_blocks(text):
        cards.extend(parse_block(block))
    return cards


def parse_or_fallback(
    text: str | None, fallback: Flashcard, *, limit: int | None = None
) -> list[Flashcard]:
    cards = parse_cards(text)
    if limit is not None:
        cards = cards[:limit]
    return cards or [fallback]


def student_fallback(topic: str) -> Flashcard:
    return Flashcard(
        question=f"What is an interesting fact about {topic}?",
        answer=(
            f"I'm sorry, but I couldn't generate specific flashcards about {topic} "
            "at this time. Please try again later."
        ),
    )


def traveler_fallback(location: str) -> Flashcard:
    return Flashcard(
        question=f"What is an interesting fact about {location}?",
        answer=(
            "I'm sorry, but I couldn't generate a specific trivia question about "
            f"{location} at this time. Please try again later."
        ),
    )
