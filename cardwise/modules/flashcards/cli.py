from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

import httpx

from cardwise.core.config import settings
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.modules.flashcards.generator import (
    DEFAULT_CARD_COUNT,
    FlashcardGateway,
    build_gateway,
)


def _load_topic(args: argparse.Namespace) -> str:
    if args.topic and args.topic_file:
        raise SystemExit("Provide either --topic or --topic-file, not both")
    if args.topic_file:
        return Path(args.topic_file).read_text(encoding="utf-8").strip()
    if args.topic:
        return args.topic
    raise SystemExit("--topic or --topic-file is required")


async def _generate(
    persona: Persona, topic: str, count: int, gateway: FlashcardGateway | None
) -> list[dict]:
    if gateway is not None:
        cards = await gateway.generate(persona, topic, count)
        return [c.model_dump() for c in cards]

    async with httpx.AsyncClient(timeout=settings.unsplash.timeout_seconds) as images:
        gateway = build_gateway(settings, image_client=images)
        cards = await gateway.generate(persona, topic, count)
    return [c.model_dump() for c in cards]


def main(
    argv: list[str] | None = None, *, gateway: FlashcardGateway | None = None
) -> int:
    parser = argparse.ArgumentParser(
        prog="flashcards-gen", description="Flashcards generator CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("generate", help="Generate flashcards for a topic or location")
    g.add_argument(
        "--persona",
        choices=[p.value for p in Persona],
        default=Persona.STUDENT.value,
        help="student: a batch of study cards; traveler: one trivia card",
    )
    g.add_argument("--topic", "-t", help="Subject or location (text)")
    g.add_argument("--topic-file", help="Path to a file containing the topic")
    g.add_argument("--count", "-n", type=int, default=DEFAULT_CARD_COUNT)

    args = parser.parse_args(argv)
    if args.cmd == "generate":
        topic = _load_topic(args)
        cards = asyncio.run(
            _generate(Persona(args.persona), topic, args.count, gateway)
        )
        print(json.dumps(cards, indent=2, ensure_ascii=False))
        return 0

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
