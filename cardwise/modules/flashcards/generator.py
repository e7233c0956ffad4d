"""Flashcard and trivia generation using pydantic-ai over OpenRouter.

``FlashcardGateway`` wraps a text model and an image search client. The model
is asked for plain "Question: ... Answer: ..." text, which is parsed by
:mod:`cardwise.modules.flashcards.parser`. Provider imports are kept lazy to
avoid import-time errors when credentials are missing.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import openai
from pydantic_ai import Agent
from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior
from pydantic_ai.settings import ModelSettings

from cardwise.core.config import OpenRouterSettings, Settings
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.core.logging import get_logger
from cardwise.modules.flashcards.images import ImageSearchClient
from cardwise.modules.flashcards.models.flashcards import Flashcard
from cardwise.modules.flashcards.parser import (
    parse_or_fallback,
    student_fallback,
    traveler_fallback,
)

logger = get_logger(__name__)

DEFAULT_CARD_COUNT = 5
MAX_CARDS = 20
FLASHCARDS_MAX_TOKENS = 500
TRIVIA_MAX_TOKENS = 150

FLASHCARDS_SYSTEM_PROMPT = "You are a helpful assistant that generates flashcards."
TRIVIA_SYSTEM_PROMPT = "You are a helpful assistant that generates trivia questions."


class GenerationError(Exception):
    """Raised when the text model cannot be reached or rejects the request."""


def _flashcards_instruction(topic: str, count: int) -> str:
    return (
        f"Generate {count} flashcards about {topic}. "
        'Format each flashcard as "Question: [your question] Answer: [your answer]". '
        "Put each flashcard on a newline. Do not include any other text or comments."
    )


def _trivia_instruction(location: str) -> str:
    return (
        f"Generate a trivia question and answer about {location}. "
        'Format the response as "Question: [your question] Answer: [your answer]" '
        "do not include any other text or comments"
    )


def clamp_count(count: int) -> int:
    return max(1, min(int(count), MAX_CARDS))


def build_openrouter_model(
    conf: OpenRouterSettings, *, http_client: Optional[httpx.AsyncClient] = None
):
    """Build OpenRouter model via OpenAI-compatible provider (lazy import)."""
    from pydantic_ai.models.openai import OpenAIChatModel
    from pydantic_ai.providers.openai import OpenAIProvider

    if not conf.api_key:
        raise RuntimeError(
            "OpenRouter API key not configured. Set OPENROUTER_API_KEY in your environment."
        )
    if not conf.models:
        raise RuntimeError("OPENROUTER_MODELS must name at least one model.")

    provider = OpenAIProvider(
        api_key=conf.api_key,
        base_url=conf.base_url,
        http_client=http_client,
    )
    return OpenAIChatModel(conf.models[0], provider=provider)


class FlashcardGateway:
    """Produces draft cards for a persona and topic.

    The model handle and image client are injected so the gateway can be built
    once per process (or per test) and shared across requests.
    """

    def __init__(
        self,
        model: Any,
        images: ImageSearchClient,
        *,
        fallback_models: Optional[list[str]] = None,
    ) -> None:
        self.model = model
        self.images = images
        self.fallback_models = list(fallback_models or [])

    def _model_settings(self, max_tokens: int) -> ModelSettings:
        model_settings = ModelSettings(max_tokens=max_tokens)
        if self.fallback_models:
            # OpenRouter tries these in order when the primary model fails
            model_settings["extra_body"] = {
                "models": self.fallback_models,
                "route": "fallback",
            }
        return model_settings

    async def _complete(
        self, system_prompt: str, instruction: str, max_tokens: int
    ) -> Optional[str]:
        """Run one completion; ``None`` means the model answered with nothing usable."""
        agent: Agent[None, str] = Agent[None, str](
            model=self.model,
            output_type=str,
            system_prompt=system_prompt,
            model_settings=self._model_settings(max_tokens),
            retries=1,
        )
        try:
            res = await agent.run(instruction)
        except ModelHTTPError as e:
            logger.exception("Text model returned HTTP %s", e.status_code)
            raise GenerationError(
                f"Text model request failed with status {e.status_code}"
            ) from e
        except (httpx.HTTPError, openai.APIError) as e:
            logger.exception("Text model request failed")
            raise GenerationError(f"Text model request failed: {e}") from e
        except UnexpectedModelBehavior as e:
            logger.warning(f"Unusable text model response: {e}")
            return None

        content = (res.output or "").strip()
        return content or None

    async def generate_cards(
        self, topic: str, count: int = DEFAULT_CARD_COUNT
    ) -> list[Flashcard]:
        """Generate up to ``count`` study cards about ``topic``, image attached."""
        count = clamp_count(count)
        image = await self.images.fetch_background_image(topic)
        content = await self._complete(
            FLASHCARDS_SYSTEM_PROMPT,
            _flashcards_instruction(topic, count),
            FLASHCARDS_MAX_TOKENS,
        )
        if content is None:
            logger.warning(f"Failed to retrieve flashcards for {topic!r}; using fallback")
        cards = parse_or_fallback(content, student_fallback(topic), limit=count)
        logger.info(f"Generated {len(cards)} flashcard(s) for {topic!r}")
        return [c.with_image(image) for c in cards]

    async def trivia(self, location: str) -> Flashcard:
        """Generate one trivia card about ``location``, image attached."""
        image = await self.images.fetch_background_image(location)
        content = await self._complete(
            TRIVIA_SYSTEM_PROMPT,
            _trivia_instruction(location),
            TRIVIA_MAX_TOKENS,
        )
        if content is None:
            logger.warning(f"Failed to retrieve trivia for {location!r}; using fallback")
        card = parse_or_fallback(content, traveler_fallback(location), limit=1)[0]
        return card.with_image(image)

    async def generate(
        self, persona: Persona, topic: str, count: int = DEFAULT_CARD_COUNT
    ) -> list[Flashcard]:
        """Students get a batch of study cards; travelers get a single trivia card."""
        if persona is Persona.TRAVELER:
            return [await self.trivia(topic)]
        return await self.generate_cards(topic, count)


def build_gateway(
    conf: Settings,
    *,
    image_client: httpx.AsyncClient,
    model_client: Optional[httpx.AsyncClient] = None,
) -> FlashcardGateway:
    model = build_openrouter_model(conf.openrouter, http_client=model_client)
    return FlashcardGateway(
        model,
        ImageSearchClient.from_settings(image_client, conf.unsplash),
        fallback_models=conf.openrouter.models,
    )
