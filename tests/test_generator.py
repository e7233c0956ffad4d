"""Tests for flashcard and trivia generation."""

import httpx
import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel

from cardwise.core.config import OpenRouterSettings
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.modules.flashcards.generator import (
    FLASHCARDS_MAX_TOKENS,
    MAX_CARDS,
    TRIVIA_MAX_TOKENS,
    FlashcardGateway,
    GenerationError,
    build_openrouter_model,
    clamp_count,
)
from cardwise.modules.flashcards.images import ImageSearchClient


def recording_model(text: str, calls: list[dict]) -> FunctionModel:
    """Answers with ``text`` and records prompts and settings of every call."""

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        parts = [p for m in messages for p in getattr(m, "parts", [])]
        calls.append(
            {
                "system": [p.content for p in parts if isinstance(p, SystemPromptPart)],
                "user": [p.content for p in parts if isinstance(p, UserPromptPart)],
                "settings": dict(info.model_settings or {}),
            }
        )
        return ModelResponse(parts=[TextPart(text)])

    return FunctionModel(respond)


def failing_model(status_code: int) -> FunctionModel:
    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise ModelHTTPError(status_code=status_code, model_name="test-model", body="upstream")

    return FunctionModel(respond)


class TestGenerateCards:
    async def test_cards_carry_the_topic_image(self, make_gateway, biology_text, image_url) -> None:
        """Every generated card gets the single background image for the topic."""
        gateway = make_gateway(biology_text)

        cards = await gateway.generate_cards("Biology", 5)

        assert len(cards) == 5
        assert {c.image for c in cards} == {image_url}
        assert cards[1].answer == "DNA."

    async def test_prompt_and_settings(self, image_client, biology_text) -> None:
        calls: list[dict] = []
        gateway = FlashcardGateway(
            recording_model(biology_text, calls),
            image_client,
            fallback_models=["primary/model:free", "backup/model:free"],
        )

        await gateway.generate_cards("Biology", 3)

        assert len(calls) == 1
        call = calls[0]
        assert call["system"] == ["You are a helpful assistant that generates flashcards."]
        assert call["user"][0].startswith("Generate 3 flashcards about Biology.")
        assert call["settings"]["max_tokens"] == FLASHCARDS_MAX_TOKENS
        assert call["settings"]["extra_body"] == {
            "models": ["primary/model:free", "backup/model:free"],
            "route": "fallback",
        }

    async def test_output_is_truncated_to_count(self, make_gateway, biology_text) -> None:
        cards = await make_gateway(biology_text).generate_cards("Biology", 2)

        assert [c.question for c in cards] == [
            "What is the powerhouse of the cell?",
            "What molecule carries genetic information?",
        ]

    async def test_unparseable_output_falls_back(self, make_gateway, image_url) -> None:
        """Text without Question/Answer labels yields one apology card."""
        cards = await make_gateway("Sorry, I can't do that.").generate_cards("Biology")

        assert len(cards) == 1
        assert cards[0].question == "What is an interesting fact about Biology?"
        assert cards[0].image == image_url

    async def test_empty_output_falls_back(self, make_gateway) -> None:
        cards = await make_gateway("   ").generate_cards("Biology")

        assert len(cards) == 1
        assert "Biology" in cards[0].question

    async def test_http_error_raises_generation_error(self, make_gateway) -> None:
        gateway = make_gateway(failing_model(502))

        with pytest.raises(GenerationError, match="502"):
            await gateway.generate_cards("Biology")

    async def test_works_without_image(self, biology_text) -> None:
        """A missing Unsplash key leaves the image empty but still generates cards."""
        async with httpx.AsyncClient() as client:
            gateway = FlashcardGateway(
                recording_model(biology_text, []),
                ImageSearchClient(client, access_key=None),
            )
            cards = await gateway.generate_cards("Biology")

        assert len(cards) == 5
        assert all(c.image == "" for c in cards)


class TestTrivia:
    async def test_single_trivia_card(self, image_client, image_url) -> None:
        calls: list[dict] = []
        gateway = FlashcardGateway(
            recording_model("Question: Tallest tower in Paris?\nAnswer: The Eiffel Tower.", calls),
            image_client,
        )

        card = await gateway.trivia("Paris")

        assert card.question == "Tallest tower in Paris?"
        assert card.answer == "The Eiffel Tower."
        assert card.image == image_url
        assert calls[0]["system"] == ["You are a helpful assistant that generates trivia questions."]
        assert calls[0]["settings"]["max_tokens"] == TRIVIA_MAX_TOKENS
        assert "extra_body" not in calls[0]["settings"]

    async def test_only_first_pair_is_kept(self, make_gateway, biology_text) -> None:
        card = await make_gateway(biology_text).trivia("Paris")

        assert card.answer == "The mitochondrion."

    async def test_unparseable_trivia_falls_back(self, make_gateway) -> None:
        card = await make_gateway("no idea").trivia("Kyoto")

        assert card.question == "What is an interesting fact about Kyoto?"
        assert "trivia question about Kyoto" in card.answer

    async def test_http_error_raises_generation_error(self, make_gateway) -> None:
        with pytest.raises(GenerationError):
            await make_gateway(failing_model(429)).trivia("Kyoto")


class TestGenerateByPersona:
    async def test_student_gets_a_batch(self, make_gateway, biology_text) -> None:
        cards = await make_gateway(biology_text).generate(Persona.STUDENT, "Biology", 4)

        assert len(cards) == 4

    async def test_traveler_gets_one_trivia_card(self, make_gateway, biology_text) -> None:
        cards = await make_gateway(biology_text).generate(Persona.TRAVELER, "Paris", 5)

        assert len(cards) == 1


class TestHelpers:
    def test_clamp_count(self) -> None:
        assert clamp_count(0) == 1
        assert clamp_count(7) == 7
        assert clamp_count(500) == MAX_CARDS

    def test_model_requires_api_key(self) -> None:
        conf = OpenRouterSettings().model_copy(update={"api_key": None})

        with pytest.raises(RuntimeError, match="OPENROUTER_API_KEY"):
            build_openrouter_model(conf)

    def test_model_requires_a_model_name(self) -> None:
        conf = OpenRouterSettings().model_copy(update={"api_key": "sk-or-test", "models": []})

        with pytest.raises(RuntimeError, match="OPENROUTER_MODELS"):
            build_openrouter_model(conf)


class TestImageSearch:
    async def test_request_shape(self, image_url) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"urls": {"regular": image_url}})

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            url = await ImageSearchClient(client, access_key="abc").fetch_background_image("Paris")

        assert url == image_url
        request = seen[0]
        assert request.url.path == "/photos/random"
        assert request.url.params["query"] == "Paris"
        assert request.url.params["orientation"] == "portrait"
        assert request.url.params["featured"] == "true"
        assert request.headers["Authorization"] == "Client-ID abc"
        assert request.headers["Accept-Version"] == "v1"

    async def test_list_payload_uses_first_photo(self, image_url) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200, json=[{"urls": {"regular": image_url}}, {"urls": {"regular": "other"}}]
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            url = await ImageSearchClient(client, access_key="abc").fetch_background_image("Paris")

        assert url == image_url

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, json={"errors": ["boom"]}),
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json=[]),
            httpx.Response(200, json={"urls": {}}),
        ],
    )
    async def test_failures_return_empty_string(self, response: httpx.Response) -> None:
        async with httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: response)
        ) as client:
            url = await ImageSearchClient(client, access_key="abc").fetch_background_image("x")

        assert url == ""

    async def test_missing_key_skips_request(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            url = await ImageSearchClient(client, access_key=None).fetch_background_image("x")

        assert url == ""
