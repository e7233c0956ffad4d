"""Tests for the flashcards-gen command line."""

import json

import httpx
import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from cardwise.modules.flashcards.cli import main
from cardwise.modules.flashcards.generator import FlashcardGateway
from cardwise.modules.flashcards.images import ImageSearchClient

TEXT = "Question: What is DNA?\nAnswer: Genetic material.\n\nQuestion: What is RNA?\nAnswer: A messenger."


@pytest.fixture
def gateway() -> FlashcardGateway:
    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[TextPart(TEXT)])

    # no access key, so the client is never used
    return FlashcardGateway(
        FunctionModel(respond), ImageSearchClient(httpx.AsyncClient(), access_key=None)
    )


class TestCli:
    def test_generate_prints_json(self, gateway, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(["generate", "--topic", "Biology", "--count", "2"], gateway=gateway)

        assert code == 0
        cards = json.loads(capsys.readouterr().out)
        assert cards == [
            {"question": "What is DNA?", "answer": "Genetic material.", "image": ""},
            {"question": "What is RNA?", "answer": "A messenger.", "image": ""},
        ]

    def test_traveler_prints_one_card(self, gateway, capsys: pytest.CaptureFixture[str]) -> None:
        main(["generate", "--persona", "traveler", "-t", "Paris"], gateway=gateway)

        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_topic_file(self, gateway, tmp_path, capsys: pytest.CaptureFixture[str]) -> None:
        topic_file = tmp_path / "topic.txt"
        topic_file.write_text("Biology\n", encoding="utf-8")

        main(["generate", "--topic-file", str(topic_file), "-n", "1"], gateway=gateway)

        assert len(json.loads(capsys.readouterr().out)) == 1

    def test_topic_required(self, gateway) -> None:
        with pytest.raises(SystemExit):
            main(["generate"], gateway=gateway)
