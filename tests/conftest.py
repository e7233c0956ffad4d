from typing import Callable

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cardwise.core.config import StripeSettings
from cardwise.core.db import schemas  # noqa: F401
from cardwise.core.db.base import Base, get_session
from cardwise.core.db.schemas.auth import User
from cardwise.core.db.schemas.flashcards import Persona
from cardwise.core.db_services import CardStore, CollectionStore, Namespace
from cardwise.modules.auth import current_active_user
from cardwise.modules.billing.checkout import CheckoutService
from cardwise.modules.flashcards.generator import FlashcardGateway
from cardwise.modules.flashcards.images import ImageSearchClient
from cardwise.modules.flashcards.reconciler import CollectionReconciler
from main import app

IMAGE_URL = "https://images.unsplash.com/photo-123?w=1080"

FIVE_BIOLOGY_CARDS = """Question: What is the powerhouse of the cell?
Answer: The mitochondrion.

Question: What molecule carries genetic information?
Answer: DNA.

Question: What process do plants use to make food?
Answer: Photosynthesis.

Question: What is the basic unit of life?
Answer: The cell.

Question: Which organelle contains chlorophyll?
Answer: The chloroplast."""


def text_model(text: str) -> FunctionModel:
    """A model that always answers with ``text``."""

    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        return ModelResponse(parts=[TextPart(text)])

    return FunctionModel(respond)


def unsplash_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"id": "abc", "urls": {"regular": IMAGE_URL}})


@pytest.fixture
async def image_client():
    client = httpx.AsyncClient(transport=httpx.MockTransport(unsplash_handler))
    yield ImageSearchClient(client, access_key="test-key")
    await client.aclose()


@pytest.fixture
def make_gateway(image_client) -> Callable[..., FlashcardGateway]:
    def _make(model) -> FlashcardGateway:
        if isinstance(model, str):
            model = text_model(model)
        return FlashcardGateway(
            model,
            image_client,
            fallback_models=["primary/model:free", "backup/model:free"],
        )

    return _make


@pytest.fixture
async def async_engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_maker(async_engine):
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_maker) -> AsyncSession:
    """Provide a database session for tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def user(session_maker) -> User:
    async with session_maker() as s:
        u = User(
            id=1,
            email="learner@example.com",
            hashed_password="not-a-real-hash",
            is_active=True,
            is_superuser=False,
            is_verified=True,
        )
        s.add(u)
        await s.commit()
        return u


@pytest.fixture
def ns(user) -> Namespace:
    return Namespace(user_id=user.id, persona=Persona.STUDENT)


@pytest.fixture
def card_store(session) -> CardStore:
    return CardStore(session)


@pytest.fixture
def collection_store(session) -> CollectionStore:
    return CollectionStore(session)


@pytest.fixture
def reconciler(card_store, collection_store) -> CollectionReconciler:
    return CollectionReconciler(card_store, collection_store)


@pytest.fixture
async def client(session_maker, user, make_gateway):
    """Provide an async test client with overridden session, user and services."""

    async def override_get_session():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[current_active_user] = lambda: user
    app.state.gateway = make_gateway(FIVE_BIOLOGY_CARDS)
    app.state.checkout = CheckoutService(
        StripeSettings().model_copy(update={"secret_key": "sk_test_123"})
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.gateway = None


@pytest.fixture
def biology_text() -> str:
    """Five well-formed study cards as a model would return them."""
    return FIVE_BIOLOGY_CARDS


@pytest.fixture
def image_url() -> str:
    return IMAGE_URL
