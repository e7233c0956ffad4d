from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import httpx

from cardwise.core.config import settings
from cardwise.core.db.base import Database
from cardwise.core.db_services import CardNotFoundError, CollectionNotFoundError
from cardwise.core.logging import get_logger, setup_logging
from cardwise.apis.auth.main import router as auth_router
from cardwise.apis.persona.main import router as persona_router
from cardwise.apis.flashcards.main import router as flashcards_router
from cardwise.apis.collections.main import router as collections_router
from cardwise.apis.billing.main import router as billing_router
from cardwise.modules.billing.checkout import CheckoutService
from cardwise.modules.flashcards.generator import build_gateway

import uvicorn
from fastapi.middleware.cors import CORSMiddleware


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()

    db = Database(settings.database.url, echo=settings.database.echo)
    await db.create_all()
    image_client = httpx.AsyncClient(timeout=settings.unsplash.timeout_seconds)
    model_client = httpx.AsyncClient(
        timeout=60.0,
        headers={
            "HTTP-Referer": settings.app.public_url,
            "X-Title": settings.openrouter.app_title,
        },
    )

    app.state.db = db
    app.state.checkout = CheckoutService(settings.stripe)
    try:
        app.state.gateway = build_gateway(
            settings, image_client=image_client, model_client=model_client
        )
    except RuntimeError as e:
        logger.warning(f"Flashcard generation disabled: {e}")
        app.state.gateway = None

    try:
        yield
    finally:
        await model_client.aclose()
        await image_client.aclose()
        await db.dispose()


async def _not_found(request: Request, exc: LookupError) -> JSONResponse:
    kind = "Card" if isinstance(exc, CardNotFoundError) else "Collection"
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": f"{kind} not found: {exc.args[0] if exc.args else ''}"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app.name, version=settings.app.version, lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.app.public_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CardNotFoundError, _not_found)
    app.add_exception_handler(CollectionNotFoundError, _not_found)

    app.include_router(auth_router)
    app.include_router(persona_router)
    app.include_router(flashcards_router)
    app.include_router(collections_router)
    app.include_router(billing_router)

    @app.get("/")
    async def root():
        return {
            "status": "ok",
            "app": settings.app.name,
            "version": settings.app.version,
        }

    return app


app = create_app()


if __name__ == "__main__":
    try:
        uvicorn.run(
            "main:app",
            host="0.0.0.0",
            port=settings.app.port,
            reload=not settings.app.is_production,
        )
    except Exception as e:
        print(f"An error occurred when starting the server: {e}.")
