from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base

from fastapi import Request

from typing import AsyncIterator
import logging


Base = declarative_base()


logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and session factory for one application instance.

    Created in the application lifespan and disposed at shutdown; request
    handlers reach it through ``get_session``.
    """

    def __init__(self, url: str, *, echo: bool = False) -> None:
        self.url = url
        self.engine = create_async_engine(url, echo=echo, pool_pre_ping=True)
        self.session_maker = async_sessionmaker(
            self.engine,
            expire_on_commit=False,
        )

    async def create_all(self) -> None:
        # Import models so Base metadata is aware of them
        from cardwise.core.db import schemas  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    db: Database = request.app.state.db
    async with db.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise
