from __future__ import annotations

from typing import TYPE_CHECKING, Optional
from sqlalchemy import Enum, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTable

from cardwise.core.db.base import Base
from cardwise.core.db.schemas.flashcards import Persona

if TYPE_CHECKING:
    from .flashcards import Card, Collection


class User(SQLAlchemyBaseUserTable[int], Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    # Persona the user last picked on the landing page
    persona: Mapped[Optional[Persona]] = mapped_column(Enum(Persona), nullable=True)

    # Relationships
    cards: Mapped[list["Card"]] = relationship(
        "Card", back_populates="user", cascade="all, delete-orphan"
    )
    collections: Mapped[list["Collection"]] = relationship(
        "Collection", back_populates="user", cascade="all, delete-orphan"
    )


__all__ = ["User"]
