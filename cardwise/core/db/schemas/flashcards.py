from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import uuid4
from sqlalchemy import (
    DateTime,
    Enum,
    ForeignKey,
    String,
    Text,
    func,
    JSON,
    text as sa_text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum

from cardwise.core.db.base import Base

if TYPE_CHECKING:
    from .auth import User


DEFAULT_COLLECTION_ID = "default"
DEFAULT_COLLECTION_NAME = "Default Collection"
COLLECTION_ID_MAX_LENGTH = 64


class Persona(str, enum.Enum):
    STUDENT = "student"
    TRAVELER = "traveler"


def new_id() -> str:
    return uuid4().hex


class Card(Base):
    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    persona: Mapped[Persona] = mapped_column(Enum(Persona), nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    picture: Mapped[str] = mapped_column(
        Text, nullable=False, default="", server_default=""
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    user: Mapped["User"] = relationship("User", back_populates="cards")


class Collection(Base):
    """A named set of card ids.

    ``card_ids`` is a JSON list with set semantics; it references cards by id
    and never owns them, so it may hold ids whose card row is gone.
    """

    __tablename__ = "collections"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), primary_key=True, index=True
    )
    persona: Mapped[Persona] = mapped_column(Enum(Persona), primary_key=True)
    id: Mapped[str] = mapped_column(
        String(COLLECTION_ID_MAX_LENGTH), primary_key=True, default=new_id
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    card_ids: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        server_default=sa_text("'[]'"),
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship("User", back_populates="collections")


__all__ = [
    "DEFAULT_COLLECTION_ID",
    "DEFAULT_COLLECTION_NAME",
    "COLLECTION_ID_MAX_LENGTH",
    "Persona",
    "Card",
    "Collection",
    "new_id",
]
