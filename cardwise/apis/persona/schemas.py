from typing import Optional

from pydantic import BaseModel

from cardwise.core.db.schemas.flashcards import Persona


class PersonaUpdate(BaseModel):
    persona: Persona


class PersonaRead(BaseModel):
    persona: Optional[Persona] = None
