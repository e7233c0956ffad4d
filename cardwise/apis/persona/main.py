from fastapi import APIRouter, HTTPException, status

from cardwise.apis.deps import CurrentUser, Session
from cardwise.core.config import settings
from cardwise.core.db.schemas.auth import User
from .schemas import PersonaRead, PersonaUpdate


router = APIRouter()


@router.get(
    f"/{settings.app.version}/persona",
    response_model=PersonaRead,
    tags=["persona"],
)
async def get_persona(current_user: CurrentUser, session: Session):
    """Persona the user last selected, or null"""
    user = await session.get(User, current_user.id)
    return PersonaRead(persona=user.persona if user else None)


@router.put(
    f"/{settings.app.version}/persona",
    response_model=PersonaRead,
    status_code=status.HTTP_200_OK,
    tags=["persona"],
)
async def set_persona(
    data: PersonaUpdate,
    current_user: CurrentUser,
    session: Session,
):
    """Store the persona picked on the landing page"""
    user = await session.get(User, current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    user.persona = data.persona
    await session.commit()
    return PersonaRead(persona=user.persona)
