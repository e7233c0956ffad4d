from typing import Optional

from fastapi import APIRouter, Header, HTTPException, status

from cardwise.apis.deps import Checkout, CurrentUser
from cardwise.core.config import settings
from cardwise.modules.billing.checkout import CheckoutError
from .schemas import CheckoutResponse


router = APIRouter()


@router.post(
    f"/{settings.app.version}/checkout",
    response_model=CheckoutResponse,
    tags=["billing"],
)
async def create_checkout_session(
    user: CurrentUser,
    checkout: Checkout,
    origin: Optional[str] = Header(default=None),
) -> CheckoutResponse:
    try:
        session_id = await checkout.create_session(
            origin or settings.app.public_url,
            user_id=user.id,
            email=str(user.email) if user.email else None,
        )
    except CheckoutError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Checkout session creation failed",
        )
    return CheckoutResponse(session_id=session_id)
