from pydantic import BaseModel


class CheckoutResponse(BaseModel):
    session_id: str
