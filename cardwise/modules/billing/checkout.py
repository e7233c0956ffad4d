"""Premium subscription checkout through Stripe Checkout."""

from __future__ import annotations

import asyncio
from typing import Optional

import stripe

from cardwise.core.config import StripeSettings
from cardwise.core.logging import get_logger

logger = get_logger(__name__)


class CheckoutError(Exception):
    """Raised when a checkout session cannot be created."""


class CheckoutService:
    def __init__(self, conf: StripeSettings) -> None:
        self.conf = conf

    def _line_items(self) -> list[dict]:
        return [
            {
                "price_data": {
                    "currency": self.conf.currency,
                    "product_data": {"name": self.conf.product_name},
                    "unit_amount": self.conf.price_cents,
                    "recurring": {"interval": self.conf.interval},
                },
                "quantity": 1,
            }
        ]

    async def create_session(
        self,
        origin: str,
        *,
        user_id: Optional[int] = None,
        email: Optional[str] = None,
    ) -> str:
        """Create a subscription checkout session and return its id.

        Successful payment lands on ``{origin}/dashboard``; cancelling returns
        to ``{origin}/premium``.
        """
        if not self.conf.secret_key:
            raise CheckoutError("Stripe secret key not configured")

        origin = origin.rstrip("/")
        params = dict(
            api_key=self.conf.secret_key,
            payment_method_types=["card"],
            line_items=self._line_items(),
            mode="subscription",
            success_url=f"{origin}/dashboard",
            cancel_url=f"{origin}/premium",
        )
        if user_id is not None:
            params["client_reference_id"] = str(user_id)
        if email:
            params["customer_email"] = email

        try:
            # stripe's client is blocking
            session = await asyncio.to_thread(stripe.checkout.Session.create, **params)
        except stripe.StripeError as e:
            logger.exception("Stripe checkout session creation failed")
            raise CheckoutError(str(e)) from e

        logger.info(f"Created checkout session {session.id} for user {user_id}")
        return session.id
