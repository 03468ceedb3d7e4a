# app/utils/stripe_service.py
import logging
from typing import Dict, Optional

import stripe

from app.core.config import settings

logger = logging.getLogger(__name__)

stripe.api_key = settings.stripe_secret_key


class StripeService:
    """
    Thin wrapper over the Stripe SDK used by the payment and webhook services.

    The SDK module is injectable so callers can swap in a double.
    """

    def __init__(self, stripe_client=stripe):
        self._stripe = stripe_client

    def create_customer(
        self, email: str, name: Optional[str], user_id: str
    ) -> "stripe.Customer":
        customer = self._stripe.Customer.create(
            email=email,
            name=name,
            metadata={"user_id": user_id},
        )
        logger.info(f"Stripe customer {customer.id} created for user {user_id}")
        return customer

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        customer_id: str,
        metadata: Dict[str, str],
    ) -> "stripe.PaymentIntent":
        return self._stripe.PaymentIntent.create(
            amount=amount,
            currency=currency,
            customer=customer_id,
            metadata=metadata,
            automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
        )

    def confirm_payment_intent(
        self, intent_id: str, payment_method: str, return_url: str
    ) -> "stripe.PaymentIntent":
        return self._stripe.PaymentIntent.confirm(
            intent_id,
            payment_method=payment_method,
            return_url=return_url,
        )

    def construct_event(self, payload: bytes, signature: str) -> "stripe.Event":
        """
        Verify a webhook delivery against the endpoint secret.

        Raises ValueError for a malformed payload and
        stripe.SignatureVerificationError for a bad signature.
        """
        return self._stripe.Webhook.construct_event(
            payload, signature, settings.stripe_webhook_secret
        )


stripe_service = StripeService()
