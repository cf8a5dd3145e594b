"""Payment intent creation for paid recipe access."""

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import stripe

from app.core.errors import PaymentError, ProviderNotConfigured

logger = logging.getLogger(__name__)

PRODUCT_DESCRIPTION = "ForkedAI Recipe Generator Access - $0.99"


@dataclass
class PaymentIntentResult:
    """Identifiers the client needs to confirm a payment."""
    client_secret: str
    payment_intent_id: str


def build_intent_params(amount: int, currency: str, user_id: str, product: str) -> dict:
    """Build the keyword arguments for ``PaymentIntent.create``."""
    return {
        "amount": amount,
        "currency": currency.lower(),
        "metadata": {
            "userId": user_id,
            "product": product,
            "timestamp": datetime.now(timezone.utc).isoformat()
        },
        "description": PRODUCT_DESCRIPTION
    }


class BasePaymentGateway(ABC):
    """Abstract base class for payment providers."""

    @abstractmethod
    def create_intent(self, amount: int, currency: str, user_id: str) -> PaymentIntentResult:
        """Create a payment intent for ``amount`` cents."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if the provider has what it needs to run."""
        pass


class MockPaymentGateway(BasePaymentGateway):
    """Issues fake intents without contacting a provider."""

    def create_intent(self, amount: int, currency: str, user_id: str) -> PaymentIntentResult:
        intent_id = f"pi_mock_{uuid.uuid4().hex[:16]}"
        return PaymentIntentResult(
            client_secret=f"{intent_id}_secret_mock",
            payment_intent_id=intent_id
        )

    def is_configured(self) -> bool:
        return True


class StripePaymentGateway(BasePaymentGateway):
    """Creates payment intents with the Stripe API."""

    def __init__(self, secret_key: Optional[str], product: str = "forkedai-recipe-access"):
        self._secret_key = secret_key
        self.product = product

    def create_intent(self, amount: int, currency: str, user_id: str) -> PaymentIntentResult:
        """Create a Stripe PaymentIntent and return its client secret."""
        if not self._secret_key:
            raise ProviderNotConfigured("Stripe secret key not configured")

        params = build_intent_params(amount, currency, user_id, self.product)
        logger.info(f"Creating payment intent for user {user_id}: {amount} {params['currency']}")

        try:
            intent = stripe.PaymentIntent.create(api_key=self._secret_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe payment intent creation error: {e}")
            raise PaymentError(e.user_message or "Failed to create payment intent", details=str(e))

        return PaymentIntentResult(
            client_secret=intent["client_secret"],
            payment_intent_id=intent["id"]
        )

    def is_configured(self) -> bool:
        return bool(self._secret_key)
