"""
Utility services: platform statistics, image-host upload signatures and payment intents.
"""
import math
from typing import Any, Optional

import stripe
from fastapi.concurrency import run_in_threadpool
from imagekitio import ImageKit
from motor.motor_asyncio import AsyncIOMotorDatabase

from mentora.core.config import settings
from mentora.core.logging import audit_log
from mentora.db.mongodb import COURSES, ENROLLMENTS, USERS


class InvalidAmountError(ValueError):
    """Raised when a payment amount is rejected before reaching the provider."""


class StatisticsService:
    """Approximate platform counts."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    async def totals(self) -> dict[str, int]:
        """
        Collection sizes from metadata (estimatedDocumentCount).
        Each count is read independently, so the three values are not a consistent snapshot.
        """
        return {
            "totalUsers": await self.db[USERS].estimated_document_count(),
            "totalCourses": await self.db[COURSES].estimated_document_count(),
            "totalEnrollments": await self.db[ENROLLMENTS].estimated_document_count(),
        }


class ImageSignatureService:
    """Authentication parameters for direct client uploads to ImageKit."""

    def __init__(self, imagekit: Optional[ImageKit] = None):
        self.imagekit = imagekit

    def signature(self) -> dict[str, Any]:
        """Returns {token, expire, signature}; nothing is persisted."""
        if self.imagekit is None:
            self.imagekit = ImageKit(
                private_key=settings.IMAGEKIT_PRIVATE_KEY,
                public_key=settings.IMAGEKIT_PUBLIC_KEY,
                url_endpoint=settings.IMAGEKIT_URL_ENDPOINT,
            )
        return self.imagekit.get_authentication_parameters()


def to_minor_units(amount: Any) -> int:
    """
    Validate a payment amount and convert it to cents, rounding half up.

    Raises:
        InvalidAmountError: for zero, non-numeric or negative amounts
    """
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise InvalidAmountError("Invalid amount")
    if not amount or not math.isfinite(amount):
        raise InvalidAmountError("Invalid amount")
    if amount < 0:
        raise InvalidAmountError("Amount cannot be negative")
    return int(math.floor(amount * 100 + 0.5))


class PaymentService:
    """Creates Stripe payment intents for card checkout."""

    def __init__(self, client: Optional[stripe.StripeClient] = None):
        self.client = client

    async def create_payment_intent(self, amount_in_cents: int) -> str:
        """Create a payment intent and return its client secret."""
        if self.client is None:
            self.client = stripe.StripeClient(settings.STRIPE_SECRET_KEY)
        intent = await run_in_threadpool(
            self.client.payment_intents.create,
            params={
                "amount": amount_in_cents,
                "currency": settings.PAYMENT_CURRENCY,
                "payment_method_types": ["card"],
            },
        )
        audit_log.info(
            "payment.intent.created",
            target_type="payment_intent",
            target_id=intent.id,
            details={"amount": amount_in_cents, "currency": settings.PAYMENT_CURRENCY}
        )
        return intent.client_secret


_image_service: Optional[ImageSignatureService] = None
_payment_service: Optional[PaymentService] = None


def get_image_signature_service() -> ImageSignatureService:
    """Dependency that provides the ImageKit signer, built on first use."""
    global _image_service
    if _image_service is None:
        _image_service = ImageSignatureService()
    return _image_service


def get_payment_service() -> PaymentService:
    """Dependency that provides the Stripe client wrapper, built on first use."""
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service
