"""
Utility API endpoints: upload signatures, payment intents and statistics.
"""
from typing import Any
from fastapi import APIRouter, Body, Depends, status
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError
import stripe

from mentora.api.responses import respond
from mentora.core.logging import audit_log
from mentora.db.mongodb import get_mongodb
from mentora.services.utils_service import (
    ImageSignatureService, InvalidAmountError, PaymentService, StatisticsService,
    get_image_signature_service, get_payment_service, to_minor_units
)


router = APIRouter(tags=["Utilities"])


@router.get("/get-ik-signature")
async def get_ik_signature(
    signer: ImageSignatureService = Depends(get_image_signature_service)
):
    """Time-scoped parameters for a direct browser upload to ImageKit."""
    try:
        params = signer.signature()
    except Exception as e:
        audit_log.log_failure("imagekit.signature.failed", e)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Internal server error")
    return respond(status.HTTP_200_OK, params)


@router.post("/create-payment-intent")
async def create_payment_intent(
    amount: Any = Body(None, embed=True),
    payments: PaymentService = Depends(get_payment_service)
):
    """
    Create a card payment intent for `amount` (major currency units).
    Returns the client secret the browser needs to confirm the payment.
    """
    try:
        amount_in_cents = to_minor_units(amount)
    except InvalidAmountError as e:
        return respond(status.HTTP_400_BAD_REQUEST, error=str(e))

    try:
        client_secret = await payments.create_payment_intent(amount_in_cents)
    except stripe.StripeError as e:
        audit_log.log_failure("payment.intent.failed", e, amount=amount_in_cents)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, error=str(e))

    return respond(status.HTTP_200_OK, clientSecret=client_secret)


@router.get("/statistics")
async def get_statistics(db: AsyncIOMotorDatabase = Depends(get_mongodb)):
    """Approximate counts of users, courses and enrollments."""
    try:
        totals = await StatisticsService(db).totals()
    except PyMongoError as e:
        audit_log.log_failure("statistics.failed", e)
        return respond(status.HTTP_500_INTERNAL_SERVER_ERROR, success=False, message="Internal server error")

    return respond(status.HTTP_200_OK, success=True, message="Statistics fetched successfully", data=totals)
