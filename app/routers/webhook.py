# app/routers/webhook.py
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.dependencies import get_payment_processor
from app.services.webhook import WebhookService
from app.utils.stripe_service import StripeService

router = APIRouter(prefix="/api/stripe", tags=["Stripe"])


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    processor: StripeService = Depends(get_payment_processor),
):
    """Receive Stripe events. The raw body is needed for signature verification."""
    payload = await request.body()
    return WebhookService(db, processor).handle(payload, stripe_signature)
