# routes/webhooks.py
import logging

from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from core import errors
from core.database import get_session
from services.billing_service import construct_stripe_event, process_stripe_event

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


# ==========================================================
# ✅ Stripe Connect: member dues subscriptions
# ==========================================================
@router.post("/stripe-connect")
async def stripe_connect_webhook(request: Request, session: Session = Depends(get_session)):
    """Keep the billing ledger in sync with dues subscriptions on band Stripe accounts"""
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")

    if not sig_header:
        logger.warning("❌ Missing stripe-signature header")
        raise errors.bad_request("Missing stripe-signature header")

    event = construct_stripe_event(payload, sig_header)
    return process_stripe_event(session, event)
