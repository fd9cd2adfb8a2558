# routes/quick.py
# Login-free confirmation links sent to payers by email.
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from schemas.manual_payment_schema import (
    ManualPaymentRead,
    ManualPaymentResponse,
    PaymentContextRead,
    TokenConfirm,
)
from services.manual_payment_service import confirm_manual_payment_with_token, get_payment_context
from services.notification_service import Notifier, get_notifier

router = APIRouter(prefix="/quick", tags=["Quick Actions"])


@router.get("/payments/{payment_id}", response_model=PaymentContextRead)
def read_payment_context(
    payment_id: int,
    token: str = Query(..., min_length=1, max_length=64),
    session: Session = Depends(get_session),
):
    return get_payment_context(session, payment_id, token)


@router.post("/payments/{payment_id}/confirm", response_model=ManualPaymentResponse)
def confirm_payment_with_token(
    payment_id: int,
    data: TokenConfirm,
    session: Session = Depends(get_session),
    notify: Notifier = Depends(get_notifier),
):
    payment = confirm_manual_payment_with_token(session, payment_id, data.token, notify)
    return ManualPaymentResponse(payment=ManualPaymentRead.model_validate(payment))
