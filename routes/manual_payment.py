# routes/manual_payment.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core.database import get_session
from core.security import get_current_user
from models.models import User
from schemas.manual_payment_schema import (
    ManualPaymentCreate,
    ManualPaymentDispute,
    ManualPaymentList,
    ManualPaymentRead,
    ManualPaymentResolve,
    ManualPaymentResponse,
    ManualPaymentStatus,
)
from schemas.user_schema import PayableMemberRead
from services.manual_payment_service import (
    confirm_manual_payment,
    create_manual_payment,
    dispute_manual_payment,
    get_manual_payment,
    list_disputed_payments,
    list_manual_payments,
    list_my_pending_payments,
    list_payable_members,
    resolve_manual_payment,
)
from services.notification_service import Notifier, get_notifier

router = APIRouter(tags=["Manual Payments"])


def _response(payment) -> ManualPaymentResponse:
    return ManualPaymentResponse(payment=ManualPaymentRead.model_validate(payment))


def _listing(payments, next_cursor: Optional[int] = None) -> ManualPaymentList:
    return ManualPaymentList(
        payments=[ManualPaymentRead.model_validate(p) for p in payments],
        next_cursor=next_cursor,
    )


# ==========================================================
# ✅ Band-scoped: record + list
# ==========================================================
@router.post("/bands/{band_id}/manual-payments", response_model=ManualPaymentResponse, status_code=201)
def record_manual_payment(
    band_id: int,
    data: ManualPaymentCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    notify: Notifier = Depends(get_notifier),
):
    """Record a payment made outside Stripe (Zelle, Venmo, cash...)"""
    payment = create_manual_payment(session, band_id, current_user.id, data, notify)
    return _response(payment)


@router.get("/bands/{band_id}/manual-payments", response_model=ManualPaymentList)
def read_manual_payments(
    band_id: int,
    status: Optional[ManualPaymentStatus] = Query(None),
    member_id: Optional[int] = Query(None),
    limit: int = Query(50, ge=1, le=100),
    cursor: Optional[int] = Query(None, description="Id of the last payment from the previous page"),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    payments, next_cursor = list_manual_payments(
        session,
        band_id,
        current_user.id,
        status=status.value if status else None,
        member_id=member_id,
        limit=limit,
        cursor=cursor,
    )
    return _listing(payments, next_cursor)


@router.get("/bands/{band_id}/manual-payments/pending", response_model=ManualPaymentList)
def read_my_pending_payments(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Pending payments waiting on the caller's confirmation"""
    return _listing(list_my_pending_payments(session, band_id, current_user.id))


@router.get("/bands/{band_id}/manual-payments/disputed", response_model=ManualPaymentList)
def read_disputed_payments(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return _listing(list_disputed_payments(session, band_id, current_user.id))


@router.get("/bands/{band_id}/manual-payments/members", response_model=List[PayableMemberRead])
def read_payable_members(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return list_payable_members(session, band_id, current_user.id)


# ==========================================================
# ✅ Single payment: read + transitions
# ==========================================================
@router.get("/manual-payments/{payment_id}", response_model=ManualPaymentResponse)
def read_manual_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return _response(get_manual_payment(session, payment_id, current_user.id))


@router.post("/manual-payments/{payment_id}/confirm", response_model=ManualPaymentResponse)
def confirm_payment(
    payment_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    notify: Notifier = Depends(get_notifier),
):
    payment = confirm_manual_payment(session, payment_id, current_user.id, notify)
    return _response(payment)


@router.post("/manual-payments/{payment_id}/dispute", response_model=ManualPaymentResponse)
def dispute_payment(
    payment_id: int,
    data: ManualPaymentDispute,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    notify: Notifier = Depends(get_notifier),
):
    payment = dispute_manual_payment(session, payment_id, current_user.id, data.reason, notify)
    return _response(payment)


@router.post("/manual-payments/{payment_id}/resolve", response_model=ManualPaymentResponse)
def resolve_payment(
    payment_id: int,
    data: ManualPaymentResolve,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
    notify: Notifier = Depends(get_notifier),
):
    """Governors settle a disputed payment as CONFIRMED or REJECTED"""
    payment = resolve_manual_payment(session, payment_id, current_user.id, data.outcome.value, data.note, notify)
    return _response(payment)
