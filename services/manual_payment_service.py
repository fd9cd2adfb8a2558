# ================================================================
# services/manual_payment_service.py: Manual payment reconciliation
# ================================================================
"""
Lifecycle of self-reported ("manual") dues payments.

    PENDING  --confirm-->            CONFIRMED       (terminal)
    PENDING  --dispute-->            DISPUTED
    PENDING  --auto-confirm sweep--> AUTO_CONFIRMED  (terminal)
    DISPUTED --resolve(CONFIRMED)--> CONFIRMED       (terminal)
    DISPUTED --resolve(REJECTED)-->  REJECTED        (terminal)

Whoever records the payment is the initiator; the other side (the payer, or a
treasurer-equivalent) is the counterparty who confirms or disputes it.
Governor-equivalents resolve disputes.

Every transition is one conditional UPDATE guarded on the expected current
status. The payer, a treasurer, a governor and the sweep can all race on the
same row; exactly one UPDATE matches and the others get a 409 naming the
status the payment already reached. Ledger writes ride in the same
transaction as the status change. Notifications are emitted only after
commit.
"""
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlmodel import Session, select, or_, and_
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from core import errors
from core.config import settings
from models.models import (
    Band,
    InitiatedByRole,
    ManualPayment,
    ManualPaymentStatus,
    Member,
    MemberStatus,
    NotificationPriority,
    NotificationType,
    ResolutionOutcome,
    ROLE_RANK,
    User,
    utcnow,
)
from schemas.manual_payment_schema import (
    ManualPaymentCreate,
    ManualPaymentRead,
    PaymentContextPermissions,
    PaymentContextRead,
)
from schemas.user_schema import PayableMemberRead
from services.authorization import (
    can_view_all_payments,
    get_active_member,
    get_band_governors,
    get_band_treasurers,
    is_user_governor,
    is_user_treasurer,
)
from services.billing_service import upsert_member_billing
from services.notification_service import NotificationEvent, Notifier, emit
from services.policy_service import get_active_dues_plan, get_band

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

RELATED_TYPE = "ManualPayment"
DEFAULT_CURRENCY = "usd"
INVALID_LINK_MESSAGE = "Invalid or expired confirmation link"
MAX_PAGE_SIZE = 100


# -----------------------
# Helpers
# -----------------------
def generate_confirmation_token() -> str:
    """64 hex chars of CSPRNG output."""
    return secrets.token_hex(32)


def _tokens_match(stored: Optional[str], presented: Optional[str]) -> bool:
    if not stored or not presented:
        return False
    return hmac.compare_digest(stored.encode("utf-8"), presented.encode("utf-8"))


def _to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _format_amount(cents: int) -> str:
    return f"${cents / 100:.2f}"


def _billing_url(band: Band) -> str:
    return f"/bands/{band.slug}/billing?tab=manual"


def _quick_confirm_url(payment_id: int, token: str) -> str:
    return f"/quick/confirm-payment/{payment_id}?token={token}"


def _user_name(session: Session, user_id: Optional[int]) -> str:
    user = session.get(User, user_id) if user_id else None
    return user.name if user else "Unknown"


def _get_payment(session: Session, payment_id: int) -> ManualPayment:
    payment = session.get(ManualPayment, payment_id)
    if not payment:
        raise errors.not_found("Payment not found")
    return payment


def _require_active_member(session: Session, user_id: int, band_id: int, message: str) -> Member:
    member = get_active_member(session, user_id, band_id)
    if not member:
        raise errors.forbidden(message)
    return member


def is_counterparty(session: Session, payment: ManualPayment, user_id: int) -> bool:
    """
    The side that did not record the payment: a treasurer-equivalent for
    member-initiated payments, the payer for treasurer-initiated ones. The
    initiator is never their own counterparty.
    """
    if user_id == payment.initiated_by_id:
        return False
    if payment.initiated_by_role == InitiatedByRole.MEMBER.value:
        return is_user_treasurer(session, user_id, payment.band_id)
    return payment.member_user_id == user_id


def _event(
    payment: ManualPayment,
    band: Band,
    user_id: int,
    type_: NotificationType,
    title: str,
    message: str,
    priority: NotificationPriority,
    action_url: Optional[str] = None,
    **metadata: Any,
) -> NotificationEvent:
    meta: Dict[str, Any] = {
        "band_id": band.id,
        "band_name": band.name,
        "payment_id": payment.id,
        "amount": payment.amount,
    }
    meta.update(metadata)
    return NotificationEvent(
        user_id=user_id,
        type=type_.value,
        title=title,
        message=message,
        action_url=action_url or _billing_url(band),
        priority=priority.value,
        metadata=meta,
        related_id=payment.id,
        related_type=RELATED_TYPE,
    )


# -----------------------
# Atomic transitions
# -----------------------
def _apply_transition(
    session: Session,
    payment: ManualPayment,
    expected_status: ManualPaymentStatus,
    values: Dict[str, Any],
    record_billing: bool = False,
    conditions: Iterable = (),
) -> bool:
    """
    Apply `values` only if the row still has `expected_status` (plus any extra
    `conditions`), together with the ledger upsert when `record_billing`.
    Returns False, with nothing written, when another actor got there first.
    Database errors are rolled back and re-raised.
    """
    payment_id = payment.id
    band_id = payment.band_id
    member_user_id = payment.member_user_id
    payment_date = payment.payment_date
    now = values.get("updated_at") or utcnow()

    try:
        result = session.exec(
            update(ManualPayment)
            .where(ManualPayment.id == payment_id, ManualPayment.status == expected_status.value, *conditions)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            return False

        if record_billing:
            upsert_member_billing(session, band_id, member_user_id, payment_date, now)

        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    session.refresh(payment)
    return True


def _commit_transition(
    session: Session,
    payment: ManualPayment,
    expected_status: ManualPaymentStatus,
    values: Dict[str, Any],
    record_billing: bool = False,
    conditions: Iterable = (),
) -> bool:
    payment_id = payment.id
    try:
        return _apply_transition(session, payment, expected_status, values, record_billing, conditions)
    except SQLAlchemyError as e:
        logger.exception("❌ Failed to transition payment %s from %s: %s", payment_id, expected_status.value, e)
        raise errors.server_error("Failed to update payment")


def _raise_lost_race(session: Session, payment_id: int, expected_status: ManualPaymentStatus) -> None:
    current = session.exec(select(ManualPayment.status).where(ManualPayment.id == payment_id)).first()
    if current is None:
        raise errors.not_found("Payment not found")
    if current != expected_status.value:
        raise errors.already_in_status(current)
    # Status unchanged, so an extra guard (the confirmation token) no longer matched
    raise errors.unauthorized(INVALID_LINK_MESSAGE)


# ============================================================
# ✅ Create
# ============================================================
def create_manual_payment(
    session: Session,
    band_id: int,
    user_id: int,
    data: ManualPaymentCreate,
    notify: Optional[Notifier] = None,
) -> ManualPayment:
    """Record a payment made by `data.member_id`, by the payer or by a treasurer on their behalf."""
    band = get_band(session, band_id)

    payer = session.get(Member, data.member_id)
    if not payer or payer.band_id != band_id:
        raise errors.not_found("Member not found in this band")

    _require_active_member(session, user_id, band_id, "You must be an active member of this band")

    if data.amount <= 0:
        raise errors.validation_error("Amount must be a positive number of cents")

    is_own_payment = payer.user_id == user_id
    recorder_is_treasurer = is_user_treasurer(session, user_id, band_id)
    if not is_own_payment and not recorder_is_treasurer:
        raise errors.forbidden("Only treasurers can record payments for other members")

    initiated_by_role = (
        InitiatedByRole.TREASURER if recorder_is_treasurer and not is_own_payment else InitiatedByRole.MEMBER
    )

    plan = get_active_dues_plan(session, band_id)
    now = utcnow()
    payment = ManualPayment(
        band_id=band_id,
        member_id=payer.id,
        member_user_id=payer.user_id,
        amount=data.amount,
        currency=plan.currency if plan else DEFAULT_CURRENCY,
        payment_method=data.payment_method.value,
        payment_method_other=data.payment_method_other,
        payment_date=_to_utc_naive(data.payment_date),
        note=data.note,
        initiated_by_id=user_id,
        initiated_by_role=initiated_by_role.value,
        status=ManualPaymentStatus.PENDING.value,
        confirmation_token=generate_confirmation_token(),
        auto_confirm_at=now + timedelta(days=settings.MANUAL_PAYMENT_AUTO_CONFIRM_DAYS),
        created_at=now,
        updated_at=now,
    )

    try:
        session.add(payment)
        session.commit()
        session.refresh(payment)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("❌ Failed to record manual payment in band %s: %s", band_id, e)
        raise errors.server_error("Failed to record payment")

    logger.info(
        "💵 Manual payment %s recorded in band %s by user %s (%s) for user %s: %s",
        payment.id, band_id, user_id, initiated_by_role.value, payer.user_id, _format_amount(payment.amount),
    )

    recorder_name = _user_name(session, user_id)
    amount = _format_amount(payment.amount)
    events: List[NotificationEvent] = []
    if initiated_by_role == InitiatedByRole.MEMBER:
        for treasurer in get_band_treasurers(session, band_id):
            if treasurer.user_id == user_id:
                continue
            events.append(
                _event(
                    payment, band, treasurer.user_id,
                    NotificationType.MANUAL_PAYMENT_RECORDED,
                    "Payment Recorded",
                    f"{recorder_name} has recorded a payment of {amount}. Please review and confirm.",
                    NotificationPriority.MEDIUM,
                    member_name=recorder_name,
                )
            )
    else:
        events.append(
            _event(
                payment, band, payment.member_user_id,
                NotificationType.MANUAL_PAYMENT_RECORDED,
                "Payment Recorded",
                f"{recorder_name} has recorded a payment of {amount} on your behalf. Please review and confirm.",
                NotificationPriority.MEDIUM,
                action_url=_quick_confirm_url(payment.id, payment.confirmation_token),
                treasurer_name=recorder_name,
            )
        )

    emit(notify, events)
    return payment


# ============================================================
# ✅ Confirm
# ============================================================
def _confirmed_events(session: Session, payment: ManualPayment) -> List[NotificationEvent]:
    band = get_band(session, payment.band_id)
    return [
        _event(
            payment, band, payment.initiated_by_id,
            NotificationType.MANUAL_PAYMENT_CONFIRMED,
            "Payment Confirmed",
            f"Your recorded payment of {_format_amount(payment.amount)} has been confirmed.",
            NotificationPriority.LOW,
        )
    ]


def confirm_manual_payment(
    session: Session,
    payment_id: int,
    user_id: int,
    notify: Optional[Notifier] = None,
) -> ManualPayment:
    payment = _get_payment(session, payment_id)

    if payment.status != ManualPaymentStatus.PENDING.value:
        raise errors.already_in_status(payment.status)

    if not is_counterparty(session, payment, user_id):
        raise errors.forbidden("You are not authorized to confirm this payment")

    now = utcnow()
    values = {
        "status": ManualPaymentStatus.CONFIRMED.value,
        "confirmed_by_id": user_id,
        "confirmed_at": now,
        "confirmation_token": "",
        "updated_at": now,
    }
    if not _commit_transition(session, payment, ManualPaymentStatus.PENDING, values, record_billing=True):
        _raise_lost_race(session, payment_id, ManualPaymentStatus.PENDING)

    logger.info("✅ Manual payment %s confirmed by user %s", payment_id, user_id)
    emit(notify, _confirmed_events(session, payment))
    return payment


def confirm_manual_payment_with_token(
    session: Session,
    payment_id: int,
    token: str,
    notify: Optional[Notifier] = None,
) -> ManualPayment:
    """Link-based confirmation without login; the token is consumed by the same UPDATE."""
    payment = _get_payment(session, payment_id)

    stored_token = payment.confirmation_token
    if not _tokens_match(stored_token, token):
        raise errors.unauthorized(INVALID_LINK_MESSAGE)

    if payment.status != ManualPaymentStatus.PENDING.value:
        raise errors.already_in_status(payment.status)

    # The link is only ever sent to the payer, for treasurer-recorded payments
    confirmer_id = (
        payment.member_user_id if payment.initiated_by_role == InitiatedByRole.TREASURER.value else None
    )
    now = utcnow()
    values = {
        "status": ManualPaymentStatus.CONFIRMED.value,
        "confirmed_by_id": confirmer_id,
        "confirmed_at": now,
        "confirmation_token": "",
        "updated_at": now,
    }
    won = _commit_transition(
        session,
        payment,
        ManualPaymentStatus.PENDING,
        values,
        record_billing=True,
        conditions=(ManualPayment.confirmation_token == stored_token,),
    )
    if not won:
        _raise_lost_race(session, payment_id, ManualPaymentStatus.PENDING)

    logger.info("✅ Manual payment %s confirmed via link", payment_id)
    emit(notify, _confirmed_events(session, payment))
    return payment


# ============================================================
# ✅ Dispute
# ============================================================
def dispute_manual_payment(
    session: Session,
    payment_id: int,
    user_id: int,
    reason: str,
    notify: Optional[Notifier] = None,
) -> ManualPayment:
    reason = (reason or "").strip()
    if not reason:
        raise errors.validation_error("A dispute reason is required")

    payment = _get_payment(session, payment_id)

    if payment.status != ManualPaymentStatus.PENDING.value:
        raise errors.already_in_status(payment.status)

    if not is_counterparty(session, payment, user_id):
        raise errors.forbidden("You are not authorized to dispute this payment")

    now = utcnow()
    values = {
        "status": ManualPaymentStatus.DISPUTED.value,
        "disputed_by_id": user_id,
        "disputed_at": now,
        "dispute_reason": reason,
        "updated_at": now,
    }
    if not _commit_transition(session, payment, ManualPaymentStatus.PENDING, values):
        _raise_lost_race(session, payment_id, ManualPaymentStatus.PENDING)

    logger.info("⚠️ Manual payment %s disputed by user %s", payment_id, user_id)

    band = get_band(session, payment.band_id)
    amount = _format_amount(payment.amount)
    payer_name = _user_name(session, payment.member_user_id)
    events = [
        _event(
            payment, band, payment.initiated_by_id,
            NotificationType.MANUAL_PAYMENT_DISPUTED,
            "Payment Disputed",
            f"Your recorded payment of {amount} has been disputed.",
            NotificationPriority.HIGH,
            reason=reason,
        )
    ]
    for governor in get_band_governors(session, payment.band_id):
        if governor.user_id in (user_id, payment.initiated_by_id):
            continue
        events.append(
            _event(
                payment, band, governor.user_id,
                NotificationType.MANUAL_PAYMENT_DISPUTED,
                "Payment Dispute Needs Resolution",
                f"A payment of {amount} from {payer_name} has been disputed and needs resolution.",
                NotificationPriority.HIGH,
                reason=reason,
            )
        )

    emit(notify, events)
    return payment


# ============================================================
# ✅ Resolve (governors / founders)
# ============================================================
def resolve_manual_payment(
    session: Session,
    payment_id: int,
    user_id: int,
    outcome: str,
    note: Optional[str] = None,
    notify: Optional[Notifier] = None,
) -> ManualPayment:
    try:
        outcome = ResolutionOutcome(outcome)
    except ValueError:
        raise errors.validation_error("Outcome must be CONFIRMED or REJECTED")

    payment = _get_payment(session, payment_id)

    if payment.status == ManualPaymentStatus.PENDING.value:
        raise errors.conflict("Only disputed payments can be resolved")
    if payment.status != ManualPaymentStatus.DISPUTED.value:
        raise errors.already_in_status(payment.status)

    if not is_user_governor(session, user_id, payment.band_id):
        raise errors.forbidden("Only governors or founders can resolve disputes")

    now = utcnow()
    confirmed = outcome == ResolutionOutcome.CONFIRMED
    values: Dict[str, Any] = {
        "status": ManualPaymentStatus.CONFIRMED.value if confirmed else ManualPaymentStatus.REJECTED.value,
        "resolved_by_id": user_id,
        "resolved_at": now,
        "resolution_note": note,
        "resolution_outcome": outcome.value,
        "confirmation_token": "",
        "updated_at": now,
    }
    if confirmed:
        values["confirmed_by_id"] = user_id
        values["confirmed_at"] = now

    won = _commit_transition(session, payment, ManualPaymentStatus.DISPUTED, values, record_billing=confirmed)
    if not won:
        _raise_lost_race(session, payment_id, ManualPaymentStatus.DISPUTED)

    logger.info("⚖️ Manual payment %s resolved as %s by user %s", payment_id, outcome.value, user_id)

    band = get_band(session, payment.band_id)
    events = []
    for notify_user_id in dict.fromkeys([payment.initiated_by_id, payment.member_user_id]):
        events.append(
            _event(
                payment, band, notify_user_id,
                NotificationType.MANUAL_PAYMENT_RESOLVED,
                "Payment Dispute Resolved",
                f"The disputed payment of {_format_amount(payment.amount)} has been {outcome.value.lower()}.",
                NotificationPriority.MEDIUM,
                outcome=outcome.value,
            )
        )
    emit(notify, events)
    return payment


# ============================================================
# ✅ Auto-confirm sweep (scheduled job)
# ============================================================
def auto_confirm_overdue_payments(
    session: Session,
    now: Optional[datetime] = None,
    notify: Optional[Notifier] = None,
) -> int:
    """
    Move every PENDING payment past its `auto_confirm_at` to AUTO_CONFIRMED.

    Competes with human confirm/dispute through the same conditional update:
    a payment acted on meanwhile is skipped. A payment whose update fails is
    logged and left PENDING for the next run. Notifications for each payment
    go out as soon as its own transition commits. Safe to run repeatedly.
    """
    now = now or utcnow()
    overdue = session.exec(
        select(ManualPayment)
        .where(
            ManualPayment.status == ManualPaymentStatus.PENDING.value,
            ManualPayment.auto_confirm_at < now,
        )
        .order_by(ManualPayment.id)
    ).all()

    confirmed = 0
    payment_ids = [payment.id for payment in overdue]
    for payment, payment_id in zip(overdue, payment_ids):
        values = {
            "status": ManualPaymentStatus.AUTO_CONFIRMED.value,
            "confirmed_at": now,
            "confirmation_token": "",
            "updated_at": now,
        }
        try:
            won = _apply_transition(session, payment, ManualPaymentStatus.PENDING, values, record_billing=True)
        except SQLAlchemyError as e:
            logger.exception("❌ Failed to auto-confirm payment %s, leaving it pending: %s", payment_id, e)
            continue
        if not won:
            logger.info("Manual payment %s was acted on before the sweep reached it", payment_id)
            continue

        confirmed += 1
        band = get_band(session, payment.band_id)
        emit(notify, [
            _event(
                payment, band, notify_user_id,
                NotificationType.MANUAL_PAYMENT_AUTO_CONFIRMED,
                "Payment Auto-Confirmed",
                f"The payment of {_format_amount(payment.amount)} was not reviewed in time and has been confirmed automatically.",
                NotificationPriority.LOW,
            )
            for notify_user_id in dict.fromkeys([payment.initiated_by_id, payment.member_user_id])
        ])

    if confirmed:
        logger.info("⏰ Auto-confirmed %d overdue manual payment(s)", confirmed)
    return confirmed


# ============================================================
# ✅ Queries
# ============================================================
def list_manual_payments(
    session: Session,
    band_id: int,
    user_id: int,
    status: Optional[str] = None,
    member_id: Optional[int] = None,
    limit: int = 50,
    cursor: Optional[int] = None,
) -> Tuple[List[ManualPayment], Optional[int]]:
    """Newest first. Callers without treasurer/governor authority only see payments they made."""
    _require_active_member(session, user_id, band_id, "You must be an active member")

    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise errors.validation_error(f"limit must be between 1 and {MAX_PAGE_SIZE}")

    query = select(ManualPayment).where(ManualPayment.band_id == band_id)
    if status:
        query = query.where(ManualPayment.status == status)
    if member_id:
        query = query.where(ManualPayment.member_id == member_id)
    if not can_view_all_payments(session, user_id, band_id):
        query = query.where(ManualPayment.member_user_id == user_id)
    if cursor:
        query = query.where(ManualPayment.id < cursor)

    payments = list(session.exec(query.order_by(ManualPayment.id.desc()).limit(limit + 1)).all())

    next_cursor = None
    if len(payments) > limit:
        payments = payments[:limit]
        next_cursor = payments[-1].id
    return payments, next_cursor


def list_my_pending_payments(session: Session, band_id: int, user_id: int) -> List[ManualPayment]:
    """PENDING payments waiting on this user as counterparty."""
    _require_active_member(session, user_id, band_id, "You must be an active member")

    as_payer = and_(
        ManualPayment.member_user_id == user_id,
        ManualPayment.initiated_by_role == InitiatedByRole.TREASURER.value,
        ManualPayment.initiated_by_id != user_id,
    )
    clauses = [as_payer]
    if is_user_treasurer(session, user_id, band_id):
        clauses.append(
            and_(
                ManualPayment.initiated_by_role == InitiatedByRole.MEMBER.value,
                ManualPayment.initiated_by_id != user_id,
            )
        )

    return list(
        session.exec(
            select(ManualPayment)
            .where(
                ManualPayment.band_id == band_id,
                ManualPayment.status == ManualPaymentStatus.PENDING.value,
                or_(*clauses),
            )
            .order_by(ManualPayment.id.desc())
        ).all()
    )


def get_manual_payment(session: Session, payment_id: int, user_id: int) -> ManualPayment:
    payment = _get_payment(session, payment_id)

    involved = user_id in {
        payment.member_user_id,
        payment.initiated_by_id,
        payment.confirmed_by_id,
        payment.disputed_by_id,
        payment.resolved_by_id,
    }
    if not involved and not can_view_all_payments(session, user_id, payment.band_id):
        raise errors.forbidden("You do not have permission to view this payment")
    return payment


def list_disputed_payments(session: Session, band_id: int, user_id: int) -> List[ManualPayment]:
    if not is_user_governor(session, user_id, band_id):
        raise errors.forbidden("Only governors or founders can view disputed payments")

    return list(
        session.exec(
            select(ManualPayment)
            .where(
                ManualPayment.band_id == band_id,
                ManualPayment.status == ManualPaymentStatus.DISPUTED.value,
            )
            .order_by(ManualPayment.disputed_at.desc())
        ).all()
    )


def list_payable_members(session: Session, band_id: int, user_id: int) -> List[PayableMemberRead]:
    """Active members for the payer dropdown, highest role first, then by name."""
    _require_active_member(session, user_id, band_id, "You must be an active member")

    rows = session.exec(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.band_id == band_id, Member.status == MemberStatus.ACTIVE.value)
    ).all()

    rank = {role.value: i for i, role in enumerate(ROLE_RANK)}
    rows = sorted(rows, key=lambda row: (rank.get(row[0].role, len(rank)), row[1].name.lower()))
    return [
        PayableMemberRead(
            id=member.id,
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=member.role,
            is_treasurer=member.is_treasurer,
        )
        for member, user in rows
    ]


def get_payment_context(session: Session, payment_id: int, token: str) -> PaymentContextRead:
    """Token-gated summary for the quick-confirm page."""
    payment = _get_payment(session, payment_id)
    if not _tokens_match(payment.confirmation_token, token):
        raise errors.unauthorized(INVALID_LINK_MESSAGE)

    band = get_band(session, payment.band_id)
    pending = payment.status == ManualPaymentStatus.PENDING.value
    if pending:
        permissions = PaymentContextPermissions(
            can_confirm=True,
            is_pending=True,
            treasurer_initiated=payment.initiated_by_role == InitiatedByRole.TREASURER.value,
        )
    else:
        readable = payment.status.lower().replace("_", " ")
        permissions = PaymentContextPermissions(
            can_confirm=False,
            is_pending=False,
            reason=f"This payment has already been {readable}",
        )

    return PaymentContextRead(
        payment=ManualPaymentRead.model_validate(payment),
        band_name=band.name,
        band_slug=band.slug,
        member_name=_user_name(session, payment.member_user_id),
        initiated_by_name=_user_name(session, payment.initiated_by_id),
        permissions=permissions,
    )
