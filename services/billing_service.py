# ================================================================
# services/billing_service.py: Member billing ledger + Stripe Connect events
# ================================================================
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import stripe
from sqlmodel import Session, select
from sqlalchemy.exc import IntegrityError

from core import errors
from core.config import settings
from models.models import (
    BandMemberBilling,
    BillingStatus,
    EventProcessingStatus,
    Member,
    MemberStatus,
    StripeEventReceipt,
    User,
    utcnow,
)
from schemas.dues_schema import (
    BandBillingMember,
    BandBillingOverview,
    BandBillingSummary,
    MemberBillingRead,
)
from services.authorization import can_view_all_billing, get_active_member

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)

stripe.api_key = settings.STRIPE_SECRET_KEY

# Stripe subscription status -> ledger status; anything else keeps the current status
STRIPE_STATUS_MAP = {
    "active": BillingStatus.ACTIVE.value,
    "past_due": BillingStatus.PAST_DUE.value,
    "unpaid": BillingStatus.PAST_DUE.value,
    "canceled": BillingStatus.CANCELED.value,
}


# ============================================================
# ✅ Ledger upsert (joins the caller's transaction, never commits)
# ============================================================
def _dialect_insert(session: Session):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
        return insert
    if dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
        return insert
    return None


def upsert_member_billing(
    session: Session,
    band_id: int,
    member_user_id: int,
    last_payment_at: datetime,
    now: Optional[datetime] = None,
) -> None:
    """Mark the member's ledger entry ACTIVE as of `last_payment_at`, creating it if needed."""
    now = now or utcnow()
    insert = _dialect_insert(session)

    if insert is not None:
        stmt = insert(BandMemberBilling).values(
            band_id=band_id,
            member_user_id=member_user_id,
            status=BillingStatus.ACTIVE.value,
            last_payment_at=last_payment_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["band_id", "member_user_id"],
            set_={
                "status": BillingStatus.ACTIVE.value,
                "last_payment_at": last_payment_at,
                "updated_at": now,
            },
        )
        session.exec(stmt)
        return

    billing = session.exec(
        select(BandMemberBilling).where(
            BandMemberBilling.band_id == band_id,
            BandMemberBilling.member_user_id == member_user_id,
        )
    ).first()
    if billing is None:
        billing = BandMemberBilling(band_id=band_id, member_user_id=member_user_id, created_at=now)
    billing.status = BillingStatus.ACTIVE.value
    billing.last_payment_at = last_payment_at
    billing.updated_at = now
    session.add(billing)
    session.flush()


def _get_billing(session: Session, band_id: int, member_user_id: int) -> Optional[BandMemberBilling]:
    return session.exec(
        select(BandMemberBilling).where(
            BandMemberBilling.band_id == band_id,
            BandMemberBilling.member_user_id == member_user_id,
        )
    ).first()


# ============================================================
# ✅ Ledger reads
# ============================================================
def get_member_billing(
    session: Session, band_id: int, requesting_user_id: int, member_user_id: int
) -> MemberBillingRead:
    """Members read their own entry; founders, governors and treasurers read anyone's."""
    if not get_active_member(session, requesting_user_id, band_id):
        raise errors.forbidden("You must be an active band member")

    if requesting_user_id != member_user_id and not can_view_all_billing(session, requesting_user_id, band_id):
        raise errors.forbidden("You can only view your own billing status")

    billing = _get_billing(session, band_id, member_user_id)
    if not billing:
        return MemberBillingRead(member_user_id=member_user_id, status=BillingStatus.UNPAID.value)

    return MemberBillingRead(
        member_user_id=member_user_id,
        status=billing.status,
        last_payment_at=billing.last_payment_at,
        current_period_end=billing.current_period_end,
    )


def get_band_billing_overview(
    session: Session, band_id: int, user_id: int, status_filter: Optional[str] = None
) -> BandBillingOverview:
    if not get_active_member(session, user_id, band_id):
        raise errors.forbidden("You must be an active band member")
    if not can_view_all_billing(session, user_id, band_id):
        raise errors.forbidden("Only founders, governors, and treasurers can view all billing statuses")

    rows = session.exec(
        select(Member, User)
        .join(User, User.id == Member.user_id)
        .where(Member.band_id == band_id, Member.status == MemberStatus.ACTIVE.value)
    ).all()
    billing_map = {
        b.member_user_id: b
        for b in session.exec(select(BandMemberBilling).where(BandMemberBilling.band_id == band_id)).all()
    }

    members = []
    for member, user in rows:
        billing = billing_map.get(user.id)
        members.append(
            BandBillingMember(
                user_id=user.id,
                display_name=user.name,
                status=billing.status if billing else BillingStatus.UNPAID.value,
                current_period_end=billing.current_period_end if billing else None,
            )
        )

    if status_filter in {s.value for s in BillingStatus}:
        members = [m for m in members if m.status == status_filter]

    summary = BandBillingSummary(
        total=len(rows),
        active=sum(1 for m in members if m.status == BillingStatus.ACTIVE.value),
        unpaid=sum(1 for m in members if m.status == BillingStatus.UNPAID.value),
        past_due=sum(1 for m in members if m.status == BillingStatus.PAST_DUE.value),
        canceled=sum(1 for m in members if m.status == BillingStatus.CANCELED.value),
    )
    return BandBillingOverview(members=members, summary=summary)


# ============================================================
# ✅ Stripe Connect webhook (subscription-billing collaborator)
# ============================================================
def construct_stripe_event(payload: bytes, signature: Optional[str]) -> Dict[str, Any]:
    """Verify the webhook signature and return the event as a plain dict."""
    if not settings.STRIPE_CONNECT_WEBHOOK_SECRET:
        logger.error("❌ STRIPE_CONNECT_WEBHOOK_SECRET is not configured")
        raise errors.server_error("Webhook not configured")
    try:
        event = stripe.Webhook.construct_event(payload, signature, settings.STRIPE_CONNECT_WEBHOOK_SECRET)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("⚠️ Stripe Connect webhook signature verification failed: %s", e)
        raise errors.bad_request("Webhook signature verification failed")
    logger.info("📩 Stripe Connect event received: %s (%s)", event["id"], event["type"])
    return json.loads(payload)


def _from_unix(ts: Optional[int]) -> Optional[datetime]:
    if not ts:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).replace(tzinfo=None)


def _handle_checkout_completed(session: Session, event: Dict[str, Any], account_id: str) -> Optional[int]:
    checkout = event["data"]["object"]
    metadata = checkout.get("metadata") or {}
    band_id = metadata.get("band_id")
    member_user_id = metadata.get("member_user_id")
    if not band_id or not member_user_id:
        logger.warning("⚠️ checkout.session.completed missing metadata (event %s)", event.get("id"))
        return None

    band_id, member_user_id = int(band_id), int(member_user_id)
    subscription_id = checkout.get("subscription")
    period_end = None
    if subscription_id:
        subscription = stripe.Subscription.retrieve(subscription_id, stripe_account=account_id)
        period_end = _from_unix(getattr(subscription, "current_period_end", None))

    now = utcnow()
    billing = _get_billing(session, band_id, member_user_id)
    if billing is None:
        billing = BandMemberBilling(band_id=band_id, member_user_id=member_user_id, created_at=now)
    billing.status = BillingStatus.ACTIVE.value
    billing.stripe_customer_id = checkout.get("customer")
    billing.stripe_subscription_id = subscription_id
    billing.current_period_end = period_end
    billing.last_payment_at = now
    billing.updated_at = now
    session.add(billing)

    logger.info("✅ Member billing activated via Stripe: band=%s user=%s", band_id, member_user_id)
    return band_id


def _billing_by_subscription(session: Session, subscription_id: Optional[str]) -> Optional[BandMemberBilling]:
    if not subscription_id:
        return None
    return session.exec(
        select(BandMemberBilling).where(BandMemberBilling.stripe_subscription_id == subscription_id)
    ).first()


def _set_status(billing: BandMemberBilling, new_status: str, period_end: Optional[datetime] = None) -> None:
    billing.status = new_status
    if period_end:
        billing.current_period_end = period_end
    billing.updated_at = utcnow()


def _handle_subscription_updated(session: Session, event: Dict[str, Any]) -> Optional[int]:
    subscription = event["data"]["object"]
    billing = _billing_by_subscription(session, subscription.get("id"))
    if not billing:
        logger.warning("⚠️ No billing record for subscription %s", subscription.get("id"))
        return None

    new_status = STRIPE_STATUS_MAP.get(subscription.get("status"), billing.status)
    _set_status(billing, new_status, _from_unix(subscription.get("current_period_end")))
    session.add(billing)
    logger.info("🔄 Subscription %s -> %s", subscription.get("id"), new_status)
    return billing.band_id


def _handle_subscription_deleted(session: Session, event: Dict[str, Any]) -> Optional[int]:
    billing = _billing_by_subscription(session, event["data"]["object"].get("id"))
    if not billing:
        return None
    _set_status(billing, BillingStatus.CANCELED.value)
    session.add(billing)
    return billing.band_id


def _handle_invoice_payment_failed(session: Session, event: Dict[str, Any]) -> Optional[int]:
    # One-time invoices carry no subscription
    billing = _billing_by_subscription(session, event["data"]["object"].get("subscription"))
    if not billing:
        return None
    _set_status(billing, BillingStatus.PAST_DUE.value)
    session.add(billing)
    return billing.band_id


EVENT_HANDLERS = {
    "checkout.session.completed": lambda s, e, acct: _handle_checkout_completed(s, e, acct),
    "customer.subscription.updated": lambda s, e, acct: _handle_subscription_updated(s, e),
    "customer.subscription.deleted": lambda s, e, acct: _handle_subscription_deleted(s, e),
    "invoice.payment_failed": lambda s, e, acct: _handle_invoice_payment_failed(s, e),
}


def process_stripe_event(session: Session, event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply one Stripe Connect event to the billing ledger.

    Idempotent on the Stripe event id. Handler failures are recorded on the
    receipt and acknowledged so Stripe does not retry indefinitely.
    """
    event_id = event.get("id")
    event_type = event.get("type", "")
    account_id = event.get("account")

    if not account_id:
        logger.warning("⚠️ Stripe Connect event %s has no account id", event_id)
        return {"received": True, "ignored": True}

    if session.exec(select(StripeEventReceipt).where(StripeEventReceipt.stripe_event_id == event_id)).first():
        logger.info("🔁 Duplicate Stripe event %s, already processed", event_id)
        return {"received": True, "duplicate": True}

    receipt = StripeEventReceipt(stripe_event_id=event_id, stripe_account_id=account_id, event_type=event_type)
    try:
        session.add(receipt)
        session.commit()
        session.refresh(receipt)
    except IntegrityError:
        # A concurrent delivery of the same event got there first
        session.rollback()
        return {"received": True, "duplicate": True}

    handler = EVENT_HANDLERS.get(event_type)
    if handler is None:
        receipt.processing_status = EventProcessingStatus.IGNORED.value
        receipt.processed_at = utcnow()
        session.add(receipt)
        session.commit()
        logger.info("Ignored Stripe event type %s", event_type)
        return {"received": True, "ignored": True}

    try:
        receipt.band_id = handler(session, event, account_id)
        receipt.processing_status = EventProcessingStatus.OK.value
        receipt.processed_at = utcnow()
        session.add(receipt)
        session.commit()
    except Exception as e:
        session.rollback()
        logger.exception("❌ Stripe Connect webhook error (%s): %s", event_type, e)
        receipt = session.get(StripeEventReceipt, receipt.id)
        receipt.processing_status = EventProcessingStatus.ERROR.value
        receipt.error_message = str(e)
        receipt.processed_at = utcnow()
        session.add(receipt)
        session.commit()
        return {"received": True, "error": str(e)}

    return {"received": True}
