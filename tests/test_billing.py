"""Billing ledger reads/writes and Stripe Connect event processing."""

from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlmodel import select

from models.models import (
    BandMemberBilling,
    BillingStatus,
    EventProcessingStatus,
    StripeEventReceipt,
    utcnow,
)
from services.billing_service import (
    get_band_billing_overview,
    get_member_billing,
    process_stripe_event,
    upsert_member_billing,
)


def _ledger(session, band_id):
    return session.exec(select(BandMemberBilling).where(BandMemberBilling.band_id == band_id)).all()


def _subscribed(session, demo_band, key="alice", status=BillingStatus.ACTIVE):
    billing = BandMemberBilling(
        band_id=demo_band.id,
        member_user_id=demo_band.users[key].id,
        status=status.value,
        stripe_customer_id="cus_123",
        stripe_subscription_id="sub_123",
    )
    session.add(billing)
    session.commit()
    session.refresh(billing)
    return billing


def _event(event_type, obj, event_id="evt_1", account="acct_band"):
    return {"id": event_id, "type": event_type, "account": account, "data": {"object": obj}}


# ============================================================
# Ledger
# ============================================================
def test_upsert_creates_then_updates_one_row(session, demo_band):
    alice_id = demo_band.users["alice"].id
    first_paid = utcnow() - timedelta(days=40)
    second_paid = utcnow() - timedelta(days=2)

    upsert_member_billing(session, demo_band.id, alice_id, first_paid)
    session.commit()
    upsert_member_billing(session, demo_band.id, alice_id, second_paid)
    session.commit()

    rows = _ledger(session, demo_band.id)
    assert len(rows) == 1
    session.refresh(rows[0])
    assert rows[0].status == BillingStatus.ACTIVE.value
    assert rows[0].last_payment_at == second_paid


def test_upsert_reactivates_canceled_member(session, demo_band):
    billing = _subscribed(session, demo_band, status=BillingStatus.CANCELED)

    upsert_member_billing(session, demo_band.id, demo_band.users["alice"].id, utcnow())
    session.commit()

    session.refresh(billing)
    assert billing.status == BillingStatus.ACTIVE.value
    assert billing.stripe_subscription_id == "sub_123"


def test_upsert_does_not_commit_on_its_own(session, demo_band):
    upsert_member_billing(session, demo_band.id, demo_band.users["alice"].id, utcnow())
    session.rollback()

    assert _ledger(session, demo_band.id) == []


def test_member_reads_own_billing_defaulting_to_unpaid(session, demo_band):
    alice_id = demo_band.users["alice"].id

    billing = get_member_billing(session, demo_band.id, alice_id, alice_id)
    assert billing.status == BillingStatus.UNPAID.value
    assert billing.last_payment_at is None

    with pytest.raises(HTTPException) as exc:
        get_member_billing(session, demo_band.id, alice_id, demo_band.users["bob"].id)
    assert exc.value.status_code == 403


def test_treasurer_reads_anyones_billing(session, demo_band):
    _subscribed(session, demo_band)

    billing = get_member_billing(session, demo_band.id, demo_band.users["treasurer"].id, demo_band.users["alice"].id)
    assert billing.status == BillingStatus.ACTIVE.value


def test_band_overview_counts(session, demo_band):
    _subscribed(session, demo_band, key="alice")
    session.add(
        BandMemberBilling(
            band_id=demo_band.id, member_user_id=demo_band.users["bob"].id, status=BillingStatus.PAST_DUE.value
        )
    )
    session.commit()

    overview = get_band_billing_overview(session, demo_band.id, demo_band.users["governor"].id)
    assert overview.summary.total == 5
    assert overview.summary.active == 1
    assert overview.summary.past_due == 1
    assert overview.summary.unpaid == 3

    past_due = get_band_billing_overview(session, demo_band.id, demo_band.users["founder"].id, "PAST_DUE")
    assert [m.display_name for m in past_due.members] == ["Bob"]

    with pytest.raises(HTTPException) as exc:
        get_band_billing_overview(session, demo_band.id, demo_band.users["alice"].id)
    assert exc.value.status_code == 403


# ============================================================
# Stripe Connect events
# ============================================================
def test_event_without_account_is_ignored(session, demo_band):
    result = process_stripe_event(session, _event("customer.subscription.deleted", {"id": "sub_123"}, account=None))

    assert result == {"received": True, "ignored": True}
    assert session.exec(select(StripeEventReceipt)).all() == []


@pytest.mark.parametrize(
    "stripe_status, expected",
    [
        ("active", BillingStatus.ACTIVE),
        ("past_due", BillingStatus.PAST_DUE),
        ("unpaid", BillingStatus.PAST_DUE),
        ("canceled", BillingStatus.CANCELED),
        ("trialing", BillingStatus.CANCELED),
    ],
)
def test_subscription_updated_maps_status(session, demo_band, stripe_status, expected):
    billing = _subscribed(session, demo_band, status=BillingStatus.CANCELED)

    result = process_stripe_event(
        session, _event("customer.subscription.updated", {"id": "sub_123", "status": stripe_status})
    )
    assert result == {"received": True}

    session.refresh(billing)
    assert billing.status == expected.value


def test_subscription_deleted_cancels(session, demo_band):
    billing = _subscribed(session, demo_band)

    process_stripe_event(session, _event("customer.subscription.deleted", {"id": "sub_123"}))

    session.refresh(billing)
    assert billing.status == BillingStatus.CANCELED.value


def test_invoice_failure_marks_past_due(session, demo_band):
    billing = _subscribed(session, demo_band)

    process_stripe_event(session, _event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"}))

    session.refresh(billing)
    assert billing.status == BillingStatus.PAST_DUE.value

    receipt = session.exec(select(StripeEventReceipt)).one()
    assert receipt.band_id == demo_band.id
    assert receipt.processing_status == EventProcessingStatus.OK.value


def test_duplicate_event_is_processed_once(session, demo_band):
    billing = _subscribed(session, demo_band)
    event = _event("invoice.payment_failed", {"id": "in_1", "subscription": "sub_123"})

    process_stripe_event(session, event)
    billing.status = BillingStatus.ACTIVE.value
    session.add(billing)
    session.commit()

    assert process_stripe_event(session, event) == {"received": True, "duplicate": True}
    session.refresh(billing)
    assert billing.status == BillingStatus.ACTIVE.value


def test_checkout_completed_activates_member(session, demo_band):
    alice_id = demo_band.users["alice"].id
    checkout = {
        "id": "cs_1",
        "customer": "cus_9",
        "subscription": None,
        "metadata": {"band_id": str(demo_band.id), "member_user_id": str(alice_id)},
    }

    process_stripe_event(session, _event("checkout.session.completed", checkout))

    billing = session.exec(select(BandMemberBilling).where(BandMemberBilling.member_user_id == alice_id)).one()
    assert billing.status == BillingStatus.ACTIVE.value
    assert billing.stripe_customer_id == "cus_9"
    assert billing.last_payment_at is not None


def test_unknown_event_type_is_recorded_as_ignored(session, demo_band):
    result = process_stripe_event(session, _event("customer.created", {"id": "cus_1"}))

    assert result == {"received": True, "ignored": True}
    receipt = session.exec(select(StripeEventReceipt)).one()
    assert receipt.processing_status == EventProcessingStatus.IGNORED.value


def test_handler_error_is_recorded_and_acknowledged(session, demo_band):
    checkout = {"id": "cs_1", "metadata": {"band_id": "not-a-number", "member_user_id": "1"}}

    result = process_stripe_event(session, _event("checkout.session.completed", checkout, event_id="evt_bad"))

    assert result["received"] is True
    assert "error" in result
    receipt = session.exec(select(StripeEventReceipt).where(StripeEventReceipt.stripe_event_id == "evt_bad")).one()
    assert receipt.processing_status == EventProcessingStatus.ERROR.value
    assert receipt.error_message
