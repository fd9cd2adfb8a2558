from datetime import timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from models.models import BandMemberBilling, BillingStatus, ManualPaymentStatus, NotificationType
from services import manual_payment_service
from services.manual_payment_service import (
    auto_confirm_overdue_payments,
    confirm_manual_payment,
    create_manual_payment,
    dispute_manual_payment,
)
from tests.conftest import payment_data


def _record(session, demo_band, recorder="alice", payer="alice"):
    return create_manual_payment(
        session, demo_band.id, demo_band.users[recorder].id, payment_data(demo_band.members[payer])
    )


def test_nothing_is_due_before_the_deadline(session, demo_band):
    payment = _record(session, demo_band)

    assert auto_confirm_overdue_payments(session, now=payment.auto_confirm_at - timedelta(hours=1)) == 0
    assert auto_confirm_overdue_payments(session, now=payment.auto_confirm_at) == 0

    session.refresh(payment)
    assert payment.status == ManualPaymentStatus.PENDING.value


def test_overdue_payment_is_auto_confirmed_once(session, demo_band, notifications):
    payment = _record(session, demo_band, recorder="treasurer")
    after_deadline = payment.auto_confirm_at + timedelta(seconds=1)

    assert auto_confirm_overdue_payments(session, now=after_deadline, notify=notifications) == 1

    session.refresh(payment)
    assert payment.status == ManualPaymentStatus.AUTO_CONFIRMED.value
    assert payment.confirmed_at == after_deadline
    assert payment.confirmed_by_id is None
    assert payment.confirmation_token == ""

    billing = session.exec(
        select(BandMemberBilling).where(BandMemberBilling.member_user_id == demo_band.users["alice"].id)
    ).one()
    assert billing.status == BillingStatus.ACTIVE.value
    assert billing.last_payment_at == payment.payment_date

    assert {e.user_id for e in notifications.events} == {
        demo_band.users["treasurer"].id,
        demo_band.users["alice"].id,
    }
    assert {e.type for e in notifications.events} == {NotificationType.MANUAL_PAYMENT_AUTO_CONFIRMED.value}

    # Running again finds nothing left to do
    notifications.clear()
    assert auto_confirm_overdue_payments(session, now=after_deadline + timedelta(days=1), notify=notifications) == 0
    assert notifications.events == []


def test_settled_payments_are_left_alone(session, demo_band):
    confirmed = _record(session, demo_band)
    confirm_manual_payment(session, confirmed.id, demo_band.users["treasurer"].id)
    disputed = _record(session, demo_band)
    dispute_manual_payment(session, disputed.id, demo_band.users["treasurer"].id, "Not received")
    overdue = _record(session, demo_band, payer="bob", recorder="bob")

    count = auto_confirm_overdue_payments(session, now=overdue.auto_confirm_at + timedelta(days=1))
    assert count == 1

    session.refresh(confirmed)
    session.refresh(disputed)
    session.refresh(overdue)
    assert confirmed.status == ManualPaymentStatus.CONFIRMED.value
    assert disputed.status == ManualPaymentStatus.DISPUTED.value
    assert overdue.status == ManualPaymentStatus.AUTO_CONFIRMED.value


def test_humans_lose_to_a_finished_sweep(session, demo_band):
    payment = _record(session, demo_band)
    auto_confirm_overdue_payments(session, now=payment.auto_confirm_at + timedelta(minutes=5))

    with pytest.raises(HTTPException) as exc:
        confirm_manual_payment(session, payment.id, demo_band.users["treasurer"].id)
    assert exc.value.status_code == 409
    assert exc.value.detail["message"] == "This payment has already been auto confirmed"


def test_one_failing_payment_does_not_stop_the_sweep(session, demo_band, notifications, monkeypatch):
    first = _record(session, demo_band, recorder="treasurer", payer="alice")
    second = _record(session, demo_band, recorder="treasurer", payer="bob")
    third = _record(session, demo_band, recorder="treasurer", payer="governor")
    real_upsert = manual_payment_service.upsert_member_billing
    calls = []

    def upsert_failing_second_time(*args, **kwargs):
        calls.append(args)
        if len(calls) == 2:
            raise SQLAlchemyError("ledger unavailable")
        return real_upsert(*args, **kwargs)

    monkeypatch.setattr(manual_payment_service, "upsert_member_billing", upsert_failing_second_time)

    after_deadline = third.auto_confirm_at + timedelta(minutes=1)
    assert auto_confirm_overdue_payments(session, now=after_deadline, notify=notifications) == 2

    session.refresh(first)
    session.refresh(second)
    session.refresh(third)
    assert first.status == ManualPaymentStatus.AUTO_CONFIRMED.value
    assert second.status == ManualPaymentStatus.PENDING.value
    assert second.confirmation_token != ""
    assert third.status == ManualPaymentStatus.AUTO_CONFIRMED.value

    assert {e.related_id for e in notifications.events} == {first.id, third.id}
    assert len(notifications.for_user(demo_band.users["alice"].id)) == 1
    assert notifications.for_user(demo_band.users["bob"].id) == []

    # The failed payment is picked up by the next run
    monkeypatch.setattr(manual_payment_service, "upsert_member_billing", real_upsert)
    notifications.clear()
    assert auto_confirm_overdue_payments(session, now=after_deadline, notify=notifications) == 1
    session.refresh(second)
    assert second.status == ManualPaymentStatus.AUTO_CONFIRMED.value
    assert {e.user_id for e in notifications.events} == {
        demo_band.users["treasurer"].id,
        demo_band.users["bob"].id,
    }


def test_notifications_go_out_for_payments_committed_before_a_failure(session, demo_band, notifications, monkeypatch):
    first = _record(session, demo_band, recorder="treasurer", payer="alice")
    second = _record(session, demo_band, recorder="treasurer", payer="bob")
    real_upsert = manual_payment_service.upsert_member_billing
    calls = []

    def upsert_failing_last(*args, **kwargs):
        calls.append(args)
        if len(calls) == 2:
            raise SQLAlchemyError("ledger unavailable")
        return real_upsert(*args, **kwargs)

    monkeypatch.setattr(manual_payment_service, "upsert_member_billing", upsert_failing_last)

    assert auto_confirm_overdue_payments(
        session, now=second.auto_confirm_at + timedelta(seconds=1), notify=notifications
    ) == 1

    assert {e.user_id for e in notifications.events} == {
        demo_band.users["treasurer"].id,
        demo_band.users["alice"].id,
    }
    assert all(e.related_id == first.id for e in notifications.events)
