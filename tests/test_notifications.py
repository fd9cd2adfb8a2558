import json

from sqlmodel import Session, select

from models.models import Notification, NotificationType
from services.email_service import EmailService
from services.notification_service import NotificationEvent, NotificationService, emit


class FakeMailer:
    def __init__(self, fail_for=()):
        self.sent = []
        self.fail_for = set(fail_for)

    def send_notification_email(self, to_email, title, message, action_url=None):
        if to_email in self.fail_for:
            raise RuntimeError("smtp down")
        self.sent.append((to_email, title, action_url))
        return True


def _event(user_id, action_url="/bands/the-testers/billing?tab=manual"):
    return NotificationEvent(
        user_id=user_id,
        type=NotificationType.MANUAL_PAYMENT_RECORDED.value,
        title="Payment Recorded",
        message="Alice has recorded a payment of $5.00.",
        action_url=action_url,
        metadata={"payment_id": 1, "amount": 500},
        related_id=1,
        related_type="ManualPayment",
    )


def test_emit_swallows_notifier_errors():
    def broken(events):
        raise RuntimeError("queue full")

    emit(broken, [_event(1)])
    emit(None, [_event(1)])


def test_emit_skips_empty_batches():
    calls = []
    emit(calls.append, [])
    assert calls == []


def test_dispatch_persists_and_emails(engine, demo_band):
    mailer = FakeMailer()
    service = NotificationService(session_factory=lambda: Session(engine), mailer=mailer)
    alice = demo_band.users["alice"]

    assert service.dispatch([_event(alice.id)]) == 1

    with Session(engine) as session:
        stored = session.exec(select(Notification)).one()
    assert stored.user_id == alice.id
    assert stored.related_type == "ManualPayment"
    assert json.loads(stored.metadata_json) == {"payment_id": 1, "amount": 500}

    assert mailer.sent == [
        ("alice@demo.com", "Payment Recorded", "http://localhost:3000/bands/the-testers/billing?tab=manual")
    ]


def test_one_failed_delivery_does_not_stop_the_rest(engine, demo_band):
    mailer = FakeMailer(fail_for={"alice@demo.com"})
    service = NotificationService(session_factory=lambda: Session(engine), mailer=mailer)

    delivered = service.dispatch([_event(demo_band.users["alice"].id), _event(demo_band.users["bob"].id)])

    assert delivered == 1
    assert [to for to, _, _ in mailer.sent] == ["bob@demo.com"]


def test_unconfigured_email_service_logs_instead_of_sending():
    service = EmailService(api_key="", sender_email="")

    assert service.enabled is False
    assert service.send_notification_email("alice@demo.com", "Hi", "Body", "http://localhost:3000/x") is True
