"""Shared fixtures: in-memory database, a seeded band, and an API client."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from core.database import get_session
from core.security import create_token_for_user
from models.models import (
    Band,
    BandDuesPlan,
    DuesInterval,
    Member,
    MemberRole,
    MemberStatus,
    User,
    utcnow,
)
from schemas.manual_payment_schema import ManualPaymentCreate, PaymentMethod
from services.notification_service import NotificationEvent, get_notifier


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


class NotificationRecorder:
    """Stands in for the background notifier; keeps every emitted event."""

    def __init__(self):
        self.events: List[NotificationEvent] = []

    def __call__(self, events: List[NotificationEvent]) -> None:
        self.events.extend(events)

    def for_user(self, user_id: int) -> List[NotificationEvent]:
        return [e for e in self.events if e.user_id == user_id]

    def clear(self) -> None:
        self.events.clear()


@pytest.fixture
def notifications():
    return NotificationRecorder()


@dataclass
class DemoBand:
    band: Band
    users: Dict[str, User] = field(default_factory=dict)
    members: Dict[str, Member] = field(default_factory=dict)
    plan: BandDuesPlan = None

    @property
    def id(self) -> int:
        return self.band.id


def add_member(
    session: Session,
    band: Band,
    key: str,
    role: MemberRole = MemberRole.VOTING_MEMBER,
    is_treasurer: bool = False,
    status: MemberStatus = MemberStatus.ACTIVE,
    activated_at: datetime = None,
):
    user = User(name=key.capitalize(), email=f"{key}@demo.com", password_hash="not-a-real-hash")
    session.add(user)
    session.commit()
    session.refresh(user)

    member = Member(
        user_id=user.id,
        band_id=band.id,
        role=role.value,
        status=status.value,
        is_treasurer=is_treasurer,
        activated_at=activated_at or utcnow() - timedelta(days=30),
    )
    session.add(member)
    session.commit()
    session.refresh(member)
    return user, member


@pytest.fixture
def demo_band(session) -> DemoBand:
    """
    A band with a $5.00/month plan and members past their new-member grace:
    founder (billing owner), treasurer, governor, alice and bob.
    """
    band = Band(name="The Testers", slug="the-testers")
    session.add(band)
    session.commit()
    session.refresh(band)

    demo = DemoBand(band=band)
    for key, role, is_treasurer in [
        ("founder", MemberRole.FOUNDER, False),
        ("treasurer", MemberRole.VOTING_MEMBER, True),
        ("governor", MemberRole.GOVERNOR, False),
        ("alice", MemberRole.VOTING_MEMBER, False),
        ("bob", MemberRole.VOTING_MEMBER, False),
    ]:
        user, member = add_member(session, band, key, role, is_treasurer)
        demo.users[key] = user
        demo.members[key] = member

    band.billing_owner_id = demo.users["founder"].id
    session.add(band)

    plan = BandDuesPlan(band_id=band.id, amount_cents=500, currency="usd", interval=DuesInterval.MONTH.value)
    session.add(plan)
    session.commit()
    session.refresh(plan)
    session.refresh(band)
    demo.plan = plan
    return demo


def payment_data(member: Member, amount: int = 500, **overrides) -> ManualPaymentCreate:
    values = {
        "member_id": member.id,
        "amount": amount,
        "payment_method": PaymentMethod.VENMO,
        "payment_date": utcnow() - timedelta(days=1),
        "note": "March dues",
    }
    values.update(overrides)
    return ManualPaymentCreate(**values)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_token_for_user(user)}"}


@pytest.fixture
def client(session, notifications):
    from main import app

    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_notifier] = lambda: notifications
    yield TestClient(app)
    app.dependency_overrides.clear()
