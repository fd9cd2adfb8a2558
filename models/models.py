# models/models.py
from typing import Optional, List
from datetime import datetime, timezone
from enum import Enum

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import UniqueConstraint, Index, text
from pydantic import EmailStr


def utcnow() -> datetime:
    """Naive UTC timestamp; every persisted datetime in this schema is UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ============================================================
# ENUMS
# ============================================================
class MemberRole(str, Enum):
    FOUNDER = "FOUNDER"
    GOVERNOR = "GOVERNOR"
    MODERATOR = "MODERATOR"
    CONDUCTOR = "CONDUCTOR"
    VOTING_MEMBER = "VOTING_MEMBER"
    OBSERVER = "OBSERVER"


# Highest authority first
ROLE_RANK = [
    MemberRole.FOUNDER,
    MemberRole.GOVERNOR,
    MemberRole.MODERATOR,
    MemberRole.CONDUCTOR,
    MemberRole.VOTING_MEMBER,
    MemberRole.OBSERVER,
]

GOVERNOR_ROLES = [MemberRole.FOUNDER.value, MemberRole.GOVERNOR.value]


class MemberStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    INACTIVE = "INACTIVE"
    BANNED = "BANNED"


class BillingStatus(str, Enum):
    ACTIVE = "ACTIVE"
    PAST_DUE = "PAST_DUE"
    CANCELED = "CANCELED"
    UNPAID = "UNPAID"


class DuesInterval(str, Enum):
    MONTH = "month"
    YEAR = "year"


class PaymentMethod(str, Enum):
    ZELLE = "ZELLE"
    VENMO = "VENMO"
    CASHAPP = "CASHAPP"
    CASH = "CASH"
    CHECK = "CHECK"
    OTHER = "OTHER"


class InitiatedByRole(str, Enum):
    MEMBER = "MEMBER"
    TREASURER = "TREASURER"


class ManualPaymentStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    DISPUTED = "DISPUTED"
    REJECTED = "REJECTED"
    AUTO_CONFIRMED = "AUTO_CONFIRMED"


class ResolutionOutcome(str, Enum):
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"


class ProposalType(str, Enum):
    GENERAL = "GENERAL"
    BUDGET = "BUDGET"
    POLICY = "POLICY"
    MEMBERSHIP = "MEMBERSHIP"
    DISSOLUTION = "DISSOLUTION"


class ProposalStatus(str, Enum):
    DRAFT = "DRAFT"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class NotificationPriority(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class NotificationType(str, Enum):
    MANUAL_PAYMENT_RECORDED = "MANUAL_PAYMENT_RECORDED"
    MANUAL_PAYMENT_CONFIRMED = "MANUAL_PAYMENT_CONFIRMED"
    MANUAL_PAYMENT_DISPUTED = "MANUAL_PAYMENT_DISPUTED"
    MANUAL_PAYMENT_RESOLVED = "MANUAL_PAYMENT_RESOLVED"
    MANUAL_PAYMENT_AUTO_CONFIRMED = "MANUAL_PAYMENT_AUTO_CONFIRMED"


class EventProcessingStatus(str, Enum):
    OK = "OK"
    IGNORED = "IGNORED"
    ERROR = "ERROR"


# ============================================================
# USER
# ============================================================
class User(SQLModel, table=True):
    __tablename__ = "user"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: EmailStr = Field(index=True, unique=True, max_length=100, nullable=False)
    password_hash: str = Field(nullable=False)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)

    memberships: List["Member"] = Relationship(back_populates="user")


# ============================================================
# BAND (tenant)
# ============================================================
class Band(SQLModel, table=True):
    __tablename__ = "band"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    slug: str = Field(max_length=50, unique=True, index=True)
    billing_owner_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    dissolved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    members: List["Member"] = Relationship(back_populates="band")


# ============================================================
# MEMBER (one per user per band)
# ============================================================
class Member(SQLModel, table=True):
    __tablename__ = "member"
    __table_args__ = (UniqueConstraint("user_id", "band_id", name="uq_member_user_band"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, index=True)

    role: str = Field(default=MemberRole.VOTING_MEMBER.value, max_length=20, index=True)
    status: str = Field(default=MemberStatus.PENDING.value, max_length=20, index=True)
    is_treasurer: bool = Field(default=False, index=True)

    # Start of the new-member grace window
    activated_at: datetime = Field(default_factory=utcnow)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    user: Optional["User"] = Relationship(back_populates="memberships")
    band: Optional["Band"] = Relationship(back_populates="members")

    @property
    def is_active_member(self) -> bool:
        return self.status == MemberStatus.ACTIVE.value


# ============================================================
# DUES PLAN
# ============================================================
class BandDuesPlan(SQLModel, table=True):
    __tablename__ = "band_dues_plan"
    __table_args__ = (
        Index(
            "uq_band_active_dues_plan",
            "band_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, index=True)
    amount_cents: int = Field(default=0, ge=0)
    currency: str = Field(default="usd", max_length=3)
    interval: str = Field(default=DuesInterval.MONTH.value, max_length=10)
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# FINANCE SETTINGS
# ============================================================
class BandFinanceSettings(SQLModel, table=True):
    __tablename__ = "band_finance_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, unique=True, index=True)
    dues_enforcement_enabled: bool = Field(default=True)
    new_member_grace_days: int = Field(default=7, ge=0)
    lapsed_member_grace_days: int = Field(default=3, ge=0)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# MEMBER BILLING (ledger)
# ============================================================
class BandMemberBilling(SQLModel, table=True):
    __tablename__ = "band_member_billing"
    __table_args__ = (UniqueConstraint("band_id", "member_user_id", name="uq_billing_band_member"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, index=True)
    member_user_id: int = Field(foreign_key="user.id", nullable=False, index=True)

    status: str = Field(default=BillingStatus.UNPAID.value, max_length=20)
    last_payment_at: Optional[datetime] = None
    current_period_end: Optional[datetime] = None

    stripe_customer_id: Optional[str] = Field(default=None, max_length=255)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=255, index=True)

    created_at: datetime = Field(default_factory=utcnow)
    # Start of the lapsed-member grace window when status is PAST_DUE
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# MANUAL PAYMENT
# ============================================================
class ManualPayment(SQLModel, table=True):
    __tablename__ = "manual_payment"

    id: Optional[int] = Field(default=None, primary_key=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, index=True)
    member_id: int = Field(foreign_key="member.id", nullable=False, index=True)
    member_user_id: int = Field(foreign_key="user.id", nullable=False, index=True)

    amount: int = Field(gt=0, description="Minor currency units (cents)")
    currency: str = Field(default="usd", max_length=3)
    payment_method: str = Field(max_length=20)
    payment_method_other: Optional[str] = Field(default=None, max_length=100)
    payment_date: datetime
    note: Optional[str] = Field(default=None, max_length=1000)

    initiated_by_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    initiated_by_role: str = Field(max_length=20)

    status: str = Field(default=ManualPaymentStatus.PENDING.value, max_length=20, index=True)
    # Single-use bearer credential; emptied once used
    confirmation_token: str = Field(default="", max_length=64, index=True)
    auto_confirm_at: datetime

    confirmed_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    confirmed_at: Optional[datetime] = None

    disputed_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    disputed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = Field(default=None, max_length=1000)

    resolved_by_id: Optional[int] = Field(default=None, foreign_key="user.id")
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = Field(default=None, max_length=1000)
    resolution_outcome: Optional[str] = Field(default=None, max_length=20)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


# ============================================================
# PROPOSAL (dissolution-vote lookup)
# ============================================================
class Proposal(SQLModel, table=True):
    __tablename__ = "proposal"

    id: Optional[int] = Field(default=None, primary_key=True)
    band_id: int = Field(foreign_key="band.id", nullable=False, index=True)
    title: str = Field(max_length=200)
    type: str = Field(default=ProposalType.GENERAL.value, max_length=20, index=True)
    status: str = Field(default=ProposalStatus.DRAFT.value, max_length=20, index=True)
    created_at: datetime = Field(default_factory=utcnow)


# ============================================================
# NOTIFICATION (in-app sink)
# ============================================================
class Notification(SQLModel, table=True):
    __tablename__ = "notification"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", nullable=False, index=True)
    type: str = Field(max_length=50, index=True)
    title: str = Field(max_length=200)
    message: str = Field(max_length=2000)
    action_url: Optional[str] = Field(default=None, max_length=500)
    priority: str = Field(default=NotificationPriority.MEDIUM.value, max_length=10)
    metadata_json: Optional[str] = None
    related_id: Optional[int] = None
    related_type: Optional[str] = Field(default=None, max_length=50)
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow)


# ============================================================
# STRIPE EVENT RECEIPT (webhook idempotency)
# ============================================================
class StripeEventReceipt(SQLModel, table=True):
    __tablename__ = "stripe_event_receipt"

    id: Optional[int] = Field(default=None, primary_key=True)
    stripe_event_id: str = Field(unique=True, index=True, max_length=255)
    stripe_account_id: Optional[str] = Field(default=None, max_length=255)
    event_type: str = Field(max_length=100, index=True)
    band_id: Optional[int] = Field(default=None, foreign_key="band.id", index=True)

    processing_status: str = Field(default=EventProcessingStatus.OK.value, max_length=20)
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
