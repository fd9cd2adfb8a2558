# dues_schema.py
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List
from datetime import datetime

from models.models import BillingStatus, DuesInterval


# ---------------------------
# Standing
# ---------------------------
class DuesPlanInfo(BaseModel):
    amount_cents: int
    currency: str
    interval: str


class StandingResult(BaseModel):
    in_good_standing: bool
    exempt: bool = False
    reason: Optional[str] = None
    dues_plan: Optional[DuesPlanInfo] = None


# ---------------------------
# Dues Plan
# ---------------------------
class DuesPlanUpsert(BaseModel):
    amount_cents: int = Field(..., ge=0, le=99_999_999)
    currency: str = Field(default="usd", max_length=3)
    interval: DuesInterval = DuesInterval.MONTH
    is_active: bool = True

    @field_validator("amount_cents")
    @classmethod
    def check_stripe_minimum(cls, value: int) -> int:
        # 0 disables enforcement; anything else must clear the Stripe minimum
        if 0 < value < 50:
            raise ValueError("amount_cents must be 0 or at least 50 (Stripe minimum)")
        return value

    @field_validator("currency")
    @classmethod
    def check_currency(cls, value: str) -> str:
        value = value.lower()
        if value != "usd":
            raise ValueError('currency must be "usd"')
        return value


class DuesPlanRead(BaseModel):
    id: Optional[int] = None
    amount_cents: Optional[int] = None
    currency: Optional[str] = None
    interval: Optional[str] = None
    is_active: bool = False

    model_config = ConfigDict(from_attributes=True)


# ---------------------------
# Finance Settings
# ---------------------------
class FinanceSettingsRead(BaseModel):
    band_id: int
    dues_enforcement_enabled: bool = True
    new_member_grace_days: int = 7
    lapsed_member_grace_days: int = 3

    model_config = ConfigDict(from_attributes=True)


class FinanceSettingsUpdate(BaseModel):
    dues_enforcement_enabled: Optional[bool] = None
    new_member_grace_days: Optional[int] = Field(default=None, ge=0, le=90)
    lapsed_member_grace_days: Optional[int] = Field(default=None, ge=0, le=90)


# ---------------------------
# Billing ledger
# ---------------------------
class MemberBillingRead(BaseModel):
    member_user_id: int
    status: str = BillingStatus.UNPAID.value
    last_payment_at: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


class BandBillingMember(BaseModel):
    user_id: int
    display_name: str
    status: str
    current_period_end: Optional[datetime] = None


class BandBillingSummary(BaseModel):
    total: int = 0
    active: int = 0
    unpaid: int = 0
    past_due: int = 0
    canceled: int = 0


class BandBillingOverview(BaseModel):
    members: List[BandBillingMember]
    summary: BandBillingSummary
