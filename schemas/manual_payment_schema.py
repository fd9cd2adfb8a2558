# manual_payment_schema.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Optional, List
from datetime import datetime

from models.models import ManualPaymentStatus, PaymentMethod, ResolutionOutcome


# ---------------------------
# Requests
# ---------------------------
class ManualPaymentCreate(BaseModel):
    member_id: int = Field(..., description="Membership id of the member who paid")
    amount: int = Field(..., gt=0, description="Amount in cents")
    payment_method: PaymentMethod
    payment_method_other: Optional[str] = Field(default=None, max_length=100)
    payment_date: datetime
    note: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode="after")
    def drop_other_text_unless_other(self):
        if self.payment_method != PaymentMethod.OTHER:
            self.payment_method_other = None
        return self


class ManualPaymentDispute(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)


class ManualPaymentResolve(BaseModel):
    outcome: ResolutionOutcome
    note: Optional[str] = Field(default=None, max_length=1000)


class TokenConfirm(BaseModel):
    token: str = Field(..., min_length=1, max_length=64)


# ---------------------------
# Responses
# ---------------------------
class ManualPaymentRead(BaseModel):
    id: int
    band_id: int
    member_id: int
    member_user_id: int
    amount: int
    currency: str
    payment_method: str
    payment_method_other: Optional[str] = None
    payment_date: datetime
    note: Optional[str] = None
    initiated_by_id: int
    initiated_by_role: str
    status: str
    auto_confirm_at: datetime
    confirmed_by_id: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    disputed_by_id: Optional[int] = None
    disputed_at: Optional[datetime] = None
    dispute_reason: Optional[str] = None
    resolved_by_id: Optional[int] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None
    resolution_outcome: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    # confirmation_token is never serialized
    model_config = ConfigDict(from_attributes=True)


class ManualPaymentResponse(BaseModel):
    success: bool = True
    payment: ManualPaymentRead


class ManualPaymentList(BaseModel):
    success: bool = True
    payments: List[ManualPaymentRead]
    next_cursor: Optional[int] = None


class PaymentContextPermissions(BaseModel):
    can_confirm: bool
    is_pending: bool
    treasurer_initiated: Optional[bool] = None
    reason: Optional[str] = None


class PaymentContextRead(BaseModel):
    """Token-gated view backing the quick-confirm page."""
    payment: ManualPaymentRead
    band_name: str
    band_slug: str
    member_name: str
    initiated_by_name: str
    permissions: PaymentContextPermissions
