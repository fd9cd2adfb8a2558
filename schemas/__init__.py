from .dues_schema import (
    BillingStatus, DuesInterval,
    DuesPlanInfo, StandingResult,
    DuesPlanUpsert, DuesPlanRead,
    FinanceSettingsRead, FinanceSettingsUpdate,
    MemberBillingRead, BandBillingMember, BandBillingSummary, BandBillingOverview,
)
from .manual_payment_schema import (
    PaymentMethod, ManualPaymentStatus, ResolutionOutcome,
    ManualPaymentCreate, ManualPaymentDispute, ManualPaymentResolve, TokenConfirm,
    ManualPaymentRead, ManualPaymentResponse, ManualPaymentList,
    PaymentContextPermissions, PaymentContextRead,
)
from .user_schema import UserLogin, UserRead, PayableMemberRead, TokenResponse

__all__ = [
    # Dues
    "BillingStatus", "DuesInterval",
    "DuesPlanInfo", "StandingResult",
    "DuesPlanUpsert", "DuesPlanRead",
    "FinanceSettingsRead", "FinanceSettingsUpdate",
    "MemberBillingRead", "BandBillingMember", "BandBillingSummary", "BandBillingOverview",

    # Manual payments
    "PaymentMethod", "ManualPaymentStatus", "ResolutionOutcome",
    "ManualPaymentCreate", "ManualPaymentDispute", "ManualPaymentResolve", "TokenConfirm",
    "ManualPaymentRead", "ManualPaymentResponse", "ManualPaymentList",
    "PaymentContextPermissions", "PaymentContextRead",

    # User
    "UserLogin", "UserRead", "PayableMemberRead", "TokenResponse",
]
