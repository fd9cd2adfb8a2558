# ================================================================
# services/standing_service.py: Dues good-standing evaluation
# ================================================================
"""
Decides whether a member is in good standing with their band's dues.

The decision is an ordered chain of named rules. Each rule inspects a
`StandingContext` and either returns a verdict or `None` to pass to the next
rule; the first verdict wins. The context loads each piece of state on first
use, so a band without a dues plan never touches the membership or billing
tables. "now" is captured once per evaluation so every grace window in a
single call is measured against the same instant.

Evaluation is a pure read: no writes, no notifications.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from functools import cached_property
from typing import Callable, List, Optional, Tuple

from fastapi import Depends
from sqlmodel import Session, select

from core import errors
from core.config import settings
from core.database import get_session
from core.security import get_current_user
from models.models import (
    Band,
    BandDuesPlan,
    BandFinanceSettings,
    BandMemberBilling,
    BillingStatus,
    Member,
    MemberStatus,
    User,
    utcnow,
)
from schemas.dues_schema import DuesPlanInfo, StandingResult
from services.authorization import get_member_for_user
from services.policy_service import get_active_dues_plan, get_finance_settings, has_active_dissolution_vote


NOT_A_MEMBER_REASON = "You are not a member of this band."
NOT_PAID_REASON = "You have not paid your dues yet."
DEFAULT_GUARD_REASON = "Please pay your dues to perform this action."

BILLING_STATUS_REASONS = {
    BillingStatus.PAST_DUE.value: "Your dues payment is past due. Please update your payment to continue participating.",
    BillingStatus.CANCELED.value: "Your dues subscription has been canceled. Please renew to continue participating.",
    BillingStatus.UNPAID.value: "Please pay your dues to participate in band activities.",
}


@dataclass
class StandingContext:
    session: Session
    band_id: int
    user_id: int
    now: datetime

    @cached_property
    def dissolution_vote_open(self) -> bool:
        return has_active_dissolution_vote(self.session, self.band_id)

    @cached_property
    def dues_plan(self) -> Optional[BandDuesPlan]:
        return get_active_dues_plan(self.session, self.band_id)

    @cached_property
    def finance_settings(self) -> Optional[BandFinanceSettings]:
        return get_finance_settings(self.session, self.band_id)

    @cached_property
    def member(self) -> Optional[Member]:
        return get_member_for_user(self.session, self.user_id, self.band_id)

    @cached_property
    def billing(self) -> Optional[BandMemberBilling]:
        return self.session.exec(
            select(BandMemberBilling).where(
                BandMemberBilling.band_id == self.band_id,
                BandMemberBilling.member_user_id == self.user_id,
            )
        ).first()

    @cached_property
    def is_exempt(self) -> bool:
        """Billing owner and treasurers are exempt, but the exemption is only a fallback."""
        band = self.session.get(Band, self.band_id)
        is_billing_owner = bool(band and band.billing_owner_id == self.user_id)
        return is_billing_owner or bool(self.member and self.member.is_treasurer)

    @property
    def new_member_grace_days(self) -> int:
        if self.finance_settings:
            return self.finance_settings.new_member_grace_days
        return settings.DEFAULT_NEW_MEMBER_GRACE_DAYS

    @property
    def lapsed_member_grace_days(self) -> int:
        if self.finance_settings:
            return self.finance_settings.lapsed_member_grace_days
        return settings.DEFAULT_LAPSED_MEMBER_GRACE_DAYS

    @property
    def plan_info(self) -> Optional[DuesPlanInfo]:
        if not self.dues_plan:
            return None
        return DuesPlanInfo(
            amount_cents=self.dues_plan.amount_cents,
            currency=self.dues_plan.currency,
            interval=self.dues_plan.interval,
        )


Rule = Callable[[StandingContext], Optional[StandingResult]]


def _good() -> StandingResult:
    return StandingResult(in_good_standing=True, exempt=False)


def _exempt_or(ctx: StandingContext, reason: str) -> StandingResult:
    if ctx.is_exempt:
        return StandingResult(in_good_standing=True, exempt=True, dues_plan=ctx.plan_info)
    return StandingResult(in_good_standing=False, exempt=False, reason=reason, dues_plan=ctx.plan_info)


# -----------------------
# Rules, in precedence order
# -----------------------
def dissolution_freeze(ctx: StandingContext) -> Optional[StandingResult]:
    return _good() if ctx.dissolution_vote_open else None


def no_active_plan(ctx: StandingContext) -> Optional[StandingResult]:
    return _good() if ctx.dues_plan is None else None


def zero_amount_plan(ctx: StandingContext) -> Optional[StandingResult]:
    return _good() if ctx.dues_plan.amount_cents == 0 else None


def enforcement_disabled(ctx: StandingContext) -> Optional[StandingResult]:
    if ctx.finance_settings and not ctx.finance_settings.dues_enforcement_enabled:
        return _good()
    return None


def not_a_member(ctx: StandingContext) -> Optional[StandingResult]:
    if ctx.member is None:
        return StandingResult(in_good_standing=False, exempt=False, reason=NOT_A_MEMBER_REASON)
    return None


def new_member_grace(ctx: StandingContext) -> Optional[StandingResult]:
    member = ctx.member
    if member.status != MemberStatus.ACTIVE.value:
        return None
    grace_end = member.activated_at + timedelta(days=ctx.new_member_grace_days)
    return _good() if ctx.now < grace_end else None


def no_billing_record(ctx: StandingContext) -> Optional[StandingResult]:
    if ctx.billing is None:
        return _exempt_or(ctx, NOT_PAID_REASON)
    return None


def billing_active(ctx: StandingContext) -> Optional[StandingResult]:
    return _good() if ctx.billing.status == BillingStatus.ACTIVE.value else None


def lapsed_member_grace(ctx: StandingContext) -> Optional[StandingResult]:
    if ctx.billing.status != BillingStatus.PAST_DUE.value:
        return None
    grace_end = ctx.billing.updated_at + timedelta(days=ctx.lapsed_member_grace_days)
    return _good() if ctx.now < grace_end else None


def billing_lapsed(ctx: StandingContext) -> Optional[StandingResult]:
    reason = BILLING_STATUS_REASONS.get(ctx.billing.status, BILLING_STATUS_REASONS[BillingStatus.UNPAID.value])
    return _exempt_or(ctx, reason)


STANDING_RULES: List[Tuple[str, Rule]] = [
    ("dissolution_freeze", dissolution_freeze),
    ("no_active_plan", no_active_plan),
    ("zero_amount_plan", zero_amount_plan),
    ("enforcement_disabled", enforcement_disabled),
    ("not_a_member", not_a_member),
    ("new_member_grace", new_member_grace),
    ("no_billing_record", no_billing_record),
    ("billing_active", billing_active),
    ("lapsed_member_grace", lapsed_member_grace),
    ("billing_lapsed", billing_lapsed),
]


def evaluate_standing_with_rule(
    session: Session, band_id: int, user_id: int, now: Optional[datetime] = None
) -> Tuple[str, StandingResult]:
    """Like `evaluate_standing`, also returning the name of the deciding rule."""
    ctx = StandingContext(session=session, band_id=band_id, user_id=user_id, now=now or utcnow())
    for name, rule in STANDING_RULES:
        verdict = rule(ctx)
        if verdict is not None:
            return name, verdict
    # billing_lapsed always answers; unreachable
    raise RuntimeError("standing rule chain produced no verdict")


def evaluate_standing(
    session: Session, band_id: int, user_id: int, now: Optional[datetime] = None
) -> StandingResult:
    return evaluate_standing_with_rule(session, band_id, user_id, now)[1]


def is_in_good_standing(session: Session, band_id: int, user_id: int, now: Optional[datetime] = None) -> bool:
    return evaluate_standing(session, band_id, user_id, now).in_good_standing


def require_good_standing(session: Session, band_id: int, user_id: int, now: Optional[datetime] = None) -> None:
    """Guard for write paths elsewhere in the platform; raises DUES_REQUIRED."""
    result = evaluate_standing(session, band_id, user_id, now)
    if not result.in_good_standing:
        raise errors.dues_required(result.reason or DEFAULT_GUARD_REASON)


def good_standing_required(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
) -> User:
    """FastAPI dependency for band-scoped routes (`/bands/{band_id}/...`) blocked for unpaid members."""
    require_good_standing(session, band_id, current_user.id)
    return current_user
