# routes/dues.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from core import errors
from core.database import get_session
from core.security import get_current_user
from models.models import User
from schemas.dues_schema import (
    BandBillingOverview,
    DuesPlanRead,
    DuesPlanUpsert,
    FinanceSettingsRead,
    FinanceSettingsUpdate,
    MemberBillingRead,
    StandingResult,
)
from services.authorization import can_view_all_billing
from services.billing_service import get_band_billing_overview, get_member_billing
from services.policy_service import (
    effective_finance_settings,
    get_active_dues_plan,
    get_band,
    update_finance_settings,
    upsert_dues_plan,
)
from services.standing_service import evaluate_standing

router = APIRouter(prefix="/bands", tags=["Dues"])


# ==========================================================
# ✅ Good standing
# ==========================================================
@router.get("/{band_id}/dues/standing", response_model=StandingResult)
def get_dues_standing(
    band_id: int,
    user_id: Optional[int] = Query(None, description="Member to check (treasurers and governors only)"),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Whether the caller (or `user_id`) is in good standing with the band's dues"""
    get_band(session, band_id)
    target_user_id = user_id or current_user.id
    if target_user_id != current_user.id and not can_view_all_billing(session, current_user.id, band_id):
        raise errors.forbidden("You can only check your own dues standing")
    return evaluate_standing(session, band_id, target_user_id)


# ==========================================================
# ✅ Dues plan
# ==========================================================
@router.get("/{band_id}/dues-plan", response_model=DuesPlanRead)
def read_dues_plan(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_band(session, band_id)
    plan = get_active_dues_plan(session, band_id)
    if not plan:
        return DuesPlanRead()
    return DuesPlanRead.model_validate(plan)


@router.put("/{band_id}/dues-plan", response_model=DuesPlanRead)
def save_dues_plan(
    band_id: int,
    data: DuesPlanUpsert,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Founders and governors set the band's dues (0 turns enforcement off)"""
    plan = upsert_dues_plan(session, band_id, current_user.id, data)
    return DuesPlanRead.model_validate(plan)


# ==========================================================
# ✅ Finance settings
# ==========================================================
@router.get("/{band_id}/finance-settings", response_model=FinanceSettingsRead)
def read_finance_settings(
    band_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_band(session, band_id)
    return effective_finance_settings(session, band_id)


@router.put("/{band_id}/finance-settings", response_model=FinanceSettingsRead)
def save_finance_settings(
    band_id: int,
    data: FinanceSettingsUpdate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    stored = update_finance_settings(session, band_id, current_user.id, data)
    return FinanceSettingsRead.model_validate(stored)


# ==========================================================
# ✅ Billing ledger
# ==========================================================
@router.get("/{band_id}/billing", response_model=BandBillingOverview)
def read_band_billing(
    band_id: int,
    status: Optional[str] = Query(None, description="Filter by ACTIVE, PAST_DUE, CANCELED or UNPAID"),
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_band(session, band_id)
    return get_band_billing_overview(session, band_id, current_user.id, status)


@router.get("/{band_id}/members/{user_id}/billing", response_model=MemberBillingRead)
def read_member_billing(
    band_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    get_band(session, band_id)
    return get_member_billing(session, band_id, current_user.id, user_id)
