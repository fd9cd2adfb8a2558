# services/policy_service.py
import logging
from typing import Optional

from sqlmodel import Session, select
from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from core import errors
from core.config import settings
from models.models import (
    Band,
    BandDuesPlan,
    BandFinanceSettings,
    Proposal,
    ProposalStatus,
    ProposalType,
    utcnow,
)
from schemas.dues_schema import DuesPlanUpsert, FinanceSettingsRead, FinanceSettingsUpdate
from services.authorization import get_active_member, is_user_governor

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


# -----------------------
# Reads
# -----------------------
def get_band(session: Session, band_id: int) -> Band:
    band = session.get(Band, band_id)
    if not band:
        raise errors.not_found("Band not found")
    return band


def get_active_dues_plan(session: Session, band_id: int) -> Optional[BandDuesPlan]:
    return session.exec(
        select(BandDuesPlan).where(BandDuesPlan.band_id == band_id, BandDuesPlan.is_active == True)  # noqa: E712
    ).first()


def get_finance_settings(session: Session, band_id: int) -> Optional[BandFinanceSettings]:
    return session.exec(
        select(BandFinanceSettings).where(BandFinanceSettings.band_id == band_id)
    ).first()


def effective_finance_settings(session: Session, band_id: int) -> FinanceSettingsRead:
    """Stored settings, or the configured defaults when the band never saved any."""
    stored = get_finance_settings(session, band_id)
    if stored:
        return FinanceSettingsRead.model_validate(stored)
    return FinanceSettingsRead(
        band_id=band_id,
        dues_enforcement_enabled=True,
        new_member_grace_days=settings.DEFAULT_NEW_MEMBER_GRACE_DAYS,
        lapsed_member_grace_days=settings.DEFAULT_LAPSED_MEMBER_GRACE_DAYS,
    )


def has_active_dissolution_vote(session: Session, band_id: int) -> bool:
    """True while a DISSOLUTION proposal is open for voting; dues are frozen meanwhile."""
    proposal = session.exec(
        select(Proposal.id).where(
            Proposal.band_id == band_id,
            Proposal.type == ProposalType.DISSOLUTION.value,
            Proposal.status == ProposalStatus.OPEN.value,
        )
    ).first()
    return proposal is not None


# -----------------------
# Writes (founders / governors)
# -----------------------
def _require_dues_manager(session: Session, band_id: int, user_id: int) -> None:
    if not get_active_member(session, user_id, band_id):
        raise errors.forbidden("You must be an active band member")
    if not is_user_governor(session, user_id, band_id):
        raise errors.forbidden("Only founders and governors can manage dues")


def upsert_dues_plan(session: Session, band_id: int, user_id: int, data: DuesPlanUpsert) -> BandDuesPlan:
    """Create or replace the band's active dues plan; at most one stays active."""
    get_band(session, band_id)
    _require_dues_manager(session, band_id, user_id)

    now = utcnow()
    try:
        current = get_active_dues_plan(session, band_id)
        if current and data.is_active:
            current.amount_cents = data.amount_cents
            current.currency = data.currency
            current.interval = data.interval.value
            current.updated_at = now
            plan = current
        else:
            # Deactivate before inserting so the partial unique index never sees two
            session.exec(
                update(BandDuesPlan)
                .where(BandDuesPlan.band_id == band_id, BandDuesPlan.is_active == True)  # noqa: E712
                .values(is_active=False, updated_at=now)
            )
            plan = BandDuesPlan(
                band_id=band_id,
                amount_cents=data.amount_cents,
                currency=data.currency,
                interval=data.interval.value,
                is_active=data.is_active,
                created_at=now,
                updated_at=now,
            )
        session.add(plan)
        session.commit()
        session.refresh(plan)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("❌ Failed to save dues plan for band %s: %s", band_id, e)
        raise errors.server_error("Failed to save dues plan")

    logger.info(
        "💰 Dues plan saved for band %s: %s %s/%s (active=%s)",
        band_id, plan.amount_cents, plan.currency, plan.interval, plan.is_active,
    )
    return plan


def update_finance_settings(
    session: Session, band_id: int, user_id: int, data: FinanceSettingsUpdate
) -> BandFinanceSettings:
    get_band(session, band_id)
    _require_dues_manager(session, band_id, user_id)

    stored = get_finance_settings(session, band_id)
    if not stored:
        defaults = effective_finance_settings(session, band_id)
        stored = BandFinanceSettings(**defaults.model_dump())

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(stored, field, value)
    stored.updated_at = utcnow()

    try:
        session.add(stored)
        session.commit()
        session.refresh(stored)
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("❌ Failed to save finance settings for band %s: %s", band_id, e)
        raise errors.server_error("Failed to save finance settings")

    return stored
