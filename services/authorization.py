# ================================================================
# services/authorization.py: Treasurer / Governor resolution
# ================================================================
"""
Band-scoped authority checks.

Every check reads current membership state; nothing is cached, so a treasurer
designation change is visible on the very next call. Permission gating always
goes through the per-user checks (`is_user_treasurer`, `is_user_governor`);
`get_band_treasurers` / `get_band_governors` only decide who gets notified.
"""
from typing import List, Optional

from sqlmodel import Session, select, func

from models.models import Member, MemberRole, MemberStatus, GOVERNOR_ROLES


def get_member_for_user(session: Session, user_id: int, band_id: int) -> Optional[Member]:
    """Membership row for (user, band), whatever its status."""
    return session.exec(
        select(Member).where(Member.user_id == user_id, Member.band_id == band_id)
    ).first()


def get_active_member(session: Session, user_id: int, band_id: int) -> Optional[Member]:
    member = get_member_for_user(session, user_id, band_id)
    if member and member.is_active_member:
        return member
    return None


def _active_treasurer_count(session: Session, band_id: int) -> int:
    return session.exec(
        select(func.count(Member.id)).where(
            Member.band_id == band_id,
            Member.is_treasurer == True,  # noqa: E712
            Member.status == MemberStatus.ACTIVE.value,
        )
    ).one()


def _active_founder(session: Session, band_id: int) -> Optional[Member]:
    return session.exec(
        select(Member).where(
            Member.band_id == band_id,
            Member.role == MemberRole.FOUNDER.value,
            Member.status == MemberStatus.ACTIVE.value,
        )
    ).first()


def is_user_treasurer(session: Session, user_id: int, band_id: int) -> bool:
    """
    Treasurer-equivalence.

    True for an ACTIVE member flagged as treasurer. When the band has no
    ACTIVE treasurer at all, the ACTIVE founder holds treasurer authority.
    Once any treasurer exists the founder does not.
    """
    member = get_active_member(session, user_id, band_id)
    if not member:
        return False
    if member.is_treasurer:
        return True
    if _active_treasurer_count(session, band_id) == 0:
        return member.role == MemberRole.FOUNDER.value
    return False


def is_user_governor(session: Session, user_id: int, band_id: int) -> bool:
    """Governor-equivalence: ACTIVE founder or governor."""
    member = get_active_member(session, user_id, band_id)
    return bool(member and member.role in GOVERNOR_ROLES)


def can_view_all_payments(session: Session, user_id: int, band_id: int) -> bool:
    return is_user_treasurer(session, user_id, band_id) or is_user_governor(session, user_id, band_id)


def can_view_all_billing(session: Session, user_id: int, band_id: int) -> bool:
    """Founders, governors and flagged treasurers may see every member's ledger entry."""
    member = get_active_member(session, user_id, band_id)
    return bool(member and (member.role in GOVERNOR_ROLES or member.is_treasurer))


def get_band_treasurers(session: Session, band_id: int) -> List[Member]:
    """ACTIVE treasurers, or the ACTIVE founder alone when none is designated."""
    treasurers = session.exec(
        select(Member).where(
            Member.band_id == band_id,
            Member.is_treasurer == True,  # noqa: E712
            Member.status == MemberStatus.ACTIVE.value,
        )
    ).all()
    if treasurers:
        return list(treasurers)

    founder = _active_founder(session, band_id)
    return [founder] if founder else []


def get_band_governors(session: Session, band_id: int) -> List[Member]:
    return list(
        session.exec(
            select(Member).where(
                Member.band_id == band_id,
                Member.status == MemberStatus.ACTIVE.value,
                Member.role.in_(GOVERNOR_ROLES),
            )
        ).all()
    )
