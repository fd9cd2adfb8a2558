from models.models import MemberStatus
from services.authorization import (
    can_view_all_billing,
    can_view_all_payments,
    get_band_governors,
    get_band_treasurers,
    is_user_governor,
    is_user_treasurer,
)


def _update_member(session, member, **values):
    for key, value in values.items():
        setattr(member, key, value)
    session.add(member)
    session.commit()


def test_flagged_treasurer_is_treasurer(session, demo_band):
    assert is_user_treasurer(session, demo_band.users["treasurer"].id, demo_band.id) is True
    assert is_user_treasurer(session, demo_band.users["alice"].id, demo_band.id) is False


def test_founder_is_not_treasurer_while_one_exists(session, demo_band):
    assert is_user_treasurer(session, demo_band.users["founder"].id, demo_band.id) is False
    assert [m.user_id for m in get_band_treasurers(session, demo_band.id)] == [demo_band.users["treasurer"].id]


def test_founder_falls_back_to_treasurer_immediately(session, demo_band):
    founder_id = demo_band.users["founder"].id
    _update_member(session, demo_band.members["treasurer"], is_treasurer=False)

    assert is_user_treasurer(session, founder_id, demo_band.id) is True
    assert [m.user_id for m in get_band_treasurers(session, demo_band.id)] == [founder_id]

    # Designating a treasurer again revokes the fallback on the next call
    _update_member(session, demo_band.members["alice"], is_treasurer=True)
    assert is_user_treasurer(session, founder_id, demo_band.id) is False
    assert is_user_treasurer(session, demo_band.users["alice"].id, demo_band.id) is True


def test_inactive_treasurer_does_not_count(session, demo_band):
    _update_member(session, demo_band.members["treasurer"], status=MemberStatus.INACTIVE.value)

    assert is_user_treasurer(session, demo_band.users["treasurer"].id, demo_band.id) is False
    assert is_user_treasurer(session, demo_band.users["founder"].id, demo_band.id) is True


def test_governors_are_founder_and_governor(session, demo_band):
    assert is_user_governor(session, demo_band.users["founder"].id, demo_band.id) is True
    assert is_user_governor(session, demo_band.users["governor"].id, demo_band.id) is True
    assert is_user_governor(session, demo_band.users["treasurer"].id, demo_band.id) is False

    governor_ids = {m.user_id for m in get_band_governors(session, demo_band.id)}
    assert governor_ids == {demo_band.users["founder"].id, demo_band.users["governor"].id}


def test_banned_governor_loses_authority(session, demo_band):
    _update_member(session, demo_band.members["governor"], status=MemberStatus.BANNED.value)
    assert is_user_governor(session, demo_band.users["governor"].id, demo_band.id) is False


def test_view_all_payments_and_billing(session, demo_band):
    for key in ("founder", "governor", "treasurer"):
        assert can_view_all_payments(session, demo_band.users[key].id, demo_band.id) is True
        assert can_view_all_billing(session, demo_band.users[key].id, demo_band.id) is True

    assert can_view_all_payments(session, demo_band.users["alice"].id, demo_band.id) is False
    assert can_view_all_billing(session, demo_band.users["alice"].id, demo_band.id) is False
