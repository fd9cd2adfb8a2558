# scripts/seed.py

import os
import sys
import argparse

from dotenv import load_dotenv
from sqlmodel import Session, select

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables
load_dotenv()

from core.database import engine, create_db_and_tables
from core.security import hash_password
from models.models import (
    Band,
    BandDuesPlan,
    BandFinanceSettings,
    DuesInterval,
    Member,
    MemberRole,
    MemberStatus,
    User,
)


DEMO_MEMBERS = [
    # (name, email, role, is_treasurer)
    ("Fran Founder", "founder@demo.com", MemberRole.FOUNDER, False),
    ("Tess Treasurer", "treasurer@demo.com", MemberRole.VOTING_MEMBER, True),
    ("Gary Governor", "governor@demo.com", MemberRole.GOVERNOR, False),
    ("Mia Member", "member1@demo.com", MemberRole.VOTING_MEMBER, False),
    ("Max Member", "member2@demo.com", MemberRole.VOTING_MEMBER, False),
]


def _get_or_create_user(session: Session, name: str, email: str, password: str) -> User:
    user = session.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=name, email=email, password_hash=hash_password(password), is_active=True)
        session.add(user)
        session.commit()
        session.refresh(user)
        print(f"✅ Added user {email}")
    return user


def seed_dev_data(amount_cents: int = 500, password: str = "demo1234"):
    """Seed development database with a demo band, its members and a monthly dues plan."""
    print("🌱 Seeding development data...")
    create_db_and_tables()

    with Session(engine) as session:
        # -----------------------------
        # 🎸 Demo Band
        # -----------------------------
        band = session.exec(select(Band).where(Band.slug == "demo-band")).first()
        if not band:
            band = Band(name="Demo Band", slug="demo-band")
            session.add(band)
            session.commit()
            session.refresh(band)
            print("✅ Created Demo Band")

        # -----------------------------
        # 👥 Members
        # -----------------------------
        for name, email, role, is_treasurer in DEMO_MEMBERS:
            user = _get_or_create_user(session, name, email, password)
            member = session.exec(
                select(Member).where(Member.user_id == user.id, Member.band_id == band.id)
            ).first()
            if not member:
                session.add(
                    Member(
                        user_id=user.id,
                        band_id=band.id,
                        role=role.value,
                        status=MemberStatus.ACTIVE.value,
                        is_treasurer=is_treasurer,
                    )
                )
            if role == MemberRole.FOUNDER and band.billing_owner_id is None:
                band.billing_owner_id = user.id
                session.add(band)
        session.commit()
        print("✅ Added band members")

        # -----------------------------
        # 💰 Dues plan + finance settings
        # -----------------------------
        plan = session.exec(
            select(BandDuesPlan).where(BandDuesPlan.band_id == band.id, BandDuesPlan.is_active == True)  # noqa: E712
        ).first()
        if not plan:
            session.add(
                BandDuesPlan(
                    band_id=band.id,
                    amount_cents=amount_cents,
                    currency="usd",
                    interval=DuesInterval.MONTH.value,
                    is_active=True,
                )
            )
            print(f"✅ Added ${amount_cents / 100:.2f}/month dues plan")

        if not session.exec(select(BandFinanceSettings).where(BandFinanceSettings.band_id == band.id)).first():
            session.add(BandFinanceSettings(band_id=band.id))

        session.commit()
        print("🌱 Development data seeding complete.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the Bandflow database.")
    parser.add_argument("--amount", type=int, default=500, help="Monthly dues in cents (default: 500)")
    parser.add_argument("--password", default="demo1234", help="Password for every demo user")
    args = parser.parse_args()

    seed_dev_data(amount_cents=args.amount, password=args.password)
