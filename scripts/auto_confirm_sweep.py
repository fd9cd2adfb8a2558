# scripts/auto_confirm_sweep.py
# Run from cron (e.g. hourly): python scripts/auto_confirm_sweep.py

import os
import sys
import argparse
import logging

from dotenv import load_dotenv
from sqlmodel import Session

# Ensure root path for relative imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# ✅ Load environment variables
load_dotenv()

from core.database import engine
from services.manual_payment_service import auto_confirm_overdue_payments
from services.notification_service import notification_service

logger = logging.getLogger(__name__)
logging.basicConfig(level=logging.INFO)


def run_sweep(notify_members: bool = True) -> int:
    """Auto-confirm every overdue PENDING manual payment."""
    notify = notification_service.dispatch if notify_members else None
    with Session(engine) as session:
        confirmed = auto_confirm_overdue_payments(session, notify=notify)
    logger.info("⏰ Auto-confirm sweep finished: %d payment(s) confirmed", confirmed)
    return confirmed


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Auto-confirm overdue manual payments.")
    parser.add_argument("--no-notify", action="store_true", help="Skip member notifications")
    args = parser.parse_args()

    run_sweep(notify_members=not args.no_notify)
