"""Pytest configuration.

Makes the top-level packages importable and supplies the settings that
`core.config` requires at import time.
"""

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("STRIPE_CONNECT_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("MAIL_FROM", None)
