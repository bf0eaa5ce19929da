# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS (pytest-django)
- In-memory sqlite, fast password hashing
- No throttling, quiet ledger logging
- Deterministic engine knobs regardless of the developer's .env
"""

from __future__ import annotations

from decimal import Decimal

from .base import *  # noqa: F403
from .base import LOGGING, REST_FRAMEWORK  # explicit for Ruff (F405)

DEBUG = False
SECRET_KEY = "test-only-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

ACCOUNTING_BALANCE_TOLERANCE = Decimal("0.01")
ACCOUNTING_POSTING_MAX_RETRIES = 3
GST_ROUND_OFF_UNIT = Decimal("0.01")
GST_HOME_STATE = "27"
ACCOUNTING_LEDGER_CODES = {}
VOUCHER_NUMBER_PREFIXES = {}

LOGGING["loggers"]["accounting"]["level"] = "WARNING"
SENTRY_DSN = ""
