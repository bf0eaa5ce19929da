# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS (ledger server)

Refuses to start unless:
- SECRET_KEY, ALLOWED_HOSTS and https CORS/CSRF origins are set
- DATABASE_URL points at Postgres; posting serializes on SELECT ... FOR UPDATE
  row locks, which sqlite does not provide
- GST_HOME_STATE is set, so invoices never fall back to "local supply" by accident
- The voucher balance tolerance stays within one paisa

Static files go through WhiteNoise; cookies and security headers are hardened.
"""

from __future__ import annotations

import copy
from decimal import Decimal

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import (  # explicit for Ruff (F405)
    BASE_DIR,
    LOGGING,
    MIDDLEWARE,
    env,
)

DEBUG = False


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ImproperlyConfigured(message)


def _https_origins(name: str) -> list[str]:
    origins = env.list(name, default=[])
    _require(bool(origins), f"{name} must be set in production.")
    _require(
        not any("localhost" in o or "127.0.0.1" in o for o in origins),
        f"Remove localhost from {name} in production.",
    )
    _require(all(o.startswith("https://") for o in origins), f"{name} must be https:// in production.")
    return origins


# ----------------------------
# Secrets / hosts
# ----------------------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
_require(
    bool(SECRET_KEY) and SECRET_KEY != "dev-insecure-change-me",
    "SECRET_KEY must be set to a strong value in production.",
)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
_require(bool(ALLOWED_HOSTS), "ALLOWED_HOSTS must be set in production.")

# ----------------------------
# Database: Postgres only
# ----------------------------
_require(bool((env("DATABASE_URL", default="") or "").strip()), "DATABASE_URL must be set in production.")

DATABASES = {"default": env.db("DATABASE_URL")}
_require(
    DATABASES["default"]["ENGINE"] == "django.db.backends.postgresql",
    "The ledger requires Postgres in production (row locks on posting).",
)
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Ledger engine guards
# ----------------------------
GST_HOME_STATE = (env("GST_HOME_STATE", default="") or "").strip()
ACCOUNTING_BALANCE_TOLERANCE = Decimal(env("ACCOUNTING_BALANCE_TOLERANCE", default="0.01"))

_require(bool(GST_HOME_STATE), "GST_HOME_STATE must be set in production (books owner's GST state).")
_require(
    Decimal("0") <= ACCOUNTING_BALANCE_TOLERANCE <= Decimal("0.01"),
    "ACCOUNTING_BALANCE_TOLERANCE must be between 0 and 0.01.",
)

# Engine warnings and halts must reach the log even if the env asks for less
LOGGING = copy.deepcopy(LOGGING)
if LOGGING["loggers"]["accounting"]["level"] in ("ERROR", "CRITICAL"):
    LOGGING["loggers"]["accounting"]["level"] = "WARNING"

# ----------------------------
# Static files (WhiteNoise)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE = list(MIDDLEWARE)
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# TLS behind a reverse proxy
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

# ----------------------------
# Cookies / headers
# ----------------------------
SESSION_COOKIE_SECURE = CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = CSRF_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# ----------------------------
# CORS / CSRF (JWT in headers, no credentialed CORS)
# ----------------------------
CORS_ALLOWED_ORIGINS = _https_origins("CORS_ALLOWED_ORIGINS")
CSRF_TRUSTED_ORIGINS = _https_origins("CSRF_TRUSTED_ORIGINS")
CORS_ALLOW_CREDENTIALS = False
