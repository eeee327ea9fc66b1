import os
import re

from dotenv import load_dotenv

# Loads .env from the project root
load_dotenv()


def _env_flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./menuhub.db")
ENV = os.getenv("ENV", "dev")
ENV_NORMALIZED = ENV.lower()
IS_DEV = ENV_NORMALIZED in {"dev", "development", "local"}
IS_STAGE = ENV_NORMALIZED in {"stage", "staging", "homolog"}
IS_PROD = ENV_NORMALIZED in {"prod", "production"}
IS_TEST = ENV_NORMALIZED == "test"

PUBLIC_BASE_DOMAIN = os.getenv("PUBLIC_BASE_DOMAIN", "menuhub.app").strip().lower()
ADMIN_PANEL_URL = os.getenv(
    "ADMIN_PANEL_URL",
    f"https://admin.{PUBLIC_BASE_DOMAIN}" if not IS_DEV else "http://localhost:3000/admin/dashboard",
).strip()
DEV_MENU_URL_TEMPLATE = os.getenv("DEV_MENU_URL_TEMPLATE", "http://localhost:3000/menu?restaurant={tenant_id}")

ONBOARDING_API_TOKEN = os.getenv("ONBOARDING_API_TOKEN", "").strip()
TRIAL_PERIOD_DAYS = int(os.getenv("TRIAL_PERIOD_DAYS", "14"))

# Email
EMAIL_PROVIDER = os.getenv("EMAIL_PROVIDER", "mock").strip().lower()
EMAIL_API_KEY = os.getenv("EMAIL_API_KEY", "").strip()
EMAIL_API_URL = os.getenv("EMAIL_API_URL", "https://api.resend.com/emails").strip()
EMAIL_FROM = os.getenv("EMAIL_FROM", f"MenuHub <noreply@{PUBLIC_BASE_DOMAIN}>").strip()

# Uploads
UPLOAD_MAX_BYTES = int(os.getenv("UPLOAD_MAX_BYTES", str(5 * 1024 * 1024)))

# CORS
_cors_env = os.getenv("CORS_ORIGINS", "")
CORS_ORIGINS = [origin.strip() for origin in _cors_env.split(",") if origin.strip() and origin.strip() != "*"]

if not CORS_ORIGINS and IS_DEV:
    CORS_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

_cors_origin_regex_env = os.getenv("CORS_ALLOW_ORIGIN_REGEX", "").strip()
if _cors_origin_regex_env:
    CORS_ALLOW_ORIGIN_REGEX = _cors_origin_regex_env
elif not IS_DEV and PUBLIC_BASE_DOMAIN:
    CORS_ALLOW_ORIGIN_REGEX = rf"^https://([a-z0-9-]+\.)?{re.escape(PUBLIC_BASE_DOMAIN)}$"
else:
    CORS_ALLOW_ORIGIN_REGEX = None

# Admin session
ADMIN_SESSION_SECRET = os.getenv("ADMIN_SESSION_SECRET", "")
ADMIN_SESSION_MAX_AGE_SECONDS = int(os.getenv("ADMIN_SESSION_MAX_AGE_SECONDS", "604800"))
ADMIN_SESSION_COOKIE_SECURE = _env_flag("ADMIN_SESSION_COOKIE_SECURE", "0" if IS_DEV else "1")
ADMIN_SESSION_COOKIE_SAMESITE = os.getenv(
    "ADMIN_SESSION_COOKIE_SAMESITE",
    "lax" if IS_DEV else "none",
).strip().lower()
if ADMIN_SESSION_COOKIE_SAMESITE not in {"lax", "strict", "none"}:
    ADMIN_SESSION_COOKIE_SAMESITE = "lax" if IS_DEV else "none"

_cookie_domain_env = os.getenv("ADMIN_SESSION_COOKIE_DOMAIN", "").strip()
if _cookie_domain_env:
    ADMIN_SESSION_COOKIE_DOMAIN = _cookie_domain_env
elif (IS_PROD or IS_STAGE) and PUBLIC_BASE_DOMAIN:
    ADMIN_SESSION_COOKIE_DOMAIN = f".{PUBLIC_BASE_DOMAIN}"
else:
    ADMIN_SESSION_COOKIE_DOMAIN = None

# Object storage (Cloudflare R2, S3 API)
R2_ACCOUNT_ID = os.getenv("R2_ACCOUNT_ID", "").strip()
R2_ACCESS_KEY_ID = os.getenv("R2_ACCESS_KEY_ID", "").strip()
R2_SECRET_ACCESS_KEY = os.getenv("R2_SECRET_ACCESS_KEY", "").strip()
R2_BUCKET_NAME = os.getenv("R2_BUCKET_NAME", "").strip()
R2_PUBLIC_URL = os.getenv("R2_PUBLIC_URL", "").strip().rstrip("/")
