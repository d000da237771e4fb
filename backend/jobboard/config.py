import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Override=True so edits to backend/.env take effect on reload.
# Tests set DISABLE_DOTENV=1 so a developer's .env never leaks into them.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _truthy(value: str | None) -> bool:
    return (value or "").strip() in {"1", "true", "True", "yes", "YES"}


APP_ENV = (os.getenv("APP_ENV", "development") or "development").strip().lower()
DEVELOPMENT_ENVS = {"development", "dev", "local", "test"}

LOG_LEVEL = (os.getenv("LOG_LEVEL", "INFO") or "INFO").strip().upper()

_BACKEND_DIR = Path(__file__).resolve().parent.parent

# Flat-file storage: users.json, jobs.json, interests.json, refreshTokens.json
DATA_DIR = os.getenv("DATA_DIR") or (_BACKEND_DIR / "data" / "storage").as_posix()

# Profile photos, served back under /uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (_BACKEND_DIR / "uploads").as_posix()
MAX_PHOTO_BYTES = 5 * 1024 * 1024  # 5MB

# Auth / JWT
# Dev defaults only apply when APP_ENV is a development env, see check_secrets().
_DEV_SECRETS = {
    "JWT_SECRET": "dev_secret_change_me",
    "JWT_REFRESH_SECRET": "dev_refresh_secret_change_me",
}
SECRET_KEY = os.getenv("JWT_SECRET") or _DEV_SECRETS["JWT_SECRET"]
REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET") or _DEV_SECRETS["JWT_REFRESH_SECRET"]

# Trust a raw `user-id` header when no bearer token is sent. Unsigned, so off by default.
ALLOW_LEGACY_USER_HEADER = _truthy(os.getenv("ALLOW_LEGACY_USER_HEADER", "0"))

FRONTEND_ORIGINS = [
    origin.strip()
    for origin in os.getenv("FRONTEND_ORIGINS", "").split(",")
    if origin.strip()
]


def check_secrets(app_env: str | None = None, environ: dict | None = None) -> list[str]:
    """
    Verify JWT signing secrets are configured.

    Returns the names of missing secrets. Outside development a missing secret is a
    startup failure instead of a silent fallback to a well-known value.
    """
    env = (app_env or APP_ENV).strip().lower()
    source = os.environ if environ is None else environ
    missing = [name for name in _DEV_SECRETS if not (source.get(name) or "").strip()]
    if not missing:
        return []

    if env not in DEVELOPMENT_ENVS:
        raise RuntimeError(
            f"Missing required secrets for APP_ENV={env}: {', '.join(missing)}"
        )

    logger.warning(
        "%s not set; using development defaults (not safe outside development)",
        ", ".join(missing),
    )
    return missing
