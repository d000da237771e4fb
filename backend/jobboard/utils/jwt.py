from datetime import datetime, timedelta, timezone
import logging
from uuid import uuid4

from jose import JWTError, jwt

from ..config import REFRESH_SECRET_KEY, SECRET_KEY
from ..models.user import User
from ..storage import FlatFileStore

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 15
REFRESH_TOKEN_EXPIRE_DAYS = 7
REFRESH_TOKEN_TYPE = "refresh"


def _identity_claims(user: User) -> dict:
    return {"userId": user.id, "email": user.email, "role": user.role}


def _sign(claims: dict, secret: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {**claims, "iat": now, "exp": now + lifetime}
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


def _decode(token: str, secret: str) -> dict | None:
    if not token or not isinstance(token, str):
        return None
    try:
        claims = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        # Expired and tampered tokens look the same to callers.
        logger.info("Rejected token: %s", e)
        return None
    if not claims.get("userId"):
        return None
    return claims


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta if expires_delta is not None else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    return _sign(_identity_claims(user), SECRET_KEY, lifetime)


def create_refresh_token(user: User, store: FlatFileStore, expires_delta: timedelta | None = None) -> str:
    """Sign a refresh token and persist it so it can be revoked later."""
    lifetime = expires_delta if expires_delta is not None else timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    claims = {**_identity_claims(user), "type": REFRESH_TOKEN_TYPE, "jti": uuid4().hex}
    token = _sign(claims, REFRESH_SECRET_KEY, lifetime)
    store.add_refresh_token(token, user.id)
    return token


def verify_access_token(token: str) -> dict | None:
    claims = _decode(token, SECRET_KEY)
    if claims is None or claims.get("type") == REFRESH_TOKEN_TYPE:
        return None
    return claims


def verify_refresh_token(token: str, store: FlatFileStore) -> dict | None:
    """Valid only if the signature checks out AND the token is still persisted."""
    claims = _decode(token, REFRESH_SECRET_KEY)
    if claims is None or claims.get("type") != REFRESH_TOKEN_TYPE:
        return None
    if not store.has_refresh_token(token, claims["userId"]):
        logger.info("Refresh token for user %s is revoked", claims["userId"])
        return None
    return claims


def revoke_refresh_token(token: str, store: FlatFileStore, user_id: str | None = None) -> int:
    return store.remove_refresh_token(token, user_id=user_id)


def revoke_all_user_tokens(user_id: str, store: FlatFileStore) -> int:
    removed = store.remove_user_refresh_tokens(user_id)
    logger.info("Revoked %d refresh token(s) for user %s", removed, user_id)
    return removed
